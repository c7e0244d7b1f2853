"""Per-button tap/hold detection that turns raw press signals into events."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterable

from .models import DEFAULT_BUTTONS, PressState
from .timers import RepeatingTimer, start_timer


_LOGGER = logging.getLogger("remotepad.press")

EmitFn = Callable[[str], bool]


@dataclass
class _Slot:
    state: PressState = PressState.IDLE
    token: int = 0
    hold_timer: threading.Timer | None = None
    repeat_timer: RepeatingTimer | None = None


class PressTracker:
    """Tap/hold state machine per button.

    A press emits one event straight away. If it is still held after
    ``hold_threshold_s`` it repeats every ``repeat_period_s`` until released.
    Releasing never emits, and a press whose first event is rejected stays
    a plain tap. Every timer callback carries the slot token it
    was armed with, so a callback that lost a race with release is a no-op.
    """

    def __init__(
        self,
        emit: EmitFn,
        buttons: Iterable[str] = DEFAULT_BUTTONS,
        hold_threshold_s: float = 0.5,
        repeat_period_s: float = 0.05,
        lock: threading.RLock | None = None,
    ) -> None:
        self._emit_fn = emit
        self.hold_threshold_s = hold_threshold_s
        self.repeat_period_s = repeat_period_s
        self._lock = lock or threading.RLock()
        self._slots: dict[str, _Slot] = {label: _Slot() for label in buttons}

    @property
    def buttons(self) -> tuple[str, ...]:
        return tuple(self._slots)

    def state_of(self, label: str) -> PressState:
        with self._lock:
            return self._slot(label).state

    def press_start(self, label: str) -> None:
        with self._lock:
            slot = self._slot(label)
            if slot.state != PressState.IDLE:
                _LOGGER.debug(f"ignored duplicate press on {label}", extra={"event": "press_ignored"})
                return
            accepted = self._emit(label)
            slot.state = PressState.TAPPED_PENDING
            slot.token += 1
            if not accepted:
                # A press the connection refused never escalates into repeats.
                return
            token = slot.token
            slot.hold_timer = start_timer(
                self.hold_threshold_s,
                lambda: self._on_hold(label, token),
                name=f"remotepad-hold-{label}",
            )

    def press_end(self, label: str) -> None:
        with self._lock:
            slot = self._slot(label)
            if slot.state == PressState.HOLD_ARMED:
                _LOGGER.debug(f"hold released on {label}", extra={"event": "hold_end"})
            self._reset(slot)

    def tap(self, label: str) -> bool:
        with self._lock:
            slot = self._slot(label)
            if slot.state != PressState.IDLE:
                return False
            return self._emit(label)

    def cancel_all(self) -> None:
        with self._lock:
            for slot in self._slots.values():
                self._reset(slot)

    def _slot(self, label: str) -> _Slot:
        try:
            return self._slots[label]
        except KeyError:
            raise ValueError(f"Unknown button: {label!r}") from None

    def _reset(self, slot: _Slot) -> None:
        slot.token += 1
        if slot.hold_timer is not None:
            slot.hold_timer.cancel()
            slot.hold_timer = None
        if slot.repeat_timer is not None:
            slot.repeat_timer.cancel()
            slot.repeat_timer = None
        slot.state = PressState.IDLE

    def _on_hold(self, label: str, token: int) -> None:
        with self._lock:
            slot = self._slots[label]
            if slot.token != token or slot.state != PressState.TAPPED_PENDING:
                return
            slot.hold_timer = None
            slot.state = PressState.HOLD_ARMED
            slot.repeat_timer = RepeatingTimer(
                self.repeat_period_s,
                lambda: self._on_repeat(label, token),
                name=f"remotepad-repeat-{label}",
            )
            slot.repeat_timer.start()
            _LOGGER.debug(f"hold armed on {label}", extra={"event": "hold_start"})

    def _on_repeat(self, label: str, token: int) -> None:
        with self._lock:
            slot = self._slots[label]
            if slot.token != token or slot.state != PressState.HOLD_ARMED:
                return
            self._emit(label)

    def _emit(self, label: str) -> bool:
        try:
            return bool(self._emit_fn(label))
        except Exception:
            _LOGGER.exception(f"emit failed for {label}", extra={"event": "emit_error"})
            return False
