"""Periodic liveness probe for an established connection."""

from __future__ import annotations

import logging
from typing import Callable

from remotepad_transport import SendResult

from .models import OutboundEvent
from .send_serializer import CompletionCallback
from .timers import RepeatingTimer


_LOGGER = logging.getLogger("remotepad.heartbeat")

SubmitFn = Callable[[OutboundEvent, CompletionCallback], bool]


class HeartbeatMonitor:
    """Sends a heartbeat every ``period_s`` and reports the first failed probe.

    Each period is an independent probe; there is no retry. Results from a
    timer that has since been stopped or replaced are ignored.
    """

    def __init__(self, period_s: float, submit: SubmitFn, on_failure: Callable[[str], None]) -> None:
        self.period_s = period_s
        self._submit = submit
        self._on_failure = on_failure
        self._timer: RepeatingTimer | None = None

    @property
    def running(self) -> bool:
        return self._timer is not None and self._timer.active

    def start(self) -> None:
        if self.running:
            return
        timer = RepeatingTimer(self.period_s, lambda: self._probe(timer), name="remotepad-heartbeat")
        self._timer = timer
        timer.start()
        _LOGGER.debug("heartbeat started", extra={"event": "heartbeat_start"})

    def stop(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            _LOGGER.debug("heartbeat stopped", extra={"event": "heartbeat_stop"})

    def _probe(self, timer: RepeatingTimer) -> None:
        if timer is not self._timer or not timer.active:
            return
        accepted = self._submit(
            OutboundEvent.heartbeat(),
            lambda _event, result: self._on_result(timer, result),
        )
        if not accepted:
            self._fail(timer, "not connected")

    def _on_result(self, timer: RepeatingTimer, result: SendResult) -> None:
        if not result.ok:
            self._fail(timer, result.error or "send failed")

    def _fail(self, timer: RepeatingTimer, reason: str) -> None:
        if timer is not self._timer:
            return
        _LOGGER.warning(f"heartbeat failed: {reason}", extra={"event": "heartbeat_failed"})
        self._on_failure(reason)
