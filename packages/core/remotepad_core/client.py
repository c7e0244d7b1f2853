"""Caller-facing facade tying connection, send queue, and press tracking together."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from remotepad_transport import PeerAddress

from .config import AppConfig
from .connection_controller import ConnectionController, EndpointFactory
from .models import ConnectionStatus, OutboundEvent, PressState, StatusKind
from .observable import ObservableValue
from .press_tracker import PressTracker


_LOGGER = logging.getLogger("remotepad.client")


class RemoteClient:
    """Remote-control client for one peer.

    All operations return immediately; results arrive through ``status``
    (and the send queue's completion callbacks). Nothing here reconnects on
    its own: every connection starts with an explicit ``connect()``.
    """

    def __init__(self, config: AppConfig | None = None, endpoint_factory: EndpointFactory | None = None) -> None:
        self.config = config or AppConfig()
        timing = self.config.timing
        self._lock = threading.RLock()

        self.peer: ObservableValue[PeerAddress] = ObservableValue(self.config.peer_address(), lock=self._lock)
        self.controller = ConnectionController(
            mode=self.config.peer.transport,
            connect_timeout_s=timing.connect_timeout_s,
            heartbeat_period_s=timing.heartbeat_period_s,
            send_timeout_s=timing.send_timeout_s,
            waiting_retry_s=timing.waiting_retry_s,
            endpoint_factory=endpoint_factory,
            lock=self._lock,
        )
        self.tracker = PressTracker(
            self.send_button_press,
            buttons=self.config.buttons.labels,
            hold_threshold_s=timing.hold_threshold_s,
            repeat_period_s=timing.repeat_period_s,
            lock=self._lock,
        )
        self._unsubscribe = self.controller.subscribe(self._on_status)

    @property
    def status(self) -> ObservableValue[ConnectionStatus]:
        return self.controller.status

    @property
    def buttons(self) -> tuple[str, ...]:
        return self.tracker.buttons

    def subscribe(self, callback: Callable[[ConnectionStatus], None]) -> Callable[[], None]:
        return self.controller.subscribe(callback)

    def set_peer_host(self, host: str) -> PeerAddress:
        address = PeerAddress(host=host.strip(), port=self.peer.value.port)
        self.peer.set(address)
        return address

    def connect(self, address: PeerAddress | None = None) -> None:
        with self._lock:
            if address is not None:
                self.peer.set(address)
            self.controller.connect(self.peer.value)

    def disconnect(self) -> None:
        with self._lock:
            self.tracker.cancel_all()
            self.controller.disconnect()

    def send_button_press(self, label: str) -> bool:
        if label not in self.tracker.buttons:
            raise ValueError(f"Unknown button: {label!r}")
        return self.controller.sender.submit(OutboundEvent(label))

    def press_start(self, label: str) -> None:
        self.tracker.press_start(label)

    def press_end(self, label: str) -> None:
        self.tracker.press_end(label)

    def tap(self, label: str) -> bool:
        return self.tracker.tap(label)

    def press_state(self, label: str) -> PressState:
        return self.tracker.state_of(label)

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        return self.controller.recent_events(limit)

    def close(self) -> None:
        with self._lock:
            self.tracker.cancel_all()
            self._unsubscribe()
        self.controller.close()

    def _on_status(self, status: ConnectionStatus) -> None:
        if status.kind != StatusKind.CONNECTED:
            # Held buttons must not keep repeating into a dead connection.
            self.tracker.cancel_all()
