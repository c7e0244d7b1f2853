"""Connection lifecycle state machine with timeout, heartbeat, and serialized sends."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable

from remotepad_transport import EndpointEvent, EndpointState, PeerAddress, TransportEndpoint, TransportMode

from .heartbeat import HeartbeatMonitor
from .models import ConnectionStatus, StatusKind
from .observable import ObservableValue
from .send_serializer import SendSerializer
from .timers import start_timer


_LOGGER = logging.getLogger("remotepad.connection")

EndpointFactory = Callable[..., Any]

_TIMED_STATES = (StatusKind.CONNECTING, StatusKind.PREPARING)
_PENDING_STATES = (StatusKind.CONNECTING, StatusKind.PREPARING, StatusKind.WAITING)


class ConnectionController:
    """Owns at most one transport endpoint and publishes its status.

    Every mutation happens under one lock: caller operations, endpoint
    notifications, timer callbacks, and the send queue all share it. Each
    endpoint is tagged with a generation number, so notifications from an
    endpoint that has already been released are dropped.
    """

    def __init__(
        self,
        mode: TransportMode | str = TransportMode.TCP,
        connect_timeout_s: float = 10.0,
        heartbeat_period_s: float = 2.0,
        send_timeout_s: float = 2.0,
        waiting_retry_s: float = 1.0,
        endpoint_factory: EndpointFactory | None = None,
        lock: threading.RLock | None = None,
    ) -> None:
        self.mode = TransportMode(mode)
        self.connect_timeout_s = connect_timeout_s
        self.waiting_retry_s = waiting_retry_s
        self._factory = endpoint_factory or TransportEndpoint
        self._lock = lock or threading.RLock()

        self.status: ObservableValue[ConnectionStatus] = ObservableValue(ConnectionStatus(), lock=self._lock)
        self.sender = SendSerializer(self.active_endpoint, lock=self._lock, send_timeout_s=send_timeout_s)
        self.heartbeat = HeartbeatMonitor(heartbeat_period_s, self.sender.submit, self._on_heartbeat_failed)

        self._endpoint: Any | None = None
        self._address: PeerAddress | None = None
        self._generation = 0
        self._timeout_timer: threading.Timer | None = None
        self._events: list[dict[str, Any]] = []

    @property
    def is_connected(self) -> bool:
        return self.status.value.is_connected

    @property
    def address(self) -> PeerAddress | None:
        return self._address

    def subscribe(self, callback: Callable[[ConnectionStatus], None]) -> Callable[[], None]:
        return self.status.subscribe(callback)

    def active_endpoint(self) -> Any | None:
        with self._lock:
            if self.status.value.kind != StatusKind.CONNECTED:
                return None
            return self._endpoint

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        with self._lock:
            return self._events[-limit:]

    def _log_event(self, event: str, **fields: Any) -> None:
        row = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "state": self.status.value.kind.value,
        }
        row.update(fields)
        self._events.append(row)
        if len(self._events) > 1000:
            self._events = self._events[-1000:]

    def connect(self, address: PeerAddress | None = None) -> None:
        with self._lock:
            if address is not None:
                self._address = address
            if self._address is None:
                raise ValueError("No peer address configured")
            if self._endpoint is not None:
                self.disconnect()

            self._generation += 1
            generation = self._generation
            target = self._address
            self._endpoint = self._factory(
                target,
                lambda event: self._on_endpoint_event(generation, event),
                mode=self.mode,
                connect_timeout_s=self.connect_timeout_s,
                waiting_retry_s=self.waiting_retry_s,
            )
            _LOGGER.info(
                f"connecting to {target} over {self.mode.value}",
                extra={"event": "connect_start"},
            )
            self._transition(ConnectionStatus(StatusKind.CONNECTING), address=str(target))
            self._arm_timeout(generation)
            self._endpoint.start()

    def disconnect(self) -> None:
        with self._lock:
            self._disarm_timeout()
            self.heartbeat.stop()
            self._release_endpoint()
            if self.status.value.kind == StatusKind.DISCONNECTED:
                return
            self._transition(ConnectionStatus(StatusKind.CANCELLED))
            self._transition(ConnectionStatus(StatusKind.DISCONNECTED))

    def close(self) -> None:
        self.disconnect()
        self.sender.close()

    def _transition(self, status: ConnectionStatus, **fields: Any) -> None:
        previous = self.status.value
        if previous == status:
            return
        if previous.kind == StatusKind.CONNECTED and status.kind != StatusKind.CONNECTED:
            self.heartbeat.stop()
            self.sender.discard_pending()
        if status.kind not in _TIMED_STATES:
            self._disarm_timeout()

        self.status.set(status)
        self._log_event("status", status=status.kind.value, reason=status.reason, **fields)
        _LOGGER.info(f"status {previous.label} -> {status.label}", extra={"event": "status_change"})

        if status.kind == StatusKind.CONNECTED:
            self.heartbeat.start()

    def _release_endpoint(self) -> None:
        # Bump first so the endpoint's own "cancelled" notification is stale.
        self._generation += 1
        endpoint, self._endpoint = self._endpoint, None
        if endpoint is not None:
            endpoint.close()

    def _on_endpoint_event(self, generation: int, event: EndpointEvent) -> None:
        with self._lock:
            if generation != self._generation or self._endpoint is None:
                return
            kind = self.status.value.kind
            state = event.state

            if state == EndpointState.PREPARING:
                if kind == StatusKind.CONNECTING:
                    self._transition(ConnectionStatus(StatusKind.PREPARING))
            elif state == EndpointState.READY:
                if kind in _PENDING_STATES:
                    self._transition(ConnectionStatus(StatusKind.CONNECTED))
            elif state == EndpointState.WAITING:
                if kind in _PENDING_STATES or kind == StatusKind.CONNECTED:
                    self._transition(ConnectionStatus(StatusKind.WAITING, event.error))
            elif state == EndpointState.FAILED:
                if kind in _PENDING_STATES or kind == StatusKind.CONNECTED:
                    self._release_endpoint()
                    self._transition(ConnectionStatus(StatusKind.FAILED, event.error))
            elif state == EndpointState.CANCELLED:
                self._release_endpoint()
                self._transition(ConnectionStatus(StatusKind.CANCELLED))
                self._transition(ConnectionStatus(StatusKind.DISCONNECTED))

    def _arm_timeout(self, generation: int) -> None:
        self._disarm_timeout()
        self._timeout_timer = start_timer(
            self.connect_timeout_s,
            lambda: self._on_timeout(generation),
            name="remotepad-connect-timeout",
        )

    def _disarm_timeout(self) -> None:
        timer, self._timeout_timer = self._timeout_timer, None
        if timer is not None:
            timer.cancel()

    def _on_timeout(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self.status.value.kind not in _TIMED_STATES:
                return
            self._timeout_timer = None
            _LOGGER.warning(
                f"connection to {self._address} timed out after {self.connect_timeout_s:g}s",
                extra={"event": "connect_timeout"},
            )
            self._release_endpoint()
            self._transition(ConnectionStatus(StatusKind.TIMED_OUT))

    def _on_heartbeat_failed(self, reason: str) -> None:
        with self._lock:
            if self.status.value.kind != StatusKind.CONNECTED:
                return
            self._log_event("heartbeat_failed", reason=reason)
            self._release_endpoint()
            self._transition(ConnectionStatus(StatusKind.CONNECTION_LOST))
