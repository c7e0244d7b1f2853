"""Single-writer FIFO queue between event producers and the active endpoint."""

from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Callable

from remotepad_transport import SendResult

from .models import OutboundEvent


_LOGGER = logging.getLogger("remotepad.sender")

EndpointProvider = Callable[[], Any]
CompletionCallback = Callable[[OutboundEvent, SendResult], None]


@dataclass
class _Pending:
    event: OutboundEvent
    endpoint: Any
    on_complete: CompletionCallback | None


class SendSerializer:
    """Accepts events from any thread and transmits them one at a time.

    ``endpoint_provider`` returns the endpoint to write to, or None when the
    connection is not usable; in that case the event is rejected, never
    buffered.
    """

    def __init__(
        self,
        endpoint_provider: EndpointProvider,
        lock: threading.RLock | None = None,
        send_timeout_s: float = 2.0,
    ) -> None:
        self._provider = endpoint_provider
        self._lock = lock or threading.RLock()
        self._wakeup = threading.Condition(self._lock)
        self._queue: deque[_Pending] = deque()
        self._thread: threading.Thread | None = None
        self._closed = False
        self.send_timeout_s = send_timeout_s

        self.sent_count = 0
        self.failed_count = 0
        self.rejected_count = 0

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def submit(self, event: OutboundEvent, on_complete: CompletionCallback | None = None) -> bool:
        with self._lock:
            endpoint = None if self._closed else self._provider()
            if endpoint is None:
                self.rejected_count += 1
                _LOGGER.warning(
                    f"send rejected, not connected: {event.label}",
                    extra={"event": "send_rejected"},
                )
                return False
            self._queue.append(_Pending(event=event, endpoint=endpoint, on_complete=on_complete))
            self._ensure_worker()
            self._wakeup.notify()
            return True

    def discard_pending(self) -> int:
        with self._lock:
            dropped = list(self._queue)
            self._queue.clear()
            for item in dropped:
                self._complete(item, SendResult(ok=False, error="discarded"))
        if dropped:
            _LOGGER.info(f"discarded {len(dropped)} queued events", extra={"event": "send_discarded"})
        return len(dropped)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._wakeup.notify_all()
        self.discard_pending()

    def _ensure_worker(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._drain, name="remotepad-sender", daemon=True)
        self._thread.start()

    def _drain(self) -> None:
        while True:
            with self._wakeup:
                while not self._queue and not self._closed:
                    self._wakeup.wait()
                if not self._queue:
                    return
                item = self._queue.popleft()
            self._complete(item, self._transmit(item))

    def _transmit(self, item: _Pending) -> SendResult:
        future = item.endpoint.send(item.event.payload())
        try:
            sent = int(future.result(timeout=self.send_timeout_s))
        except FutureTimeout:
            future.cancel()
            result = SendResult(ok=False, error="send timed out")
        except Exception as exc:
            result = SendResult(ok=False, error=str(exc) or exc.__class__.__name__)
        else:
            result = SendResult(ok=True, bytes_sent=sent)

        with self._lock:
            if result.ok:
                self.sent_count += 1
            else:
                self.failed_count += 1

        if result.ok:
            _LOGGER.debug(f"sent {item.event.label}", extra={"event": "send_ok"})
        else:
            _LOGGER.error(f"send failed for {item.event.label}: {result.error}", extra={"event": "send_error"})
        return result

    @staticmethod
    def _complete(item: _Pending, result: SendResult) -> None:
        if item.on_complete is None:
            return
        try:
            item.on_complete(item.event, result)
        except Exception:
            _LOGGER.exception("send completion callback failed", extra={"event": "send_callback_error"})
