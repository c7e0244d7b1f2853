"""Thread-safe value holder that publishes every change to subscribers in order."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar


_LOGGER = logging.getLogger("remotepad.observable")

T = TypeVar("T")


class ObservableValue(Generic[T]):
    """Current value plus an ordered change stream.

    Subscribers run under the owner's lock, so deliveries never interleave
    and arrive in the order the changes happened. Keep them short.
    """

    def __init__(self, value: T, lock: threading.RLock | None = None) -> None:
        self._value = value
        self._lock = lock or threading.RLock()
        self._subscribers: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> bool:
        with self._lock:
            if value == self._value:
                return False
            self._value = value
            for callback in list(self._subscribers):
                self._deliver(callback, value)
            return True

    def subscribe(self, callback: Callable[[T], None], replay: bool = True) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)
            if replay:
                self._deliver(callback, self._value)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    @staticmethod
    def _deliver(callback: Callable[[T], None], value: T) -> None:
        try:
            callback(value)
        except Exception:
            _LOGGER.exception("subscriber failed", extra={"event": "subscriber_error"})
