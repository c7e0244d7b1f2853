"""One-shot and repeating timers backed by daemon threads."""

from __future__ import annotations

import logging
import threading
from typing import Callable


_LOGGER = logging.getLogger("remotepad.timers")


def start_timer(delay_s: float, callback: Callable[[], None], name: str | None = None) -> threading.Timer:
    timer = threading.Timer(max(delay_s, 0.0), callback)
    timer.daemon = True
    if name:
        timer.name = name
    timer.start()
    return timer


class RepeatingTimer:
    """Calls ``callback`` every ``interval_s`` until cancelled.

    The first call happens one interval after ``start()``.
    """

    def __init__(self, interval_s: float, callback: Callable[[], None], name: str | None = None) -> None:
        self.interval_s = interval_s
        self._callback = callback
        self._name = name or "remotepad-repeat"
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._stop.set()

    def _run(self) -> None:
        while not self._stop.wait(timeout=self.interval_s):
            try:
                self._callback()
            except Exception:
                _LOGGER.exception(f"{self._name} callback failed", extra={"event": "timer_error"})
