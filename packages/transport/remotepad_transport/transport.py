"""Socket transport endpoint for one outbound peer connection."""

from __future__ import annotations

import errno
import logging
import socket
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from .models import EndpointEvent, EndpointState, PeerAddress, TransportMode


_LOGGER = logging.getLogger("remotepad.transport")

StateCallback = Callable[[EndpointEvent], None]

# Path problems that may clear up on their own; anything else is a hard failure.
_TRANSIENT_ERRNOS = {
    code
    for code in (
        getattr(errno, "ENETUNREACH", None),
        getattr(errno, "EHOSTUNREACH", None),
        getattr(errno, "ENETDOWN", None),
        getattr(errno, "EHOSTDOWN", None),
    )
    if code is not None
}


def _describe(exc: BaseException) -> str:
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc) or exc.__class__.__name__


def _is_transient(exc: OSError) -> bool:
    if isinstance(exc, socket.gaierror):
        return False
    if isinstance(exc, (socket.timeout, TimeoutError)):
        return True
    return exc.errno in _TRANSIENT_ERRNOS


def _failed_future(error: Exception) -> Future:
    fut: Future = Future()
    fut.set_exception(error)
    return fut


class TransportEndpoint:
    """Thin wrapper over one outbound socket with asynchronous state reporting.

    ``start()`` connects on a background thread and reports progress through
    ``on_state``. ``send()`` hands bytes to a single writer thread and returns
    a future. ``close()`` may be called any number of times from any thread.
    """

    def __init__(
        self,
        address: PeerAddress,
        on_state: StateCallback,
        mode: TransportMode | str = TransportMode.TCP,
        connect_timeout_s: float = 10.0,
        waiting_retry_s: float = 1.0,
    ) -> None:
        self.address = address
        self.mode = TransportMode(mode)
        self.connect_timeout_s = connect_timeout_s
        self.waiting_retry_s = waiting_retry_s
        self._on_state = on_state
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self._sock: socket.socket | None = None
        self._writer: ThreadPoolExecutor | None = None
        self._started = False
        self._ready = False

    @property
    def is_open(self) -> bool:
        return self._started and not self._closed.is_set()

    @property
    def is_ready(self) -> bool:
        return self._ready and not self._closed.is_set()

    def start(self) -> None:
        with self._lock:
            if self._closed.is_set():
                raise RuntimeError("Endpoint is closed")
            if self._started:
                return
            self._started = True
            self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="remotepad-writer")
        thread = threading.Thread(
            target=self._connect_loop,
            name=f"remotepad-connect-{self.address}",
            daemon=True,
        )
        thread.start()

    def send(self, payload: bytes) -> Future:
        with self._lock:
            writer = self._writer
            usable = self._ready and not self._closed.is_set() and writer is not None
        if not usable:
            return _failed_future(ConnectionError("Endpoint is not ready"))
        try:
            return writer.submit(self._write, bytes(payload))
        except RuntimeError:
            # Writer was shut down by a concurrent close().
            return _failed_future(ConnectionError("Endpoint is closed"))

    def close(self) -> None:
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._ready = False
            sock, self._sock = self._sock, None
            writer, self._writer = self._writer, None
            started = self._started

        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()
        if writer is not None:
            writer.shutdown(wait=False, cancel_futures=True)
        if started:
            _LOGGER.debug("endpoint closed", extra={"event": "endpoint_closed"})
            self._emit(EndpointState.CANCELLED)

    def _emit(self, state: EndpointState, error: str | None = None) -> None:
        if self._closed.is_set() and state != EndpointState.CANCELLED:
            return
        try:
            self._on_state(EndpointEvent(state=state, error=error))
        except Exception:
            _LOGGER.exception("endpoint state callback failed", extra={"event": "endpoint_callback_error"})

    def _connect_loop(self) -> None:
        while not self._closed.is_set():
            self._emit(EndpointState.PREPARING)
            try:
                sock = self._open_socket()
            except OSError as exc:
                if self._closed.is_set():
                    return
                if _is_transient(exc):
                    _LOGGER.info(
                        f"waiting for path to {self.address}: {_describe(exc)}",
                        extra={"event": "endpoint_waiting"},
                    )
                    self._emit(EndpointState.WAITING, _describe(exc))
                    if self._closed.wait(self.waiting_retry_s):
                        return
                    continue
                _LOGGER.warning(
                    f"connect to {self.address} failed: {_describe(exc)}",
                    extra={"event": "endpoint_failed"},
                )
                self._emit(EndpointState.FAILED, _describe(exc))
                return

            with self._lock:
                if self._closed.is_set():
                    sock.close()
                    return
                self._sock = sock
                self._ready = True
            self._emit(EndpointState.READY)

            if self.mode == TransportMode.TCP:
                self._watch(sock)
            return

    def _open_socket(self) -> socket.socket:
        socktype = socket.SOCK_STREAM if self.mode == TransportMode.TCP else socket.SOCK_DGRAM
        infos = socket.getaddrinfo(self.address.host, self.address.port, 0, socktype)
        last_error: OSError | None = None
        for family, kind, proto, _name, sockaddr in infos:
            sock = socket.socket(family, kind, proto)
            with self._lock:
                if self._closed.is_set():
                    sock.close()
                    raise ConnectionAbortedError("Endpoint closed while connecting")
                # Published so close() can abort a blocking connect.
                self._sock = sock
            try:
                if self.mode == TransportMode.TCP:
                    sock.settimeout(self.connect_timeout_s)
                    sock.connect(sockaddr)
                    sock.settimeout(None)
                    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                else:
                    sock.connect(sockaddr)
                return sock
            except OSError as exc:
                last_error = exc
                with self._lock:
                    if self._sock is sock:
                        self._sock = None
                sock.close()
        raise last_error or OSError(f"No usable address for {self.address}")

    def _watch(self, sock: socket.socket) -> None:
        while not self._closed.is_set():
            try:
                data = sock.recv(1024)
            except OSError as exc:
                self._lose(_describe(exc))
                return
            if not data:
                self._lose("connection closed by peer")
                return
            _LOGGER.debug(f"ignored {len(data)} bytes from peer", extra={"event": "endpoint_rx"})

    def _lose(self, reason: str) -> None:
        with self._lock:
            if self._closed.is_set():
                return
            self._ready = False
        _LOGGER.warning(f"connection to {self.address} lost: {reason}", extra={"event": "endpoint_lost"})
        self._emit(EndpointState.FAILED, reason)

    def _write(self, payload: bytes) -> int:
        with self._lock:
            sock = self._sock
            if sock is None or self._closed.is_set():
                raise ConnectionError("Endpoint is closed")
        if self.mode == TransportMode.TCP:
            sock.sendall(payload)
            return len(payload)
        return int(sock.send(payload))
