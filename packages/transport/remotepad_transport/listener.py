"""Debug receiver that plays the peer side: accepts events and reports raw payloads."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable

from .models import DEFAULT_PORT, TransportMode


_LOGGER = logging.getLogger("remotepad.listener")

PayloadCallback = Callable[[bytes, tuple], None]


class PeerListener:
    """Binds ``host:port`` and hands every received chunk to ``on_payload``.

    TCP chunks are whatever ``recv`` returned: the wire has no framing, so
    back-to-back events may arrive joined together.
    """

    def __init__(
        self,
        on_payload: PayloadCallback,
        host: str = "0.0.0.0",
        port: int = DEFAULT_PORT,
        mode: TransportMode | str = TransportMode.TCP,
    ) -> None:
        self.host = host
        self.mode = TransportMode(mode)
        self._requested_port = port
        self._on_payload = on_payload
        self._sock: socket.socket | None = None
        self._clients: list[socket.socket] = []
        self._lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def port(self) -> int:
        if self._sock is None:
            return self._requested_port
        return int(self._sock.getsockname()[1])

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def start(self) -> None:
        if self._sock is not None:
            return
        kind = socket.SOCK_STREAM if self.mode == TransportMode.TCP else socket.SOCK_DGRAM
        sock = socket.socket(socket.AF_INET, kind)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.host, self._requested_port))
        if self.mode == TransportMode.TCP:
            sock.listen(4)
            target = self._accept_loop
        else:
            target = self._datagram_loop
        self._sock = sock
        threading.Thread(target=target, name="remotepad-listener", daemon=True).start()
        _LOGGER.info(f"listening on {self.host}:{self.port} ({self.mode.value})", extra={"event": "listen_start"})

    def stop(self) -> None:
        self._stop.set()
        with self._lock:
            clients, self._clients = self._clients, []
        for client in clients:
            self._shutdown(client)
        if self._sock is not None:
            self._shutdown(self._sock)

    def drop_clients(self) -> None:
        """Close every accepted connection but keep listening."""
        with self._lock:
            clients, self._clients = self._clients, []
        for client in clients:
            self._shutdown(client)

    @staticmethod
    def _shutdown(sock: socket.socket) -> None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()

    def _accept_loop(self) -> None:
        while not self._stop.is_set():
            try:
                client, addr = self._sock.accept()
            except OSError:
                return
            with self._lock:
                self._clients.append(client)
            threading.Thread(
                target=self._client_loop,
                args=(client, addr),
                name=f"remotepad-listener-{addr[0]}",
                daemon=True,
            ).start()

    def _client_loop(self, client: socket.socket, addr: tuple) -> None:
        _LOGGER.info(f"peer connected from {addr[0]}:{addr[1]}", extra={"event": "listen_accept"})
        while not self._stop.is_set():
            try:
                data = client.recv(1024)
            except OSError:
                break
            if not data:
                break
            self._deliver(data, addr)
        with self._lock:
            owned = client in self._clients
            if owned:
                self._clients.remove(client)
        if owned:
            self._shutdown(client)
        _LOGGER.info(f"peer {addr[0]}:{addr[1]} disconnected", extra={"event": "listen_close"})

    def _datagram_loop(self) -> None:
        while not self._stop.is_set():
            try:
                data, addr = self._sock.recvfrom(1024)
            except OSError:
                return
            self._deliver(data, addr)

    def _deliver(self, data: bytes, addr: tuple) -> None:
        try:
            self._on_payload(data, addr)
        except Exception:
            _LOGGER.exception("payload callback failed", extra={"event": "listen_callback_error"})
