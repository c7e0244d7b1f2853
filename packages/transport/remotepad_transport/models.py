"""Typed models for peer addressing, transport modes, and endpoint state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


DEFAULT_PORT = 12345


class TransportMode(str, Enum):
    TCP = "tcp"
    UDP = "udp"


class EndpointState(str, Enum):
    PREPARING = "preparing"
    READY = "ready"
    WAITING = "waiting"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PeerAddress:
    host: str
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if not self.host or not self.host.strip():
            raise ValueError("Peer host must not be empty")
        if not 0 < int(self.port) < 65536:
            raise ValueError(f"Invalid port: {self.port}")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class EndpointEvent:
    state: EndpointState
    error: str | None = None


@dataclass(frozen=True)
class SendResult:
    ok: bool
    bytes_sent: int = 0
    error: str | None = None
