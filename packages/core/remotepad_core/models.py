"""Typed models for connection status, press state, and outbound events."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum


HEARTBEAT_LABEL = "HEARTBEAT"
DEFAULT_BUTTONS = ("L1", "L2", "L3", "L4", "R1", "R2", "R3", "R4")


class StatusKind(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    PREPARING = "Preparing"
    WAITING = "Waiting"
    CONNECTED = "Connected"
    CONNECTION_LOST = "ConnectionLost"
    FAILED = "Failed"
    TIMED_OUT = "TimedOut"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class ConnectionStatus:
    kind: StatusKind = StatusKind.DISCONNECTED
    reason: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.kind == StatusKind.CONNECTED

    @property
    def label(self) -> str:
        if self.reason:
            return f"{self.kind.value}: {self.reason}"
        return self.kind.value


class PressState(str, Enum):
    IDLE = "Idle"
    TAPPED_PENDING = "TappedPending"
    HOLD_ARMED = "HoldArmed"


@dataclass(frozen=True)
class OutboundEvent:
    label: str
    created_at: float = field(default_factory=time.monotonic)

    @classmethod
    def heartbeat(cls) -> "OutboundEvent":
        return cls(HEARTBEAT_LABEL)

    @property
    def is_heartbeat(self) -> bool:
        return self.label == HEARTBEAT_LABEL

    def payload(self) -> bytes:
        return self.label.encode("utf-8")
