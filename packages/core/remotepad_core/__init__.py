"""Core services: connection state machine, send queue, press tracking, settings, and diagnostics."""

from .client import RemoteClient
from .config import AppConfig, load_config, save_config
from .connection_controller import ConnectionController
from .diagnostics import DiagnosticsExporter, build_doctor_payload
from .heartbeat import HeartbeatMonitor
from .models import DEFAULT_BUTTONS, HEARTBEAT_LABEL, ConnectionStatus, OutboundEvent, PressState, StatusKind
from .observable import ObservableValue
from .press_tracker import PressTracker
from .send_serializer import SendSerializer

__all__ = [
    "AppConfig",
    "ConnectionController",
    "ConnectionStatus",
    "DEFAULT_BUTTONS",
    "DiagnosticsExporter",
    "HEARTBEAT_LABEL",
    "HeartbeatMonitor",
    "ObservableValue",
    "OutboundEvent",
    "PressState",
    "PressTracker",
    "RemoteClient",
    "SendSerializer",
    "StatusKind",
    "build_doctor_payload",
    "load_config",
    "save_config",
]
