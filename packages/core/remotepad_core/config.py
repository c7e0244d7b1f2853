"""Persistent app settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from remotepad_transport import DEFAULT_PORT, PeerAddress

from .models import DEFAULT_BUTTONS


CONFIG_VERSION = 1


@dataclass
class PeerConfig:
    host: str = "192.168.1.100"
    port: int = DEFAULT_PORT
    transport: str = "tcp"


@dataclass
class TimingConfig:
    connect_timeout_s: float = 10.0
    heartbeat_period_s: float = 2.0
    hold_threshold_s: float = 0.5
    repeat_period_s: float = 0.05
    send_timeout_s: float = 2.0
    waiting_retry_s: float = 1.0


@dataclass
class ButtonsConfig:
    labels: list[str] = field(default_factory=lambda: list(DEFAULT_BUTTONS))


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    peer: PeerConfig = field(default_factory=PeerConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    buttons: ButtonsConfig = field(default_factory=ButtonsConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)

    def peer_address(self) -> PeerAddress:
        return PeerAddress(host=self.peer.host, port=self.peer.port)


DEFAULT_CONFIG = AppConfig()


def config_path() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "RemotePad" / "config.json"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "RemotePad" / "config.json"
    return Path.home() / ".config" / "remotepad" / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    for k, v in (raw or {}).items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _clamp(value: Any, low: float, high: float, default: float) -> float:
    try:
        return float(max(low, min(high, float(value))))
    except (TypeError, ValueError):
        return default


def _normalize_peer(cfg: AppConfig) -> None:
    cfg.peer.host = str(cfg.peer.host or "").strip() or PeerConfig.host
    try:
        port = int(cfg.peer.port)
    except (TypeError, ValueError):
        port = DEFAULT_PORT
    cfg.peer.port = port if 0 < port < 65536 else DEFAULT_PORT
    if str(cfg.peer.transport).lower() not in ("tcp", "udp"):
        cfg.peer.transport = "tcp"
    cfg.peer.transport = str(cfg.peer.transport).lower()


def _normalize_timing(cfg: AppConfig) -> None:
    t = cfg.timing
    d = TimingConfig()
    t.connect_timeout_s = _clamp(t.connect_timeout_s, 1.0, 60.0, d.connect_timeout_s)
    t.heartbeat_period_s = _clamp(t.heartbeat_period_s, 0.2, 60.0, d.heartbeat_period_s)
    t.hold_threshold_s = _clamp(t.hold_threshold_s, 0.05, 5.0, d.hold_threshold_s)
    t.repeat_period_s = _clamp(t.repeat_period_s, 0.01, 1.0, d.repeat_period_s)
    t.send_timeout_s = _clamp(t.send_timeout_s, 0.1, 30.0, d.send_timeout_s)
    t.waiting_retry_s = _clamp(t.waiting_retry_s, 0.1, 30.0, d.waiting_retry_s)


def _normalize_buttons(cfg: AppConfig) -> None:
    labels = [str(v).strip() for v in (cfg.buttons.labels or []) if str(v).strip()]
    # Order-preserving de-dup; labels identify buttons.
    cfg.buttons.labels = list(dict.fromkeys(labels)) or list(DEFAULT_BUTTONS)


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return AppConfig()
    if not isinstance(data, dict):
        return AppConfig()

    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        peer=_merge(PeerConfig, data.get("peer", {})),
        timing=_merge(TimingConfig, data.get("timing", {})),
        buttons=_merge(ButtonsConfig, data.get("buttons", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_peer(cfg)
    _normalize_timing(cfg)
    _normalize_buttons(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
