"""Diagnostics export helpers for local support bundles."""

from __future__ import annotations

import ipaddress
import json
import platform
import re
import socket
import tempfile
import zipfile
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import psutil

from .config import AppConfig, config_path
from .logging_setup import log_dir


_SECRET_RE = re.compile(r"(token|secret|password|apikey|api_key|auth)", re.IGNORECASE)


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, Path):
        return str(value)
    return value


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if _SECRET_RE.search(k):
                out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def local_interfaces() -> list[dict[str, Any]]:
    """IPv4 interfaces that are up, with their networks."""
    stats = psutil.net_if_stats()
    rows: list[dict[str, Any]] = []
    for name, addrs in sorted(psutil.net_if_addrs().items()):
        if name in stats and not stats[name].isup:
            continue
        for addr in addrs:
            if addr.family != socket.AF_INET or not addr.netmask:
                continue
            try:
                network = ipaddress.ip_network(f"{addr.address}/{addr.netmask}", strict=False)
            except ValueError:
                continue
            rows.append({"interface": name, "address": addr.address, "network": str(network)})
    return rows


def peer_on_local_network(host: str, interfaces: list[dict[str, Any]]) -> bool | None:
    """True/False when ``host`` is a literal IPv4 address, None for hostnames."""
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return None
    return any(ip in ipaddress.ip_network(row["network"]) for row in interfaces)


def build_doctor_payload(cfg: AppConfig) -> dict[str, Any]:
    interfaces = local_interfaces()
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "config": redact(asdict(cfg)),
        "peer": f"{cfg.peer.host}:{cfg.peer.port}",
        "transport": cfg.peer.transport,
        "interfaces": interfaces,
        "peer_on_local_network": peer_on_local_network(cfg.peer.host, interfaces),
    }


class DiagnosticsExporter:
    def __init__(self, app_name: str = "RemotePad") -> None:
        self.app_name = app_name

    def bundle(
        self,
        cfg: AppConfig,
        doctor_payload: dict[str, Any],
        recent_connection_events: list[dict[str, Any]] | None = None,
        output_dir: Path | None = None,
    ) -> Path:
        output_base = output_dir or Path(tempfile.gettempdir())
        output_base.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        zip_path = output_base / f"remotepad-diagnostics-{stamp}.zip"

        logs_root = log_dir()
        logs = sorted(logs_root.glob("*.log*"))

        with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            manifest = {
                "app": self.app_name,
                "created_utc": datetime.now(timezone.utc).isoformat(),
                "host": platform.platform(),
                "python": platform.python_version(),
                "config_path": str(config_path()),
                "log_dir": str(logs_root),
            }
            zf.writestr("manifest.json", json.dumps(manifest, indent=2, sort_keys=True))
            zf.writestr("doctor.json", json.dumps(redact(doctor_payload), indent=2, sort_keys=True, default=_jsonable))
            zf.writestr("config.redacted.json", json.dumps(redact(asdict(cfg)), indent=2, sort_keys=True))
            zf.writestr(
                "connection_events.json",
                json.dumps(redact(recent_connection_events or []), indent=2, sort_keys=True, default=_jsonable),
            )

            for item in logs:
                zf.write(item, arcname=f"logs/{item.name}")

        return zip_path
