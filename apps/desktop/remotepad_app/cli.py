"""CLI entrypoints for the RemotePad desktop client, diagnostics, and debug tools."""

from __future__ import annotations

import argparse
import json
import threading
import time
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from remotepad_core import (
    AppConfig,
    ConnectionStatus,
    DiagnosticsExporter,
    RemoteClient,
    StatusKind,
    build_doctor_payload,
    load_config,
    save_config,
)
from remotepad_core.logging_setup import configure_logging
from remotepad_transport import PeerListener


_SETTLED = {
    StatusKind.CONNECTED,
    StatusKind.FAILED,
    StatusKind.TIMED_OUT,
    StatusKind.CANCELLED,
    StatusKind.CONNECTION_LOST,
}


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _apply_peer_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    if getattr(args, "host", None):
        cfg.peer.host = args.host
    if getattr(args, "port", None):
        cfg.peer.port = int(args.port)
    if getattr(args, "transport", None):
        cfg.peer.transport = args.transport
    return cfg


def wait_for_settle(client: RemoteClient, timeout_s: float) -> ConnectionStatus:
    """Block until the status is connected or terminal, or ``timeout_s`` passes."""
    settled = threading.Event()

    def _watch(status: ConnectionStatus) -> None:
        if status.kind in _SETTLED:
            settled.set()

    unsubscribe = client.subscribe(_watch)
    try:
        settled.wait(timeout_s)
    finally:
        unsubscribe()
    return client.status.value


def cmd_run(_args: argparse.Namespace) -> int:
    from .app import run_gui

    return run_gui()


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg = load_config()
    payload = build_doctor_payload(cfg)

    if args.export:
        exporter = DiagnosticsExporter()
        out_dir = Path(args.out_dir).expanduser().resolve() if args.out_dir else None
        bundle = exporter.bundle(cfg=cfg, doctor_payload=payload, recent_connection_events=[], output_dir=out_dir)
        payload["diagnostics_bundle"] = str(bundle)

    _print_json(payload)
    return 0


def cmd_peer_show(_args: argparse.Namespace) -> int:
    cfg = load_config()
    _print_json(asdict(cfg.peer))
    return 0


def cmd_peer_set(args: argparse.Namespace) -> int:
    cfg = _apply_peer_overrides(load_config(), args)
    cfg.peer_address()  # validates host/port before saving
    path = save_config(cfg)
    _print_json({"saved": str(path), "peer": asdict(cfg.peer)})
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    cfg = _apply_peer_overrides(load_config(), args)
    client = RemoteClient(cfg)
    unknown = [b for b in args.buttons if b not in client.buttons]
    if unknown:
        _print_json({"success": False, "error": f"unknown buttons: {', '.join(unknown)}"})
        client.close()
        return 2

    client.connect()
    status = wait_for_settle(client, cfg.timing.connect_timeout_s + 1.0)
    if not status.is_connected:
        client.close()
        _print_json({"success": False, "peer": f"{cfg.peer.host}:{cfg.peer.port}", "status": status.label})
        return 1

    accepted = 0
    for button in args.buttons:
        if args.hold_ms > 0:
            client.press_start(button)
            time.sleep(args.hold_ms / 1000)
            client.press_end(button)
        elif client.tap(button):
            accepted += 1
        time.sleep(0.05)

    time.sleep(0.2)
    sender = client.controller.sender
    summary = {
        "success": True,
        "peer": f"{cfg.peer.host}:{cfg.peer.port}",
        "transport": cfg.peer.transport,
        "buttons": list(args.buttons),
        "sent": sender.sent_count,
        "failed": sender.failed_count,
        "rejected": sender.rejected_count,
        "status": client.status.value.label,
    }
    if args.hold_ms <= 0:
        summary["accepted"] = accepted
    client.close()
    _print_json(summary)
    return 0


def cmd_listen(args: argparse.Namespace) -> int:
    def _print_payload(data: bytes, addr: tuple) -> None:
        stamp = datetime.now().strftime("%H:%M:%S")
        print(f"[{stamp} - {addr[0]}] {data.decode('utf-8', errors='replace')}", flush=True)

    listener = PeerListener(_print_payload, host=args.bind, port=args.port, mode=args.transport)
    listener.start()
    print(f"Listening for button events on {args.bind}:{listener.port} ({args.transport}), Ctrl-C to stop")
    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        listener.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="remotepad", description="RemotePad remote-control client and tools")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Run desktop app")
    run_cmd.set_defaults(func=cmd_run)

    doctor_cmd = sub.add_parser("doctor", help="Print diagnostics and local network interfaces")
    doctor_cmd.add_argument("--export", action="store_true", help="Export offline diagnostics bundle")
    doctor_cmd.add_argument("--out-dir", default=None, help="Optional output directory for diagnostics bundle")
    doctor_cmd.set_defaults(func=cmd_doctor)

    peer_cmd = sub.add_parser("peer", help="Show or change the saved peer address")
    peer_sub = peer_cmd.add_subparsers(dest="peer_cmd", required=True)
    show_cmd = peer_sub.add_parser("show", help="Print saved peer settings")
    show_cmd.set_defaults(func=cmd_peer_show)
    set_cmd = peer_sub.add_parser("set", help="Save peer settings")
    set_cmd.add_argument("--host", default=None)
    set_cmd.add_argument("--port", type=int, default=None)
    set_cmd.add_argument("--transport", choices=["tcp", "udp"], default=None)
    set_cmd.set_defaults(func=cmd_peer_set)

    send_cmd = sub.add_parser("send", help="Connect, press buttons, and disconnect")
    send_cmd.add_argument("buttons", nargs="+", help="Button labels, e.g. L1 R2")
    send_cmd.add_argument("--hold-ms", type=int, default=0, help="Hold each button this long instead of tapping")
    send_cmd.add_argument("--host", default=None, help="Override saved peer host")
    send_cmd.add_argument("--port", type=int, default=None)
    send_cmd.add_argument("--transport", choices=["tcp", "udp"], default=None)
    send_cmd.set_defaults(func=cmd_send)

    listen_cmd = sub.add_parser("listen", help="Run a debug receiver that prints incoming button events")
    listen_cmd.add_argument("--bind", default="0.0.0.0")
    listen_cmd.add_argument("--port", type=int, default=12345)
    listen_cmd.add_argument("--transport", choices=["tcp", "udp"], default="tcp")
    listen_cmd.set_defaults(func=cmd_listen)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(console=False)
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
