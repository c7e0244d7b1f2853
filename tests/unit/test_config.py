import json
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "transport"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from remotepad_core.config import AppConfig, load_config, save_config
from remotepad_core.models import DEFAULT_BUTTONS


class ConfigTests(unittest.TestCase):
    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_config(Path(tmp) / "missing.json")
            self.assertIsInstance(cfg, AppConfig)
            self.assertEqual(cfg.peer.port, 12345)
            self.assertEqual(cfg.peer.transport, "tcp")
            self.assertEqual(cfg.timing.hold_threshold_s, 0.5)
            self.assertEqual(cfg.timing.repeat_period_s, 0.05)
            self.assertEqual(tuple(cfg.buttons.labels), DEFAULT_BUTTONS)

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            cfg = load_config(path)
            cfg.peer.host = "10.0.0.5"
            cfg.peer.transport = "udp"
            cfg.timing.heartbeat_period_s = 3.0
            save_config(cfg, path)
            reloaded = load_config(path)
            self.assertEqual(reloaded.peer.host, "10.0.0.5")
            self.assertEqual(reloaded.peer.transport, "udp")
            self.assertEqual(reloaded.timing.heartbeat_period_s, 3.0)
            self.assertEqual(str(reloaded.peer_address()), "10.0.0.5:12345")

    def test_corrupt_file_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.peer.host, "192.168.1.100")

    def test_normalizes_out_of_range_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            raw = {
                "peer": {"host": "  ", "port": 99999, "transport": "carrier-pigeon", "unknown": 1},
                "timing": {"connect_timeout_s": 0, "repeat_period_s": "fast", "hold_threshold_s": 30},
                "buttons": {"labels": ["A", "A", " ", "B"]},
            }
            path.write_text(json.dumps(raw), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.peer.host, "192.168.1.100")
            self.assertEqual(cfg.peer.port, 12345)
            self.assertEqual(cfg.peer.transport, "tcp")
            self.assertEqual(cfg.timing.connect_timeout_s, 1.0)
            self.assertEqual(cfg.timing.repeat_period_s, 0.05)
            self.assertEqual(cfg.timing.hold_threshold_s, 5.0)
            self.assertEqual(cfg.buttons.labels, ["A", "B"])


if __name__ == "__main__":
    unittest.main()
