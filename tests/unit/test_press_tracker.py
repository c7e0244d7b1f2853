import sys
import threading
import time
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "transport"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from remotepad_core.models import PressState
from remotepad_core.press_tracker import PressTracker


class Collector:
    def __init__(self, accept=True):
        self.accept = accept
        self.labels = []
        self.lock = threading.Lock()

    def __call__(self, label):
        with self.lock:
            self.labels.append(label)
        return self.accept

    def count(self, label=None):
        with self.lock:
            if label is None:
                return len(self.labels)
            return self.labels.count(label)


class PressTrackerTests(unittest.TestCase):
    def _tracker(self, collector, hold=0.1, repeat=0.05):
        tracker = PressTracker(collector, hold_threshold_s=hold, repeat_period_s=repeat)
        self.addCleanup(tracker.cancel_all)
        return tracker

    def test_tap_emits_exactly_one_event(self):
        events = Collector()
        tracker = self._tracker(events)
        tracker.press_start("L1")
        self.assertEqual(tracker.state_of("L1"), PressState.TAPPED_PENDING)
        tracker.press_end("L1")
        time.sleep(0.25)
        self.assertEqual(events.labels, ["L1"])
        self.assertEqual(tracker.state_of("L1"), PressState.IDLE)

    def test_hold_repeats_until_release(self):
        events = Collector()
        tracker = self._tracker(events, hold=0.1, repeat=0.05)
        tracker.press_start("R2")
        time.sleep(0.1 + 4 * 0.05)
        self.assertEqual(tracker.state_of("R2"), PressState.HOLD_ARMED)
        tracker.press_end("R2")
        released_count = events.count("R2")

        # 1 initial + 4 repeats, allowing for timer jitter.
        self.assertGreaterEqual(released_count, 3)
        self.assertLessEqual(released_count, 6)
        time.sleep(0.2)
        self.assertEqual(events.count("R2"), released_count)
        self.assertEqual(tracker.state_of("R2"), PressState.IDLE)

    def test_duplicate_start_is_ignored(self):
        events = Collector()
        tracker = self._tracker(events, hold=1.0)
        tracker.press_start("L2")
        tracker.press_start("L2")
        tracker.press_end("L2")
        self.assertEqual(events.labels, ["L2"])

    def test_release_without_press_is_noop(self):
        events = Collector()
        tracker = self._tracker(events)
        tracker.press_end("L3")
        self.assertEqual(events.labels, [])
        self.assertEqual(tracker.state_of("L3"), PressState.IDLE)

    def test_buttons_are_independent(self):
        events = Collector()
        tracker = self._tracker(events, hold=0.05, repeat=0.03)
        tracker.press_start("L1")
        time.sleep(0.15)
        tracker.press_start("R1")
        tracker.press_end("R1")
        time.sleep(0.1)
        tracker.press_end("L1")
        self.assertEqual(events.count("R1"), 1)
        self.assertGreaterEqual(events.count("L1"), 3)

    def test_tap_variant_and_held_button(self):
        events = Collector()
        tracker = self._tracker(events, hold=1.0)
        self.assertTrue(tracker.tap("R3"))
        tracker.press_start("R4")
        self.assertFalse(tracker.tap("R4"))
        tracker.press_end("R4")
        self.assertEqual(events.labels, ["R3", "R4"])

    def test_cancel_all_stops_repeats(self):
        events = Collector()
        tracker = self._tracker(events, hold=0.05, repeat=0.03)
        tracker.press_start("L4")
        time.sleep(0.12)
        tracker.cancel_all()
        settled = events.count("L4")
        time.sleep(0.15)
        self.assertEqual(events.count("L4"), settled)
        self.assertEqual(tracker.state_of("L4"), PressState.IDLE)

    def test_rejected_emit_still_tracks_press(self):
        events = Collector(accept=False)
        tracker = self._tracker(events, hold=1.0)
        tracker.press_start("L1")
        self.assertEqual(tracker.state_of("L1"), PressState.TAPPED_PENDING)
        tracker.press_end("L1")
        self.assertEqual(events.labels, ["L1"])

    def test_rejected_press_never_starts_repeating(self):
        events = Collector(accept=False)
        tracker = self._tracker(events, hold=0.05, repeat=0.02)
        tracker.press_start("R2")
        time.sleep(0.3)
        self.assertEqual(tracker.state_of("R2"), PressState.TAPPED_PENDING)
        self.assertEqual(events.labels, ["R2"])

        # Becoming accepted mid-press must not revive the abandoned hold.
        events.accept = True
        time.sleep(0.15)
        self.assertEqual(events.labels, ["R2"])
        tracker.press_end("R2")
        self.assertEqual(tracker.state_of("R2"), PressState.IDLE)

        tracker.press_start("R2")
        time.sleep(0.2)
        self.assertEqual(tracker.state_of("R2"), PressState.HOLD_ARMED)
        tracker.press_end("R2")
        self.assertGreaterEqual(events.count("R2"), 3)

    def test_unknown_button_raises(self):
        tracker = self._tracker(Collector())
        with self.assertRaises(ValueError):
            tracker.press_start("X9")


if __name__ == "__main__":
    unittest.main()
