import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "transport"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from remotepad_core.observable import ObservableValue


class ObservableValueTests(unittest.TestCase):
    def test_subscribe_replays_current_then_changes_in_order(self):
        value = ObservableValue("a")
        seen = []
        value.subscribe(seen.append)
        value.set("b")
        value.set("b")
        value.set("c")
        self.assertEqual(seen, ["a", "b", "c"])

    def test_unsubscribe_and_failing_subscriber(self):
        value = ObservableValue(0)
        seen = []

        def broken(_v):
            raise RuntimeError("boom")

        value.subscribe(broken, replay=False)
        unsubscribe = value.subscribe(seen.append, replay=False)
        value.set(1)
        unsubscribe()
        value.set(2)
        self.assertEqual(seen, [1])
        self.assertEqual(value.value, 2)


if __name__ == "__main__":
    unittest.main()
