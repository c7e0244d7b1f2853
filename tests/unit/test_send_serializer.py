import sys
import threading
import time
import unittest
from concurrent.futures import Future
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "transport"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from remotepad_core.models import OutboundEvent
from remotepad_core.send_serializer import SendSerializer


def wait_until(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class SlowEndpoint:
    """Completes each write on a helper thread and tracks writes in flight."""

    def __init__(self, delay=0.005, fail=False):
        self.delay = delay
        self.fail = fail
        self.sent = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.lock = threading.Lock()

    def send(self, payload):
        fut = Future()
        with self.lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)

        def _finish():
            time.sleep(self.delay)
            with self.lock:
                self.in_flight -= 1
                if not self.fail:
                    self.sent.append(payload)
            if self.fail:
                fut.set_exception(ConnectionError("no route"))
            else:
                fut.set_result(len(payload))

        threading.Thread(target=_finish, daemon=True).start()
        return fut


class BlockingEndpoint:
    def __init__(self):
        self.release = threading.Event()
        self.started = threading.Event()

    def send(self, payload):
        fut = Future()

        def _finish():
            self.started.set()
            self.release.wait(2)
            fut.set_result(len(payload))

        threading.Thread(target=_finish, daemon=True).start()
        return fut


class SendSerializerTests(unittest.TestCase):
    def test_fifo_and_one_write_at_a_time(self):
        endpoint = SlowEndpoint()
        sender = SendSerializer(lambda: endpoint)
        self.addCleanup(sender.close)

        labels = [f"L{i % 4 + 1}" for i in range(20)]
        for label in labels:
            self.assertTrue(sender.submit(OutboundEvent(label)))

        self.assertTrue(wait_until(lambda: len(endpoint.sent) == 20))
        self.assertEqual(endpoint.sent, [label.encode() for label in labels])
        self.assertEqual(endpoint.max_in_flight, 1)
        self.assertEqual(sender.sent_count, 20)

    def test_concurrent_producers_never_overlap(self):
        endpoint = SlowEndpoint(delay=0.001)
        sender = SendSerializer(lambda: endpoint)
        self.addCleanup(sender.close)

        def produce(label):
            for _ in range(10):
                sender.submit(OutboundEvent(label))

        threads = [threading.Thread(target=produce, args=(label,)) for label in ("L1", "R1", "R2")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertTrue(wait_until(lambda: len(endpoint.sent) == 30))
        self.assertEqual(endpoint.max_in_flight, 1)
        for label in (b"L1", b"R1", b"R2"):
            self.assertEqual(endpoint.sent.count(label), 10)

    def test_rejects_when_not_connected(self):
        sender = SendSerializer(lambda: None)
        self.addCleanup(sender.close)
        self.assertFalse(sender.submit(OutboundEvent("L1")))
        self.assertEqual(sender.pending, 0)
        self.assertEqual(sender.rejected_count, 1)

    def test_failed_send_reported_to_completion(self):
        endpoint = SlowEndpoint(fail=True)
        sender = SendSerializer(lambda: endpoint)
        self.addCleanup(sender.close)
        results = []
        sender.submit(OutboundEvent("R4"), lambda event, result: results.append((event.label, result)))
        self.assertTrue(wait_until(lambda: len(results) == 1))
        label, result = results[0]
        self.assertEqual(label, "R4")
        self.assertFalse(result.ok)
        self.assertIn("no route", result.error)
        self.assertEqual(sender.failed_count, 1)

    def test_discard_pending_drops_queued_events(self):
        endpoint = BlockingEndpoint()
        sender = SendSerializer(lambda: endpoint)
        self.addCleanup(sender.close)
        results = []
        for label in ("L1", "L2", "L3"):
            sender.submit(OutboundEvent(label), lambda event, result: results.append((event.label, result.error)))
        self.assertTrue(endpoint.started.wait(2))

        self.assertEqual(sender.discard_pending(), 2)
        self.assertEqual(sorted(results), [("L2", "discarded"), ("L3", "discarded")])
        endpoint.release.set()
        self.assertTrue(wait_until(lambda: len(results) == 3))


if __name__ == "__main__":
    unittest.main()
