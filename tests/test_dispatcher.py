import threading
import time
import unittest
from datetime import datetime, timezone

from s3_sweeper.dispatcher import DeletionDispatcher
from s3_sweeper.models import ListedObject, RunResult
from s3_sweeper.services import DeletionError

STAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeService:
    def __init__(self, failing=(), delay=0.0, crash=()):
        self.failing = set(failing)
        self.crash = set(crash)
        self.delay = delay
        self.delete_calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def delete_object(self, bucket, key):
        with self._lock:
            self.delete_calls.append((bucket, key))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if key in self.crash:
                raise KeyError(key)
            if key in self.failing:
                raise DeletionError(key, RuntimeError("boom"))
        finally:
            with self._lock:
                self.in_flight -= 1


def objects(count):
    return [ListedObject(key=f"k{i}", last_modified=STAMP) for i in range(count)]


class DeletionDispatcherTests(unittest.TestCase):
    def test_dry_run_counts_without_deleting(self):
        service = FakeService()

        with self.assertLogs("s3_sweeper.dispatcher", level="INFO") as logs:
            with DeletionDispatcher(service, "bucket-one", delete=False) as dispatcher:
                for obj in objects(3):
                    dispatcher.submit(obj)

        self.assertEqual(3, dispatcher.result.matched)
        self.assertEqual(0, dispatcher.result.deleted)
        self.assertEqual([], service.delete_calls)
        self.assertEqual(3, sum("Found k" in line for line in logs.output))

    def test_delete_mode_deletes_every_submitted_object(self):
        service = FakeService()

        with DeletionDispatcher(service, "bucket-one", delete=True, max_concurrency=2) as dispatcher:
            for obj in objects(5):
                dispatcher.submit(obj)

        self.assertEqual(5, dispatcher.result.matched)
        self.assertEqual(5, dispatcher.result.deleted)
        self.assertEqual(0, dispatcher.result.failed)
        self.assertEqual(
            sorted(("bucket-one", f"k{i}") for i in range(5)),
            sorted(service.delete_calls),
        )

    def test_in_flight_deletions_never_exceed_limit(self):
        service = FakeService(delay=0.02)

        with DeletionDispatcher(service, "bucket-one", delete=True, max_concurrency=3) as dispatcher:
            for obj in objects(12):
                dispatcher.submit(obj)

        self.assertLessEqual(service.max_in_flight, 3)
        self.assertEqual(12, dispatcher.result.deleted)

    def test_failures_are_isolated_and_counted(self):
        service = FakeService(failing={"k1", "k3"})

        with self.assertLogs("s3_sweeper.dispatcher", level="INFO") as logs:
            with DeletionDispatcher(service, "bucket-one", delete=True, max_concurrency=2) as dispatcher:
                for obj in objects(5):
                    dispatcher.submit(obj)

        result = dispatcher.result
        self.assertEqual(3, result.deleted)
        self.assertEqual(2, result.failed)
        self.assertEqual(result.matched, result.settled)
        self.assertEqual(2, sum(line.startswith("ERROR") for line in logs.output))

    def test_join_reraises_unexpected_unit_errors(self):
        service = FakeService(crash={"k0"})
        dispatcher = DeletionDispatcher(service, "bucket-one", delete=True, max_concurrency=1)
        try:
            for obj in objects(2):
                dispatcher.submit(obj)
            with self.assertRaises(KeyError):
                dispatcher.join()
        finally:
            dispatcher.close()

    def test_slot_released_after_failure(self):
        service = FakeService(failing={"k0", "k1"})

        with DeletionDispatcher(service, "bucket-one", delete=True, max_concurrency=1) as dispatcher:
            for obj in objects(3):
                dispatcher.submit(obj)

        self.assertEqual(1, dispatcher.result.deleted)
        self.assertEqual(2, dispatcher.result.failed)

    def test_uses_shared_result(self):
        result = RunResult(delete=True)

        with DeletionDispatcher(FakeService(), "b", delete=True, result=result) as dispatcher:
            dispatcher.submit(objects(1)[0])

        self.assertIs(result, dispatcher.result)
        self.assertEqual(1, result.deleted)

    def test_submit_after_close_raises(self):
        service = FakeService()
        dispatcher = DeletionDispatcher(service, "b", delete=True)
        dispatcher.close()

        with self.assertRaises(RuntimeError):
            dispatcher.submit(objects(1)[0])

        self.assertEqual(0, dispatcher.result.matched)
        self.assertEqual([], service.delete_calls)

    def test_rejects_non_positive_concurrency(self):
        with self.assertRaises(ValueError):
            DeletionDispatcher(FakeService(), "b", delete=True, max_concurrency=0)


if __name__ == "__main__":
    unittest.main()
