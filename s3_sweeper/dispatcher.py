from __future__ import annotations
"""Bounded-concurrency deletion of matched objects."""
import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import BoundedSemaphore, Lock

from .models import ListedObject, RunResult
from .reporting import format_timestamp
from .services import DeletionError, S3SweeperService

logger = logging.getLogger(__name__)


class DeletionDispatcher:
    """Consumes matched objects in filter order.

    In dry-run mode every object is only reported. In delete mode each object
    becomes one unit of work on a thread pool; ``submit`` blocks while
    ``max_concurrency`` deletions are already in flight. ``join`` waits for
    every unit submitted so far.
    """

    def __init__(
        self,
        service: S3SweeperService,
        bucket: str,
        *,
        delete: bool = False,
        max_concurrency: int = 10,
        result: RunResult | None = None,
    ):
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be greater than zero")
        self._service = service
        self._bucket = bucket
        self._delete = delete
        self.result = result or RunResult(delete=delete)
        self._slots = BoundedSemaphore(max_concurrency)
        self._executor: ThreadPoolExecutor | None = None
        if delete:
            self._executor = ThreadPoolExecutor(
                max_workers=max_concurrency, thread_name_prefix="s3-delete"
            )
        self._outstanding: set[Future] = set()
        self._outstanding_lock = Lock()

    def __enter__(self) -> DeletionDispatcher:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                self.join()
        finally:
            self.close()

    def submit(self, obj: ListedObject) -> None:
        if self._delete and self._executor is None:
            raise RuntimeError("dispatcher is closed")
        self.result.record_match()
        if not self._delete:
            logger.info("Found %s - %s", obj.key, format_timestamp(obj.last_modified))
            return

        self._slots.acquire()
        try:
            future = self._executor.submit(self._delete_unit, obj)
        except BaseException:
            self._slots.release()
            raise
        with self._outstanding_lock:
            self._outstanding.add(future)
        future.add_done_callback(self._forget)

    def join(self) -> None:
        """Wait for every outstanding unit.

        Deletion failures are already counted; anything else a unit raised is
        re-raised here.
        """
        while True:
            with self._outstanding_lock:
                pending = list(self._outstanding)
            if not pending:
                return
            done, _ = wait(pending)
            for future in done:
                future.result()
                with self._outstanding_lock:
                    self._outstanding.discard(future)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _delete_unit(self, obj: ListedObject) -> None:
        try:
            self._service.delete_object(self._bucket, obj.key)
        except DeletionError as exc:
            self.result.record_failed()
            logger.error("%s", exc)
        else:
            self.result.record_deleted()
            logger.info("Deleted %s - %s", obj.key, format_timestamp(obj.last_modified))
        finally:
            self._slots.release()

    def _forget(self, future: Future) -> None:
        if future.exception() is not None:
            return
        with self._outstanding_lock:
            self._outstanding.discard(future)
