"""
AsyncDeleter – background soft deletion with bounded concurrency.

Responsibilities:
    - Split a deletion request into fixed-size chunks
    - Run each chunk as an independent `delete_many` call on a process-scoped
      thread pool, with at most `max_concurrency` chunks in flight
    - Collect per-chunk failures and log a summary; chunks that already
      succeeded are kept (deletion is idempotent, so a retry is safe)

Lifecycle of one request (`DeletionJob.state`):

    submitted -> chunked -> in_flight -> completed | failed

Design notes:
    - The pool belongs to the application, not to any HTTP request, so a client
      disconnect or handler timeout never cancels a dispatched deletion.
    - Chunks hold a slot of a shared `BoundedSemaphore` while calling the
      backend and release it unconditionally.
    - Chunk completion order is unspecified.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from ..storage.base import BaseStorage

logger = logging.getLogger(__name__)

DELETE_CHUNK_SIZE = 10
DELETE_MAX_CONCURRENCY = 3


def chunked(codes: Sequence[str], size: int) -> List[List[str]]:
    """Partition `codes` into consecutive lists of at most `size` items."""
    return [list(codes[i:i + size]) for i in range(0, len(codes), size)]


class DeletionJob:
    """Handle for one deletion request. Safe to ignore (fire-and-forget)."""

    def __init__(self, user_id: str, codes: List[str]):
        self.user_id = user_id
        self.codes = codes
        self.state = "submitted"
        self.chunks: List[List[str]] = []
        self.errors: List[Tuple[List[str], Exception]] = []
        self._pending = 0
        self._lock = threading.Lock()
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every chunk has finished. Returns False on timeout."""
        return self._done.wait(timeout)

    def _chunk_finished(self, chunk: List[str], error: Optional[Exception]) -> bool:
        """Record a chunk outcome; returns True for the last chunk."""
        with self._lock:
            if error is not None:
                self.errors.append((chunk, error))
            self._pending -= 1
            if self._pending:
                return False
            self.state = "failed" if self.errors else "completed"
            return True


class AsyncDeleter:
    """
    Executes owner-scoped soft deletes in the background.

    Args:
        storage (BaseStorage): Backend receiving `delete_many` calls.
        chunk_size (int): Codes per unit of work.
        max_concurrency (int): Chunks allowed in flight at once.
    """

    def __init__(
        self,
        storage: BaseStorage,
        chunk_size: int = DELETE_CHUNK_SIZE,
        max_concurrency: int = DELETE_MAX_CONCURRENCY,
    ):
        self.storage = storage
        self.chunk_size = chunk_size
        self.max_concurrency = max_concurrency
        self._slots = threading.BoundedSemaphore(max_concurrency)
        self._executor = ThreadPoolExecutor(max_workers=max_concurrency, thread_name_prefix="url-deleter")

    def submit(self, user_id: str, codes: Sequence[str]) -> Optional[DeletionJob]:
        """
        Dispatch deletion of `codes` owned by `user_id` and return immediately.

        Returns:
            Optional[DeletionJob]: None when `codes` is empty (nothing to do).
        """
        unique_codes = list(dict.fromkeys(codes))
        if not unique_codes:
            return None

        job = DeletionJob(user_id, unique_codes)
        job.chunks = chunked(unique_codes, self.chunk_size)
        job._pending = len(job.chunks)
        job.state = "chunked"

        job.state = "in_flight"
        for chunk in job.chunks:
            self._executor.submit(self._run_chunk, job, chunk)
        return job

    def _run_chunk(self, job: DeletionJob, chunk: List[str]) -> None:
        error = None
        with self._slots:
            try:
                self.storage.delete_many(chunk, job.user_id)
            except Exception as e:
                error = e
                logger.error("Failed to delete url chunk of %d for user %s: %s", len(chunk), job.user_id, e)

        if not job._chunk_finished(chunk, error):
            return
        if job.failed:
            logger.error(
                "Deletion for user %s finished with %d of %d chunks failed",
                job.user_id,
                len(job.errors),
                len(job.chunks),
            )
        job._done.set()

    def close(self, wait: bool = True) -> None:
        """Stop accepting work; by default waits for in-flight and queued chunks."""
        self._executor.shutdown(wait=wait)
