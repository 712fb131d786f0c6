"""Counting semaphore bounding concurrent background jobs."""

from __future__ import annotations

import threading
from types import TracebackType


class JobSlots:
    """Bounds the number of background jobs running at once.

    A limit of None means unbounded: acquire() never blocks. Each session
    carries its own JobSlots; forked sessions get a fresh instance with the
    same limit (see fresh()), so nested background jobs are bounded per
    nesting level, not globally.
    """

    def __init__(self, limit: int | None = None) -> None:
        if limit is not None and limit < 1:
            raise ValueError(f"job limit must be at least 1, got {limit}")
        self._limit = limit
        self._semaphore = threading.BoundedSemaphore(limit) if limit is not None else None

    @property
    def limit(self) -> int | None:
        return self._limit

    def acquire(self, timeout: float | None = None) -> bool:
        """Take one slot, blocking until one is free.

        Returns:
            False if timeout expired before a slot became free.
        """
        if self._semaphore is None:
            return True
        return self._semaphore.acquire(timeout=timeout)

    def release(self) -> None:
        if self._semaphore is not None:
            self._semaphore.release()

    def fresh(self) -> JobSlots:
        """A new, fully available JobSlots with the same limit."""
        return JobSlots(self._limit)

    def __enter__(self) -> JobSlots:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        limit = "unbounded" if self._limit is None else str(self._limit)
        return f"<JobSlots {limit}>"
