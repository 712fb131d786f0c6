"""Running session actions on background threads.

background() forks the caller's session state, returns a BackgroundJob at
once, and runs the action on its own thread once a job slot is free:

    QUEUED --(slot acquired)--> RUNNING --> COMPLETED | FAILED

There is no cancellation. A job's failure is delivered only to callers of
result(); a job nobody waits on fails silently apart from a debug log line.

Each forked session gets its own JobSlots with the parent's limit, so a job
that itself calls background() is bounded separately from its parent:
nesting N levels deep allows up to limit**N jobs overall.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from shellscope.jobs.future import OneShot

if TYPE_CHECKING:
    from shellscope.session.context import SessionContext

_log = logging.getLogger("shellscope.jobs")

T = TypeVar("T")

_job_ids = itertools.count(1)


class JobStatus(Enum):
    """Lifecycle of a background job."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BackgroundJob(Generic[T]):
    """Handle to an action running in a forked session."""

    def __init__(self, job_id: int) -> None:
        self.job_id = job_id
        self._future: OneShot[T] = OneShot()
        self._status = JobStatus.QUEUED
        self._status_lock = threading.Lock()

    @property
    def status(self) -> JobStatus:
        with self._status_lock:
            return self._status

    def _set_status(self, status: JobStatus) -> None:
        with self._status_lock:
            self._status = status

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> T:
        """Block until the job finishes and return its value.

        Safe to call any number of times from any thread; each call returns
        the same value, or re-raises the same exception if the job failed.

        Raises:
            TimeoutError: If timeout expires first.
        """
        return self._future.result(timeout)

    def __repr__(self) -> str:
        return f"<BackgroundJob #{self.job_id} {self.status.value}>"


def background(ctx: SessionContext, action: Callable[[SessionContext], T]) -> BackgroundJob[T]:
    """Run action(child) on a new thread in a fork of ctx's session.

    The fork is taken before this returns, so later changes in ctx are not
    seen by the job, and the job's changes never reach ctx.

    Args:
        ctx: Parent session; its job_slots bound how many jobs run at once.
        action: Called with the forked SessionContext.

    Returns:
        A BackgroundJob whose result() delivers action's return value.
    """
    from shellscope.session.context import SessionContext

    parent_state = ctx.get()
    child = SessionContext(parent_state.fork())
    slots = parent_state.job_slots
    job: BackgroundJob[T] = BackgroundJob(next(_job_ids))

    def worker() -> None:
        slots.acquire()
        job._set_status(JobStatus.RUNNING)
        _log.debug("Background job #%s started", job.job_id)
        error: BaseException | None = None
        value: T | None = None
        try:
            value = action(child)
        except BaseException as e:
            error = e

        # Slot is free before anyone waiting on the result wakes up
        job._set_status(JobStatus.COMPLETED if error is None else JobStatus.FAILED)
        slots.release()

        if error is not None:
            _log.debug("Background job #%s failed: %r", job.job_id, error)
            job._future.set_exception(error)
        else:
            _log.debug("Background job #%s completed", job.job_id)
            job._future.set_result(value)  # type: ignore[arg-type]

    thread = threading.Thread(target=worker, name=f"shellscope-job-{job.job_id}", daemon=True)
    thread.start()
    return job


def get_bg_result(job: BackgroundJob[T], timeout: float | None = None) -> T:
    """Block until job finishes and return its result."""
    return job.result(timeout)
