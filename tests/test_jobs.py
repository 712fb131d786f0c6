"""Tests for OneShot, JobSlots, and background jobs."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from shellscope.errors import CommandFailed, OneShotAlreadySet
from shellscope.jobs import BackgroundJob, JobSlots, JobStatus, OneShot, get_bg_result
from shellscope.session import SessionContext
from tests.utils import PYTHON, py


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestOneShot:
    """Tests for the single-assignment future."""

    def test_result_after_set(self):
        future: OneShot[int] = OneShot()
        assert not future.done()
        future.set_result(7)
        assert future.done()
        assert not future.failed()
        assert future.result() == 7
        assert future.result() == 7

    def test_second_write_rejected(self):
        future: OneShot[int] = OneShot()
        future.set_result(1)
        with pytest.raises(OneShotAlreadySet):
            future.set_result(2)
        with pytest.raises(OneShotAlreadySet):
            future.set_exception(ValueError("late"))
        assert future.result() == 1

    def test_exception_reraised_every_read(self):
        future: OneShot[int] = OneShot()
        error = ValueError("boom")
        future.set_exception(error)
        assert future.failed()
        for _ in range(3):
            with pytest.raises(ValueError) as excinfo:
                future.result()
            assert excinfo.value is error

    def test_timeout(self):
        future: OneShot[int] = OneShot()
        with pytest.raises(TimeoutError):
            future.result(timeout=0.05)

    def test_readers_on_many_threads_see_same_object(self):
        future: OneShot[object] = OneShot()
        value = object()
        seen: list[object] = []
        lock = threading.Lock()

        def reader() -> None:
            got = future.result(timeout=5)
            with lock:
                seen.append(got)

        readers = [threading.Thread(target=reader) for _ in range(8)]
        for t in readers:
            t.start()
        future.set_result(value)
        for t in readers:
            t.join()
        assert len(seen) == 8
        assert all(v is value for v in seen)

    def test_repr(self):
        future: OneShot[int] = OneShot()
        assert "pending" in repr(future)
        future.set_result(3)
        assert repr(future) == "<OneShot 3>"


class TestJobSlots:
    """Tests for the job-limiting semaphore."""

    def test_unbounded_never_blocks(self):
        slots = JobSlots()
        assert slots.limit is None
        for _ in range(100):
            assert slots.acquire(timeout=0)

    def test_bounded_blocks_at_limit(self):
        slots = JobSlots(1)
        assert slots.acquire(timeout=0)
        assert not slots.acquire(timeout=0.05)
        slots.release()
        assert slots.acquire(timeout=0)

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            JobSlots(0)

    def test_fresh_is_independent(self):
        slots = JobSlots(1)
        slots.acquire()
        fresh = slots.fresh()
        assert fresh.limit == 1
        assert fresh.acquire(timeout=0)

    def test_context_manager(self):
        slots = JobSlots(1)
        with slots:
            assert not slots.acquire(timeout=0)
        assert slots.acquire(timeout=0)


class TestBackground:
    """Tests for background() and BackgroundJob."""

    def test_returns_action_value(self, sh: SessionContext):
        job = sh.background(lambda child: 21 * 2)
        assert isinstance(job, BackgroundJob)
        assert job.result(timeout=5) == 42
        assert get_bg_result(job, timeout=5) == 42
        assert job.status is JobStatus.COMPLETED
        assert job.done()

    def test_runs_commands_in_forked_session(self, sh: SessionContext):
        job = sh.background(lambda child: child.run(PYTHON, py("print('bg')")))
        assert job.result(timeout=30) == "bg\n"

    def test_failure_delivered_on_every_read(self, sh: SessionContext):
        job = sh.background(lambda child: child.run(PYTHON, py("import sys; sys.exit(4)")))
        for _ in range(2):
            with pytest.raises(CommandFailed) as excinfo:
                job.result(timeout=30)
            assert excinfo.value.exit_code == 4
        assert job.status is JobStatus.FAILED

    def test_fork_isolated_from_parent(self, sh: SessionContext, tmp_path: Path):
        (tmp_path / "child-dir").mkdir()
        (tmp_path / "parent-dir").mkdir()
        sh.setenv("SHARED", "before")
        started = threading.Event()
        proceed = threading.Event()

        def action(child: SessionContext) -> tuple[str, Path]:
            child.cd("child-dir")
            child.setenv("CHILD_ONLY", "1")
            started.set()
            proceed.wait(5)
            return child.getenv("SHARED"), child.pwd()

        job = sh.background(action)
        assert started.wait(5)
        sh.setenv("SHARED", "after")
        sh.cd("parent-dir")
        proceed.set()

        shared, child_dir = job.result(timeout=5)
        assert shared == "before"
        assert child_dir == tmp_path / "child-dir"
        assert sh.pwd() == tmp_path / "parent-dir"
        assert sh.getenv("CHILD_ONLY") == ""

    def test_limit_bounds_running_jobs(self, sh: SessionContext):
        gate = threading.Event()
        lock = threading.Lock()
        running = 0
        peak = 0

        def action(child: SessionContext) -> None:
            nonlocal running, peak
            with lock:
                running += 1
                peak = max(peak, running)
            gate.wait(10)
            with lock:
                running -= 1

        with sh.jobs(2):
            jobs = [sh.background(action) for _ in range(3)]

        assert wait_for(lambda: sum(j.status is JobStatus.RUNNING for j in jobs) == 2)
        time.sleep(0.1)
        statuses = sorted(j.status.value for j in jobs)
        assert statuses == ["queued", "running", "running"]

        gate.set()
        for job in jobs:
            job.result(timeout=10)
        assert peak == 2
        assert all(j.status is JobStatus.COMPLETED for j in jobs)

    def test_queued_job_runs_after_slot_frees(self, sh: SessionContext):
        gate = threading.Event()
        with sh.jobs(1):
            first = sh.background(lambda child: gate.wait(10))
            second = sh.background(lambda child: "second")

        assert wait_for(lambda: first.status is JobStatus.RUNNING)
        assert second.status is JobStatus.QUEUED
        with pytest.raises(TimeoutError):
            second.result(timeout=0.1)

        gate.set()
        assert second.result(timeout=5) == "second"

    def test_failed_job_releases_slot(self, sh: SessionContext):
        def fail(child: SessionContext) -> None:
            raise RuntimeError("job failed")

        with sh.jobs(1):
            failing = sh.background(fail)
            after = sh.background(lambda child: "ran")

        with pytest.raises(RuntimeError, match="job failed"):
            failing.result(timeout=5)
        assert after.result(timeout=5) == "ran"

    def test_nested_background_gets_its_own_slots(self, sh: SessionContext):
        def outer(child: SessionContext) -> str:
            inner = child.background(lambda grandchild: "inner")
            return inner.result(timeout=5)

        with sh.jobs(1):
            job = sh.background(outer)
        assert job.result(timeout=10) == "inner"

    def test_repr(self, sh: SessionContext):
        job = sh.background(lambda child: None)
        job.result(timeout=5)
        assert repr(job) == f"<BackgroundJob #{job.job_id} completed>"
