"""Shared test utilities for shellscope tests."""

from __future__ import annotations

import io
import sys
from collections.abc import Callable, Mapping
from pathlib import Path

PYTHON = sys.executable


def py(code: str) -> list[str]:
    """Arguments running code with the test interpreter: run(PYTHON, py(...))."""
    return ["-c", code]


class RecordingStdin(io.StringIO):
    """Writable stream that keeps its contents after close()."""

    def __init__(self) -> None:
        super().__init__()
        self.written: str | None = None

    def close(self) -> None:
        self.written = self.getvalue()
        super().close()


class FailingStream(io.StringIO):
    """Readable stream that raises OSError after yielding its lines."""

    def readline(self, size: int = -1) -> str:  # type: ignore[override]
        line = super().readline(size)
        if not line:
            raise OSError("simulated read failure")
        return line


class FakeProcess:
    """In-memory ProcessHandle with canned output and exit status."""

    def __init__(
        self,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        stdout_stream: io.StringIO | None = None,
    ) -> None:
        self.stdin = RecordingStdin()
        self.stdout = stdout_stream if stdout_stream is not None else io.StringIO(stdout)
        self.stderr = io.StringIO(stderr)
        self.exit_code = exit_code
        self.waited = 0

    def wait(self) -> int:
        self.waited += 1
        return self.exit_code


class FakeSpawner:
    """spawn_fn double that records each call and spawns a fresh FakeProcess.

    Set make_process to control what the next spawn returns; every process
    handed out is kept in processes.
    """

    def __init__(self, make_process: Callable[[], FakeProcess] = FakeProcess) -> None:
        self.make_process = make_process
        self.calls: list[tuple[str, list[str], Path, dict[str, str]]] = []
        self.processes: list[FakeProcess] = []

    @property
    def process(self) -> FakeProcess:
        """The most recently spawned process."""
        return self.processes[-1]

    def __call__(
        self, executable: str, args: list[str], cwd: Path, env: Mapping[str, str]
    ) -> FakeProcess:
        self.calls.append((executable, list(args), cwd, dict(env)))
        process = self.make_process()
        self.processes.append(process)
        return process
