"""Command execution result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from shellscope.errors import StreamReadError

T = TypeVar("T")


@dataclass
class DrainResult(Generic[T]):
    """What the output drain collected from one child.

    Attributes:
        stdout: Folded stdout accumulator.
        stderr: Complete stderr text.
        errors: Read errors that ended a stream early.
    """

    stdout: T
    stderr: str
    errors: list[StreamReadError] = field(default_factory=list)


@dataclass
class CompletedCommand:
    """Result of a command that ran to completion.

    Attributes:
        executable: The program that was run.
        args: Its arguments.
        exit_code: Process exit status (0 = success).
        stdout: Captured stdout.
        stderr: Captured stderr.
        duration_ms: Wall time from spawn to exit, in milliseconds.
        stream_errors: Read errors that truncated stdout or stderr.
    """

    executable: str
    args: list[str]
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: float
    stream_errors: list[StreamReadError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if command completed with exit code 0."""
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return " ".join([self.executable, *self.args])

    def __repr__(self) -> str:
        """Concise repr for display in a REPL."""
        if self.success:
            lines = self.stdout.count("\n")
            return f"<CompletedCommand ok, {lines} lines>"
        return f"<CompletedCommand error, exit={self.exit_code}>"
