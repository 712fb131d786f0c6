"""Exception taxonomy for shellscope.

Errors carry the metadata a caller needs to build diagnostics without
re-running anything: the executable, its arguments, the exit status and the
complete captured stderr.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class ShellScopeError(Exception):
    """Base class for all shellscope errors."""


@dataclass
class LaunchError(ShellScopeError):
    """Raised when an executable cannot be started at all.

    Distinct from CommandFailed: the process never ran, so there is no exit
    status and the session's last-command fields are left untouched.
    """

    executable: str
    command_args: list[str]  # Renamed to avoid conflict with Exception.args
    reason: str

    def __str__(self) -> str:
        return f"could not launch {self.executable} {self.command_args!r}: {self.reason}"


@dataclass
class StreamReadError(ShellScopeError):
    """A child output stream failed mid-read.

    Never raised by the drain itself: the stream is treated as ended and the
    error is recorded alongside the partial output.
    """

    stream: str  # "stdout" or "stderr"
    reason: str

    def __str__(self) -> str:
        return f"error reading {self.stream}: {self.reason}"


@dataclass
class CommandFailed(ShellScopeError):
    """Raised when a command exits with a nonzero status."""

    executable: str
    command_args: list[str]
    exit_code: int
    stderr: str
    stream_errors: list[StreamReadError] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"error running {self.executable} {self.command_args!r}: "
            f"exit status {self.exit_code}:\n{self.stderr}"
        )


class OneShotAlreadySet(ShellScopeError, RuntimeError):
    """Raised on a second write to a single-assignment future."""
