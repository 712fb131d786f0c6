"""Process handle protocol for external command execution."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import IO, Protocol


class ProcessHandle(Protocol):
    """A started child process.

    Implementations:
    - SubprocessHandle: real child started with subprocess.Popen
    - Test doubles returned by a substituted spawn_fn

    Streams are text streams, available immediately after spawning so they
    can be drained concurrently while the child runs.
    """

    stdin: IO[str] | None
    stdout: IO[str]
    stderr: IO[str]

    def wait(self) -> int:
        """Block until the child exits and return its exit status."""
        ...


class SpawnFn(Protocol):
    """Starts a child process without waiting for it."""

    def __call__(
        self,
        executable: str,
        args: list[str],
        cwd: Path,
        env: Mapping[str, str],
    ) -> ProcessHandle:
        """Start executable with args in cwd and env.

        Raises:
            LaunchError: If the executable cannot be started.
        """
        ...
