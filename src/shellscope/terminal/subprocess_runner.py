"""Subprocess-based process runner for local command execution."""

from __future__ import annotations

import io
import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import IO

from shellscope.errors import LaunchError

_log = logging.getLogger("shellscope.terminal.runner")

DEFAULT_ENCODING = "utf-8"


class SubprocessHandle:
    """A running child process with text-mode pipes on all three streams.

    The pipes are wrapped with newline="" so no newline translation happens:
    captured text matches what the child wrote.
    """

    def __init__(self, process: subprocess.Popen[bytes], encoding: str = DEFAULT_ENCODING) -> None:
        self._process = process
        assert process.stdin is not None
        assert process.stdout is not None
        assert process.stderr is not None
        self.stdin: IO[str] | None = io.TextIOWrapper(
            process.stdin, encoding=encoding, errors="replace", newline="", write_through=True
        )
        self.stdout: IO[str] = io.TextIOWrapper(
            process.stdout, encoding=encoding, errors="replace", newline=""
        )
        self.stderr: IO[str] = io.TextIOWrapper(
            process.stderr, encoding=encoding, errors="replace", newline=""
        )

    @property
    def pid(self) -> int:
        return self._process.pid

    def wait(self) -> int:
        """Block until the child exits.

        Returns:
            The exit status; negative N when killed by signal N (POSIX).
        """
        return self._process.wait()

    def __repr__(self) -> str:
        return f"<SubprocessHandle pid={self._process.pid} returncode={self._process.returncode}>"


def spawn_process(
    executable: str,
    args: list[str],
    cwd: Path,
    env: Mapping[str, str],
    *,
    encoding: str = DEFAULT_ENCODING,
) -> SubprocessHandle:
    """Start an external process and return without waiting for it.

    No shell is involved. The executable is searched for on the PATH of env
    (the session environment), which is how subprocess resolves bare names
    when an explicit environment is supplied.

    Args:
        executable: Program name or path.
        args: Arguments, not including the program itself.
        cwd: Working directory for the child.
        env: Complete environment for the child.
        encoding: Text encoding for all three pipes.

    Returns:
        Handle exposing the child's stdin/stdout/stderr and wait().

    Raises:
        LaunchError: If the process could not be started (not found,
            permission denied, missing cwd).
    """
    cmd_list = [executable, *args]
    try:
        process = subprocess.Popen(
            cmd_list,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=str(cwd),
            env=dict(env),
        )
    except FileNotFoundError as e:
        if not Path(cwd).is_dir():
            raise LaunchError(executable, list(args), f"working directory not found: {cwd}") from e
        raise LaunchError(executable, list(args), f"command not found: {e}") from e
    except PermissionError as e:
        raise LaunchError(executable, list(args), f"permission denied: {e}") from e
    except OSError as e:
        raise LaunchError(executable, list(args), f"OS error: {e}") from e

    _log.debug("Spawned %s (pid %s) in %s", " ".join(cmd_list), process.pid, cwd)
    return SubprocessHandle(process, encoding=encoding)
