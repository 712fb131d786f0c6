"""Session context: owned state, scoping, and the session-level API.

A SessionContext is the handle every session operation goes through. It
owns exactly one SessionState and serializes all reads and writes of it
through a single lock, so helper threads (output readers, background job
workers) never race with the session's own updates.

Nothing here touches os.environ or the real working directory: cd() and
setenv() change the session's record only, and child processes receive
the session's directory and environment explicitly.

Example:
    with open_session() as sh:
        with sh.chdir("build"), sh.silently():
            sh.run("make", ["-j4"])
        print(sh.exit_code)
"""

from __future__ import annotations

import os
import shutil
import threading
import time as _time
from collections.abc import Callable, Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from shellscope.jobs.background import background as _start_background
from shellscope.jobs.slots import JobSlots
from shellscope.session.state import SessionState
from shellscope.terminal import executor

if TYPE_CHECKING:
    from shellscope.config.schema import SessionConfig
    from shellscope.jobs.background import BackgroundJob
    from shellscope.terminal.drain import FoldFn
    from shellscope.terminal.executor import Arg
    from shellscope.terminal.result import CompletedCommand

T = TypeVar("T")

PathLike = str | os.PathLike[str]


@dataclass(frozen=True)
class Timing:
    """Wall-clock measurement returned by SessionContext.time()."""

    seconds: float


class SessionContext:
    """Owns one session's state and implements scoped changes to it."""

    def __init__(self, state: SessionState) -> None:
        self._state = state
        self._lock = threading.RLock()

    @classmethod
    def from_environment(
        cls,
        config: SessionConfig | None = None,
        cwd: PathLike | None = None,
    ) -> SessionContext:
        """Fresh session seeded from the host's environment and cwd.

        Args:
            config: Session defaults. Defaults to the loaded global config.
            cwd: Starting directory. Defaults to the host's current directory.
        """
        if config is None:
            from shellscope.config import get_config

            config = get_config().session
        return cls(SessionState.from_environment(config, cwd))

    # -- State access -------------------------------------------------------

    def get(self) -> SessionState:
        with self._lock:
            return self._state

    def replace(self, state: SessionState) -> None:
        with self._lock:
            self._state = state

    def mutate(self, f: Callable[[SessionState], SessionState]) -> SessionState:
        """Atomically apply f to the current state and install the result."""
        with self._lock:
            self._state = f(self._state)
            return self._state

    # -- Scoping ------------------------------------------------------------

    @contextmanager
    def scope(self) -> Iterator[SessionContext]:
        """Nested scope whose state changes are undone on exit.

        The whole state (directory, environment, verbosity, job slots,
        last-command fields) is restored on normal exit and when an
        exception propagates; the exception itself passes through unchanged.
        """
        snapshot = self.get()
        try:
            yield self
        finally:
            self.replace(snapshot)

    def sub(self, action: Callable[[], T]) -> T:
        """Run action in a nested scope and return its result."""
        with self.scope():
            return action()

    @contextmanager
    def _scoped(self, **changes: object) -> Iterator[SessionContext]:
        with self.scope():
            self.mutate(lambda s: replace(s, **changes))
            yield self

    def silently(self) -> AbstractContextManager[SessionContext]:
        """Scope in which child output is captured but not echoed."""
        return self._scoped(verbose=False)

    def verbosely(self) -> AbstractContextManager[SessionContext]:
        """Scope in which child output is echoed while captured."""
        return self._scoped(verbose=True)

    def print_commands(self) -> AbstractContextManager[SessionContext]:
        """Scope in which each command line is echoed before it runs."""
        return self._scoped(print_commands=True)

    def jobs(self, limit: int) -> AbstractContextManager[SessionContext]:
        """Scope in which at most limit background jobs run at once.

        The limit applies to jobs started from this session. Jobs started
        from inside a background job draw on that job's own copy of the
        limit, so nested backgrounding multiplies parallelism.
        """
        return self._scoped(job_slots=JobSlots(limit))

    @contextmanager
    def chdir(self, directory: PathLike) -> Iterator[SessionContext]:
        """Scope running in directory; the previous directory is restored."""
        with self.scope():
            self.cd(directory)
            yield self

    def time(self, action: Callable[[], T]) -> tuple[Timing, T]:
        """Run action in a nested scope and measure its wall time."""
        with self.scope():
            start = _time.perf_counter()
            result = action()
            return Timing(_time.perf_counter() - start), result

    # -- Directory and environment -----------------------------------------

    def pwd(self) -> Path:
        return self.get().directory

    def abs_path(self, path: PathLike) -> Path:
        """Resolve path against the session directory (no symlink resolution)."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.get().directory / candidate
        return Path(os.path.normpath(candidate))

    def cd(self, directory: PathLike) -> None:
        """Change the session directory. The host's cwd is not affected.

        Raises:
            NotADirectoryError: If the target is not an existing directory.
        """
        target = self.abs_path(directory)
        if not target.is_dir():
            raise NotADirectoryError(f"not a directory: {target}")
        self.mutate(lambda s: replace(s, directory=target))

    def setenv(self, name: str, value: str) -> None:
        """Set a variable in the session environment (last set wins)."""
        self.mutate(lambda s: s.with_env(name, value))

    def getenv(self, name: str, default: str = "") -> str:
        """Session environment lookup; unset and empty both give default."""
        return self.get().environment.get(name) or default

    getenv_def = getenv

    def append_to_path(self, directory: PathLike) -> None:
        """Append directory to the session's PATH."""
        entry = str(self.abs_path(directory))

        def append(s: SessionState) -> SessionState:
            current = s.environment.get("PATH", "")
            return s.with_env("PATH", f"{current}{os.pathsep}{entry}" if current else entry)

        self.mutate(append)

    def which(self, name: PathLike) -> Path | None:
        """Locate an executable the way run() would.

        Bare names are searched on the session's PATH; names with a
        directory part are resolved against the session directory.
        """
        name = os.fspath(name)
        if os.sep in name or (os.altsep and os.altsep in name):
            candidate = self.abs_path(name)
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return candidate
            return None
        search_path = self.get().environment.get("PATH", os.defpath)
        found = shutil.which(name, path=search_path)
        return Path(found) if found else None

    # -- Last command -------------------------------------------------------

    @property
    def exit_code(self) -> int:
        return self.get().exit_code

    def last_stderr(self) -> str:
        return self.get().last_stderr

    def set_stdin(self, text: str) -> None:
        """Set input for the next command; it is cleared once consumed."""
        self.mutate(lambda s: replace(s, pending_stdin=text))

    # -- Running commands ---------------------------------------------------

    def run(self, executable: Arg, args: Sequence[Arg] = ()) -> str:
        return executor.run(self, executable, args)

    def run_(self, executable: Arg, args: Sequence[Arg] = ()) -> None:
        executor.run_(self, executable, args)

    def run_fold_lines(
        self, initial: T, fold: FoldFn[T], executable: Arg, args: Sequence[Arg] = ()
    ) -> T:
        return executor.run_fold_lines(self, initial, fold, executable, args)

    def execute(self, executable: Arg, args: Sequence[Arg] = ()) -> CompletedCommand:
        return executor.execute(self, executable, args)

    def command(self, executable: Arg, args: Sequence[Arg]) -> Callable[..., str]:
        return executor.command(self, executable, args)

    def command_(self, executable: Arg, args: Sequence[Arg]) -> Callable[..., None]:
        return executor.command_(self, executable, args)

    def command1(self, executable: Arg, args: Sequence[Arg]) -> Callable[..., str]:
        return executor.command1(self, executable, args)

    def command1_(self, executable: Arg, args: Sequence[Arg]) -> Callable[..., None]:
        return executor.command1_(self, executable, args)

    def pipe(self, first: Callable[[], str], second: Callable[[], T]) -> T:
        return executor.pipe(self, first, second)

    # -- Background jobs ----------------------------------------------------

    def background(self, action: Callable[[SessionContext], T]) -> BackgroundJob[T]:
        return _start_background(self, action)

    def __repr__(self) -> str:
        state = self.get()
        return f"<SessionContext {state.directory} exit={state.exit_code}>"


@contextmanager
def open_session(
    config: SessionConfig | None = None,
    cwd: PathLike | None = None,
) -> Iterator[SessionContext]:
    """Enter a fresh session seeded from the host environment.

    The session's state is discarded on exit.
    """
    yield SessionContext.from_environment(config, cwd)


def shell(
    action: Callable[[SessionContext], T],
    config: SessionConfig | None = None,
    cwd: PathLike | None = None,
) -> T:
    """Run action in a fresh session and return its result."""
    with open_session(config, cwd) as sh:
        return action(sh)
