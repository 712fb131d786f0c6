"""The record a session carries between operations."""

from __future__ import annotations

import functools
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING

from shellscope.jobs.slots import JobSlots
from shellscope.terminal.subprocess_runner import spawn_process

if TYPE_CHECKING:
    from shellscope.config.schema import SessionConfig
    from shellscope.terminal.protocol import SpawnFn


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of one session's state.

    Every change produces a new record via dataclasses.replace(), so a
    snapshot taken by a scope can never be altered by later mutations.
    The environment mapping is never modified in place for the same reason.

    Attributes:
        directory: Absolute session working directory. Never os.getcwd().
        environment: Environment passed to child processes.
        verbose: Echo child output to the host's stdout/stderr while capturing.
        print_commands: Echo each command line before running it.
        exit_code: Exit status of the most recent command (0 before any).
        last_stderr: Full stderr of the most recent command.
        pending_stdin: Input for the next command; cleared when consumed.
        job_slots: Bounds concurrent background jobs from this session.
        spawn_fn: Starts child processes; substitute it to fake processes.
    """

    directory: Path
    environment: Mapping[str, str] = field(default_factory=dict)
    verbose: bool = True
    print_commands: bool = False
    exit_code: int = 0
    last_stderr: str = ""
    pending_stdin: str | None = None
    job_slots: JobSlots = field(default_factory=JobSlots)
    spawn_fn: SpawnFn = spawn_process

    def __post_init__(self) -> None:
        if not Path(self.directory).is_absolute():
            raise ValueError(f"session directory must be absolute: {self.directory}")
        object.__setattr__(self, "directory", Path(self.directory))

    @classmethod
    def from_environment(
        cls,
        config: SessionConfig | None = None,
        cwd: str | os.PathLike[str] | None = None,
    ) -> SessionState:
        """Seed a fresh state from the host process's environment and cwd.

        Later changes to os.environ or the real cwd are not seen by the
        session, and session changes never touch them.
        """
        directory = Path(cwd).absolute() if cwd is not None else Path.cwd()
        state = cls(directory=directory, environment=dict(os.environ))
        if config is not None:
            state = replace(
                state,
                verbose=config.verbose,
                print_commands=config.print_commands,
                job_slots=JobSlots(config.max_jobs),
                spawn_fn=functools.partial(spawn_process, encoding=config.encoding),
            )
        return state

    def fork(self) -> SessionState:
        """Copy used to seed a background job's session.

        Carries directory, environment, verbosity, command printing and
        spawn_fn. Last-command fields start fresh. The job slots are a new
        semaphore with the same limit, so jobs started from the fork are
        bounded separately from the parent's.
        """
        return SessionState(
            directory=self.directory,
            environment=dict(self.environment),
            verbose=self.verbose,
            print_commands=self.print_commands,
            job_slots=self.job_slots.fresh(),
            spawn_fn=self.spawn_fn,
        )

    def with_env(self, name: str, value: str) -> SessionState:
        environment = dict(self.environment)
        environment[name] = value
        return replace(self, environment=environment)
