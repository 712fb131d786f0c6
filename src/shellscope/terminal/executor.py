"""Running external commands inside a session.

Composes the process runner and the output drain into the "run a command"
operation and records its outcome on the session:

1. echo the command line when print_commands is on
2. spawn through the session's spawn_fn, in its directory and environment
3. drain stdout/stderr concurrently while feeding pending stdin
4. wait for the exit status
5. store exit_code and last_stderr, clear pending_stdin (one mutation)
6. return the folded stdout, or raise CommandFailed for a nonzero status
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, TypeVar, Union

from shellscope import console
from shellscope.errors import CommandFailed
from shellscope.terminal.drain import FoldFn, OutputDrain, concat_lines, discard_lines
from shellscope.terminal.result import CompletedCommand, DrainResult

if TYPE_CHECKING:
    from shellscope.session.context import SessionContext

_log = logging.getLogger("shellscope.terminal.executor")

T = TypeVar("T")

Arg = Union[str, "os.PathLike[str]"]


def _normalize(executable: Arg, args: Sequence[Arg]) -> tuple[str, list[str]]:
    if isinstance(args, (str, bytes)):
        raise TypeError("args must be a sequence of arguments, not a single string")
    return os.fspath(executable), [os.fspath(a) for a in args]


def _run_and_record(
    ctx: SessionContext,
    initial: T,
    fold: FoldFn[T],
    executable: str,
    args: list[str],
) -> tuple[int, DrainResult[T], float]:
    state = ctx.get()
    if state.print_commands:
        console.echo_command(executable, args)

    start_time = time.perf_counter()
    handle = state.spawn_fn(executable, args, state.directory, state.environment)
    drain = OutputDrain(
        handle, initial, fold, echo=state.verbose, stdin_text=state.pending_stdin
    ).start()

    try:
        drained = drain.wait()
    except BaseException:
        # Fold callback failed; the streams were still read to EOF
        failed_code = handle.wait()
        stderr = drain.captured_stderr()
        ctx.mutate(
            lambda s: replace(s, exit_code=failed_code, last_stderr=stderr, pending_stdin=None)
        )
        raise

    code = handle.wait()
    duration_ms = (time.perf_counter() - start_time) * 1000

    ctx.mutate(
        lambda s: replace(s, exit_code=code, last_stderr=drained.stderr, pending_stdin=None)
    )
    _log.debug("%s exited with %s after %.1fms", executable, code, duration_ms)
    return code, drained, duration_ms


def run_fold_lines(
    ctx: SessionContext,
    initial: T,
    fold: FoldFn[T],
    executable: Arg,
    args: Sequence[Arg] = (),
) -> T:
    """Run a command, folding stdout line by line instead of keeping it.

    The preferred form for large outputs: only the accumulator is held in
    memory. Lines are passed to fold with their terminator. Stderr is still
    captured in full.

    Args:
        ctx: Session to run in.
        initial: Starting accumulator.
        fold: Called as fold(acc, line) for every stdout line.
        executable: Program name or path.
        args: Arguments.

    Returns:
        The final accumulator.

    Raises:
        LaunchError: If the program could not be started.
        CommandFailed: If it exited with a nonzero status.
    """
    exe, arg_list = _normalize(executable, args)
    code, drained, _ = _run_and_record(ctx, initial, fold, exe, arg_list)
    if code != 0:
        raise CommandFailed(exe, arg_list, code, drained.stderr, drained.errors)
    return drained.stdout


def run(ctx: SessionContext, executable: Arg, args: Sequence[Arg] = ()) -> str:
    """Run a command and return its stdout exactly as written."""
    return run_fold_lines(ctx, "", concat_lines, executable, args)


def run_(ctx: SessionContext, executable: Arg, args: Sequence[Arg] = ()) -> None:
    """Run a command for its side effects; stdout is read and dropped."""
    run_fold_lines(ctx, None, discard_lines, executable, args)


def execute(ctx: SessionContext, executable: Arg, args: Sequence[Arg] = ()) -> CompletedCommand:
    """Run a command and return its full outcome without raising on failure.

    The session's exit_code and last_stderr are updated exactly as by run().

    Raises:
        LaunchError: If the program could not be started.
    """
    exe, arg_list = _normalize(executable, args)
    code, drained, duration_ms = _run_and_record(ctx, "", concat_lines, exe, arg_list)
    return CompletedCommand(
        executable=exe,
        args=arg_list,
        exit_code=code,
        stdout=drained.stdout,
        stderr=drained.stderr,
        duration_ms=duration_ms,
        stream_errors=drained.errors,
    )


def command(
    ctx: SessionContext, executable: Arg, args: Sequence[Arg]
) -> Callable[[Sequence[Arg]], str]:
    """Bind leading arguments for reuse.

    Example:
        monit = command(sh, "monit", ["-c", "monitrc"])
        monit(["status"])
    """
    bound = list(args)
    return lambda more_args=(): run(ctx, executable, [*bound, *more_args])


def command_(
    ctx: SessionContext, executable: Arg, args: Sequence[Arg]
) -> Callable[[Sequence[Arg]], None]:
    """Like command(), discarding stdout."""
    bound = list(args)
    return lambda more_args=(): run_(ctx, executable, [*bound, *more_args])


def command1(
    ctx: SessionContext, executable: Arg, args: Sequence[Arg]
) -> Callable[[Arg, Sequence[Arg]], str]:
    """Bind arguments that follow one leading argument.

    Example:
        git = command1(sh, "git", [])
        git("pull", ["origin", "main"])
    """
    bound = list(args)
    return lambda one_arg, more_args=(): run(ctx, executable, [one_arg, *bound, *more_args])


def command1_(
    ctx: SessionContext, executable: Arg, args: Sequence[Arg]
) -> Callable[[Arg, Sequence[Arg]], None]:
    """Like command1(), discarding stdout."""
    bound = list(args)
    return lambda one_arg, more_args=(): run_(ctx, executable, [one_arg, *bound, *more_args])


def pipe(ctx: SessionContext, first: Callable[[], str], second: Callable[[], T]) -> T:
    """Feed first()'s result to second() as stdin.

    There is a single pending-stdin slot per session: if something else
    calls set_stdin() between the two, the later value wins.
    """
    ctx.set_stdin(first())
    return second()
