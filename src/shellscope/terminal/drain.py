"""Concurrent draining of a child's output streams.

OS pipes have bounded buffers. A child that fills its stderr pipe while the
parent is blocked reading stdout (or writing stdin) stops forever, and so
does the parent. OutputDrain avoids this by giving each stream its own
thread from the moment the child is spawned:

- stdout reader: folds lines into a caller-supplied accumulator
- stderr reader: accumulates the full stderr text
- stdin writer: writes the pending payload, then closes the pipe

Each thread hands its outcome back through a OneShot; wait() collects all
three in whatever order they finish.
"""

from __future__ import annotations

import contextlib
import logging
import sys
import threading
from collections.abc import Callable
from typing import IO, Generic, TypeVar

from shellscope.errors import StreamReadError
from shellscope.jobs.future import OneShot
from shellscope.terminal.protocol import ProcessHandle
from shellscope.terminal.result import DrainResult

_log = logging.getLogger("shellscope.terminal.drain")

T = TypeVar("T")

FoldFn = Callable[[T, str], T]


def concat_lines(acc: str, line: str) -> str:
    """Default fold: append each line with its own terminator."""
    return acc + line


def discard_lines(acc: None, line: str) -> None:
    return None


def _echo_target(name: str) -> IO[str]:
    # Looked up per line so redirected sys.stdout/sys.stderr are honored
    return sys.stdout if name == "stdout" else sys.stderr


class _StreamOutcome(Generic[T]):
    __slots__ = ("value", "error")

    def __init__(self, value: T, error: StreamReadError | None) -> None:
        self.value = value
        self.error = error


def fold_stream(
    stream: IO[str],
    initial: T,
    fold: FoldFn[T],
    *,
    name: str,
    echo: bool = False,
) -> _StreamOutcome[T]:
    """Read stream line by line until EOF, folding every line into initial.

    Lines end at "\\n" only and keep their terminator; a lone "\\r" stays
    inside the line it appears in. A final line without a terminator is
    still folded.

    A read failure ends the stream: the accumulator so far is kept and the
    failure is returned as a StreamReadError. If fold itself raises, the
    stream is still read to EOF (so the child never blocks on a full pipe)
    and the fold error is re-raised afterwards.
    """
    acc = initial
    error: StreamReadError | None = None
    fold_error: BaseException | None = None
    pending = ""

    def take(line: str) -> None:
        nonlocal acc, fold_error
        if fold_error is None:
            try:
                acc = fold(acc, line)
            except Exception as e:
                fold_error = e
        if echo:
            target = _echo_target(name)
            target.write(line)
            target.flush()

    try:
        try:
            # newline="" readers also break after a bare "\r"; rejoin those pieces
            for piece in iter(stream.readline, ""):
                pending += piece
                if pending.endswith("\n"):
                    take(pending)
                    pending = ""
        except (OSError, ValueError) as e:
            error = StreamReadError(name, str(e))
            _log.warning("Treating %s as ended after read error: %s", name, e)
        if pending:
            take(pending)
    finally:
        with contextlib.suppress(OSError):
            stream.close()

    if fold_error is not None:
        raise fold_error
    return _StreamOutcome(acc, error)


def feed_stdin(stream: IO[str] | None, payload: str | None) -> None:
    """Write payload to the child's stdin and close it.

    The pipe is closed even without a payload so children that read stdin
    see EOF instead of waiting forever.
    """
    if stream is None:
        return
    try:
        if payload:
            stream.write(payload)
            stream.flush()
    except BrokenPipeError:
        _log.debug("Child closed stdin before reading %d chars", len(payload or ""))
    finally:
        with contextlib.suppress(BrokenPipeError):
            stream.close()


class OutputDrain(Generic[T]):
    """Drains one child process's stdout and stderr concurrently.

    Example:
        drain = OutputDrain(handle, "", concat_lines, stdin_text="data").start()
        result = drain.wait()  # DrainResult with stdout, stderr, errors
        code = handle.wait()
    """

    def __init__(
        self,
        handle: ProcessHandle,
        initial: T,
        fold: FoldFn[T],
        *,
        echo: bool = False,
        stdin_text: str | None = None,
    ) -> None:
        self._handle = handle
        self._initial = initial
        self._fold = fold
        self._echo = echo
        self._stdin_text = stdin_text

        self._stdout_done: OneShot[_StreamOutcome[T]] = OneShot()
        self._stderr_done: OneShot[_StreamOutcome[str]] = OneShot()
        self._stdin_done: OneShot[None] = OneShot()
        self._started = False

    def start(self) -> OutputDrain[T]:
        """Start the two reader threads and the stdin writer thread."""
        if self._started:
            raise RuntimeError("OutputDrain already started")
        self._started = True

        self._spawn(
            "stdout",
            self._stdout_done,
            lambda: fold_stream(
                self._handle.stdout, self._initial, self._fold, name="stdout", echo=self._echo
            ),
        )
        self._spawn(
            "stderr",
            self._stderr_done,
            lambda: fold_stream(
                self._handle.stderr, "", concat_lines, name="stderr", echo=self._echo
            ),
        )
        self._spawn(
            "stdin",
            self._stdin_done,
            lambda: feed_stdin(self._handle.stdin, self._stdin_text),
        )
        return self

    @staticmethod
    def _spawn(name: str, done: OneShot, work: Callable[[], object]) -> None:
        def runner() -> None:
            try:
                value = work()
            except BaseException as e:
                done.set_exception(e)
            else:
                done.set_result(value)

        thread = threading.Thread(target=runner, name=f"shellscope-{name}", daemon=True)
        thread.start()

    def wait(self) -> DrainResult[T]:
        """Block until stdin is written and both output streams hit EOF.

        Raises:
            Exception: Whatever the fold function raised, after draining.
        """
        if not self._started:
            raise RuntimeError("OutputDrain.wait() called before start()")

        # Settle all three before surfacing any failure
        first_error: BaseException | None = None
        for done in (self._stdin_done, self._stderr_done, self._stdout_done):
            try:
                done.result()
            except BaseException as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

        stderr = self._stderr_done.result()
        stdout = self._stdout_done.result()
        errors = [e for e in (stdout.error, stderr.error) if e is not None]
        return DrainResult(stdout=stdout.value, stderr=stderr.value, errors=errors)

    def captured_stderr(self) -> str:
        """Full stderr text, blocking until the stderr reader finishes.

        Usable after wait() raised for a stdout fold error, when no
        DrainResult is available.
        """
        if not self._started:
            raise RuntimeError("OutputDrain.captured_stderr() called before start()")
        return self._stderr_done.result().value
