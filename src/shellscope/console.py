"""Console output helpers for session scripts.

Text is printed verbatim: it goes to rich as a single raw Segment, so
there is no markup, highlighting, emoji replacement, tab expansion or
wrapping, and echo("[x]\\tb") prints "[x]\\tb".
"""

from __future__ import annotations

import sys
from typing import Any, NoReturn

from rich.console import Console, ConsoleOptions, RenderResult
from rich.segment import Segment


class _Verbatim:
    """Renderable that emits its text unchanged."""

    def __init__(self, text: str) -> None:
        self.text = text

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        yield Segment(self.text)


def _write(file: Any, text: str) -> None:
    # Console built per call so redirected sys.stdout (e.g. under pytest) is honored
    Console(file=file).print(_Verbatim(text), soft_wrap=True, end="")
    file.flush()


def echo(text: str) -> None:
    """Print text and a newline to stdout."""
    _write(sys.stdout, f"{text}\n")


def echo_n(text: str) -> None:
    """Print text to stdout without a trailing newline."""
    _write(sys.stdout, text)


def echo_err(text: str) -> None:
    """Print text and a newline to stderr."""
    _write(sys.stderr, f"{text}\n")


def echo_n_err(text: str) -> None:
    """Print text to stderr without a trailing newline."""
    _write(sys.stderr, text)


def inspect(value: Any) -> None:
    """Print the repr of value to stdout."""
    echo(repr(value))


def echo_command(executable: str, args: list[str]) -> None:
    """Echo a command line before it runs (print_commands mode)."""
    echo(" ".join([executable, *args]))


def exit(code: int = 0) -> NoReturn:  # noqa: A001
    """Exit the host program with code."""
    raise SystemExit(code)


def error_exit(message: str) -> NoReturn:
    """Print message to stdout, then exit with status 1."""
    echo(message)
    raise SystemExit(1)
