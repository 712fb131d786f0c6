"""External command execution.

Provides the process runner, the concurrent output drain, and the
run/pipe protocol that records each command's outcome on its session.
"""

from shellscope.terminal.drain import OutputDrain, concat_lines, discard_lines
from shellscope.terminal.protocol import ProcessHandle, SpawnFn
from shellscope.terminal.result import CompletedCommand, DrainResult
from shellscope.terminal.subprocess_runner import SubprocessHandle, spawn_process

__all__ = [
    "CompletedCommand",
    "DrainResult",
    "OutputDrain",
    "ProcessHandle",
    "SpawnFn",
    "SubprocessHandle",
    "concat_lines",
    "discard_lines",
    "spawn_process",
]
