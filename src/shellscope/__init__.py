"""shellscope: run external commands from Python in isolated sessions.

Each session has its own working directory, environment and last-command
status, so concurrent sessions never interfere with each other or with the
host process.
"""

__version__ = "0.1.0"

# Public API
from shellscope.config import Config, SessionConfig, get_config, load_config
from shellscope.errors import (
    CommandFailed,
    LaunchError,
    OneShotAlreadySet,
    ShellScopeError,
    StreamReadError,
)
from shellscope.jobs import BackgroundJob, JobSlots, JobStatus, OneShot, get_bg_result
from shellscope.logging import get_logger, setup_logging
from shellscope.session import SessionContext, SessionState, Timing, open_session, shell
from shellscope.terminal import CompletedCommand

__all__ = [
    # Entry points
    "open_session",
    "shell",
    "SessionContext",
    "SessionState",
    "Timing",
    # Results and jobs
    "CompletedCommand",
    "BackgroundJob",
    "JobSlots",
    "JobStatus",
    "OneShot",
    "get_bg_result",
    # Errors
    "ShellScopeError",
    "CommandFailed",
    "LaunchError",
    "StreamReadError",
    "OneShotAlreadySet",
    # Config and logging
    "Config",
    "SessionConfig",
    "load_config",
    "get_config",
    "setup_logging",
    "get_logger",
]
