"""Logging configuration for shellscope.

Library modules log through child loggers of "shellscope" (command
spawn/exit and job lifecycle at debug, stream read errors at warning) and
never install handlers themselves. A host program calls setup_logging()
once to route those records to a file or, on a terminal, to stderr.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shellscope.config.schema import LoggingConfig

logger = logging.getLogger("shellscope")
logger.addHandler(logging.NullHandler())

_initialized = False

# verbose=N in config: 0 errors only ... 3 everything
_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Log level from config: verbose (0-3) wins over a level name; INFO by default."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(_VERBOSITY_LEVELS) - 1)
        return _VERBOSITY_LEVELS[index]
    if config.level:
        level = logging.getLevelName(config.level.upper())
        if isinstance(level, int):
            return level
    return logging.INFO


def _handler_for(path: str | None) -> logging.Handler | None:
    if path:
        return logging.FileHandler(os.path.expanduser(path), mode="a", encoding="utf-8")
    # Child stderr is echoed to the host's stderr; only interleave log lines
    # there when someone is watching
    if sys.stderr.isatty():
        return logging.StreamHandler(sys.stderr)
    return None


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Route shellscope's log records to a file or a terminal.

    The file comes from config.file, else SHELLSCOPE_LOG. Without either,
    records go to stderr only when it is a TTY. Subsequent calls are no-ops
    until reset_logging().

    Raises:
        OSError: If the log file cannot be opened.
    """
    global _initialized
    if _initialized:
        return

    level = resolve_level(config)
    path = config.file if config and config.file else os.environ.get("SHELLSCOPE_LOG")
    handler = _handler_for(path)

    logger.setLevel(level)
    if handler is not None:
        handler.setLevel(level)
        handler.setFormatter(
            _LowercaseLevelFormatter(
                "%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
            )
        )
        logger.addHandler(handler)
    _initialized = True


def reset_logging() -> None:
    """Remove handlers installed by setup_logging() so it can run again."""
    global _initialized
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)
    _initialized = False


def get_logger(name: str | None = None) -> logging.Logger:
    """The package logger, or its child named name (e.g. "jobs")."""
    return logger.getChild(name) if name else logger
