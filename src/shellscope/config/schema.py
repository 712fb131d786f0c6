"""Configuration schema dataclasses for shellscope.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults to support partial configs that merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SessionConfig:
    """Defaults applied to every freshly entered session.

    Example config.yaml:
        session:
          verbose: false
          print_commands: true
          max_jobs: 4
    """

    verbose: bool = True  # Echo child output while capturing it
    print_commands: bool = False  # Echo each command line before running it
    max_jobs: int | None = None  # Background job limit; None is unbounded
    encoding: str = "utf-8"  # Encoding for child stdin/stdout/stderr


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-3, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)  # Unknown top-level keys
