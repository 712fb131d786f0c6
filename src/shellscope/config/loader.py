"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reload support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from shellscope.config.merge import merge_configs
from shellscope.config.paths import get_config_paths
from shellscope.config.schema import Config, LoggingConfig, SessionConfig

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("shellscope.config")

# Global cached config
_cached_config: Config | None = None

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def _parse_bool(name: str, value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    _log.warning("Ignoring %s=%r: expected a boolean", name, value)
    return None


def _parse_positive_int(name: str, value: str) -> int | None:
    try:
        parsed = int(value)
    except ValueError:
        parsed = 0
    if parsed < 1:
        _log.warning("Ignoring %s=%r: expected a positive integer", name, value)
        return None
    return parsed


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    Environment variables take highest priority.

    Returns:
        Config dict with values from environment.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("SHELLSCOPE_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    session: dict[str, Any] = {}
    verbose = os.environ.get("SHELLSCOPE_VERBOSE")
    if verbose:
        session["verbose"] = _parse_bool("SHELLSCOPE_VERBOSE", verbose)
    print_commands = os.environ.get("SHELLSCOPE_PRINT_COMMANDS")
    if print_commands:
        session["print_commands"] = _parse_bool("SHELLSCOPE_PRINT_COMMANDS", print_commands)
    max_jobs = os.environ.get("SHELLSCOPE_MAX_JOBS")
    if max_jobs:
        session["max_jobs"] = _parse_positive_int("SHELLSCOPE_MAX_JOBS", max_jobs)
    if session:
        overrides["session"] = session

    return overrides


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.

    Returns:
        Typed Config object.
    """
    session_data = data.get("session") or {}
    max_jobs = session_data.get("max_jobs")
    if max_jobs is not None and (not isinstance(max_jobs, int) or max_jobs < 1):
        _log.warning("Ignoring session.max_jobs=%r: expected a positive integer", max_jobs)
        max_jobs = None

    session = SessionConfig(
        verbose=bool(_or_default(session_data.get("verbose"), True)),
        print_commands=bool(_or_default(session_data.get("print_commands"), False)),
        max_jobs=max_jobs,
        encoding=session_data.get("encoding") or "utf-8",
    )

    log_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"session", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(session=session, logging=logging_config, extra=extra)


def load_config(session_root: str | os.PathLike[str] | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($session_root/.shellscope/config.yaml)
    3. User config (~/.config/shellscope/config.yaml or %APPDATA%)
    4. System config (/etc/shellscope/ or %PROGRAMDATA%)

    Args:
        session_root: Project directory for project-level config.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and session_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []

    for path in get_config_paths(session_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    # Cache only global config (no session_root)
    if session_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config.

    Useful for testing or forcing a reload.
    """
    global _cached_config
    _cached_config = None


def reload_config(session_root: str | os.PathLike[str] | None = None) -> Config:
    """Reload config from files, bypassing the cache."""
    return load_config(session_root=session_root, reload=True)
