"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from shellscope.config import SessionConfig, reset_config
from shellscope.logging import reset_logging
from shellscope.session import SessionContext

_ENV_VARS = (
    "SHELLSCOPE_LOG",
    "SHELLSCOPE_VERBOSE",
    "SHELLSCOPE_PRINT_COMMANDS",
    "SHELLSCOPE_MAX_JOBS",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user/system config files and env overrides out of every test."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    reset_config()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def sh(tmp_path: Path) -> SessionContext:
    """Quiet session rooted at tmp_path."""
    return SessionContext.from_environment(SessionConfig(verbose=False), cwd=tmp_path)
