"""Sessions: isolated directory, environment and last-command state."""

from shellscope.session.context import SessionContext, Timing, open_session, shell
from shellscope.session.state import SessionState

__all__ = [
    "SessionContext",
    "SessionState",
    "Timing",
    "open_session",
    "shell",
]
