"""Session package: identity, household users and local state."""

from mzfinance.session.local_state import LocalState, SessionMarker
from mzfinance.session.manager import (
    PasswordResetResult,
    SessionManager,
    SessionStatus,
)

__all__ = [
    "LocalState",
    "PasswordResetResult",
    "SessionMarker",
    "SessionManager",
    "SessionStatus",
]
