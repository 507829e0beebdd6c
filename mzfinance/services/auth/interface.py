"""
Abstract Auth Backend Interface

Wraps the hosted authentication subsystem: sign-up, password sign-in,
sign-out, password-reset requests and a subscription to session-state
transitions.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import BaseModel


SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

AuthStateListener = Callable[[str, Optional[Any]], None]


class AuthIdentity(BaseModel):
    """Identity issued by the auth backend."""

    user_id: str
    email: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class AuthBackend(ABC):
    """Abstract interface for the remote auth subsystem."""

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> AuthIdentity:
        """
        Create an account.

        Raises:
            AuthError: If the backend refuses the sign-up
        """
        pass

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthIdentity:
        """
        Verify a credential and open a session.

        Raises:
            InvalidCredentialsError: If email or password is wrong
            AuthError: On any other failure
        """
        pass

    @abstractmethod
    async def restore(self, access_token: str, refresh_token: str) -> AuthIdentity:
        """
        Reopen a session from tokens saved by a previous run.

        The backend may rotate the tokens; the returned identity carries
        the ones to keep.

        Raises:
            InvalidCredentialsError: If the tokens are expired or revoked
            AuthError: On any other failure
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """Invalidate the current remote session."""
        pass

    @abstractmethod
    async def reset_password_for_email(self, email: str) -> None:
        """Start the backend's password-reset flow for an email."""
        pass

    @abstractmethod
    def on_auth_state_change(self, listener: AuthStateListener) -> None:
        """
        Register a listener for session transitions.

        The listener receives the event name (e.g. ``SIGNED_OUT``) and the
        session object, or None.
        """
        pass


class AuthError(Exception):
    """Base exception for authentication and account management."""
    pass


class ConfigurationError(AuthError):
    """The remote collaborator is not configured (offline mode)."""
    pass


class InvalidCredentialsError(AuthError):
    """Unknown login handle or wrong password."""
    pass


class RegistrationError(AuthError):
    """Sign-up or the follow-up profile insert failed."""
    pass
