"""In-memory auth backend for tests and local development."""

from typing import Any, Optional

from mzfinance.models.finance import new_id
from mzfinance.services.auth.interface import (
    SIGNED_IN,
    SIGNED_OUT,
    TOKEN_REFRESHED,
    AuthBackend,
    AuthError,
    AuthIdentity,
    AuthStateListener,
    InvalidCredentialsError,
)


class InMemoryAuthBackend(AuthBackend):
    """
    Accounts kept in a dict keyed by email.

    Every sign-in issues a refresh token; ``restore`` accepts each refresh
    token once and rotates it, like the hosted backend. ``fail_next`` makes
    the next call raise AuthError, simulating a network failure.
    """

    def __init__(self):
        self._accounts: dict[str, tuple[str, str]] = {}
        self._refresh_tokens: dict[str, tuple[str, str]] = {}
        self._listeners: list[AuthStateListener] = []
        self.current: Optional[AuthIdentity] = None
        self.reset_requests: list[str] = []
        self._fail_next: Optional[str] = None

    def fail_next(self, message: str = "network unreachable") -> None:
        self._fail_next = message

    def _check_failure(self) -> None:
        if self._fail_next is not None:
            message, self._fail_next = self._fail_next, None
            raise AuthError(message)

    def _emit(self, event: str, session: Optional[Any]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    def _open_session(self, user_id: str, email: str) -> AuthIdentity:
        refresh_token = new_id()
        self._refresh_tokens[refresh_token] = (user_id, email)
        self.current = AuthIdentity(
            user_id=user_id,
            email=email,
            access_token=new_id(),
            refresh_token=refresh_token,
        )
        return self.current

    def emit_signed_out(self) -> None:
        """Simulate the backend ending the session (expiry, revoked token)."""
        self.current = None
        self._emit(SIGNED_OUT, None)

    def refresh(self) -> AuthIdentity:
        """Simulate the backend rotating the tokens of the open session."""
        self._refresh_tokens.pop(self.current.refresh_token, None)
        identity = self._open_session(self.current.user_id, self.current.email)
        self._emit(TOKEN_REFRESHED, identity)
        return identity

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> AuthIdentity:
        self._check_failure()
        key = email.lower()
        if key in self._accounts:
            raise AuthError("User already registered")
        user_id = new_id()
        self._accounts[key] = (user_id, password)
        return AuthIdentity(user_id=user_id, email=email)

    async def sign_in_with_password(self, email: str, password: str) -> AuthIdentity:
        self._check_failure()
        account = self._accounts.get(email.lower())
        if account is None or account[1] != password:
            raise InvalidCredentialsError("Invalid login credentials")
        identity = self._open_session(account[0], email)
        self._emit(SIGNED_IN, identity)
        return identity

    async def restore(self, access_token: str, refresh_token: str) -> AuthIdentity:
        self._check_failure()
        account = self._refresh_tokens.pop(refresh_token, None)
        if account is None:
            raise InvalidCredentialsError("Invalid refresh token")
        identity = self._open_session(*account)
        self._emit(TOKEN_REFRESHED, identity)
        return identity

    async def sign_out(self) -> None:
        self._check_failure()
        if self.current is not None:
            self._refresh_tokens.pop(self.current.refresh_token, None)
        self.current = None
        self._emit(SIGNED_OUT, None)

    async def reset_password_for_email(self, email: str) -> None:
        self._check_failure()
        self.reset_requests.append(email)

    def on_auth_state_change(self, listener: AuthStateListener) -> None:
        self._listeners.append(listener)
