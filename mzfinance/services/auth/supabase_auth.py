"""Supabase Auth implementation of the auth backend."""

from typing import Any, Optional

from mzfinance.services.auth.interface import (
    AuthBackend,
    AuthError,
    AuthIdentity,
    AuthStateListener,
    InvalidCredentialsError,
)
from mzfinance.services.storage.supabase_store import SupabaseClient


class SupabaseAuthBackend(AuthBackend):
    """
    Auth backend over the shared Supabase client.

    Listeners registered before the client exists are attached on first
    connection. Every call, ``restore`` included, goes through ``_auth``, so
    a resumed session reports its transitions too.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._listeners: list[AuthStateListener] = []
        self._subscribed = False

    async def _auth(self):
        try:
            client = await self._client.connect()
        except Exception as e:
            raise AuthError(str(e))
        if not self._subscribed:
            client.auth.on_auth_state_change(self._dispatch)
            self._subscribed = True
        return client.auth

    def _dispatch(self, event: Any, session: Optional[Any]) -> None:
        name = getattr(event, "value", event)
        for listener in list(self._listeners):
            listener(str(name), session)

    @staticmethod
    def _identity(response: Any, email: str = "") -> AuthIdentity:
        session = response.session
        return AuthIdentity(
            user_id=str(response.user.id),
            email=response.user.email or email,
            access_token=session.access_token if session else None,
            refresh_token=session.refresh_token if session else None,
        )

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> AuthIdentity:
        auth = await self._auth()
        try:
            response = await auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata or {}},
            })
        except Exception as e:
            raise AuthError(f"Sign-up failed: {e}")

        if response.user is None:
            raise AuthError("Sign-up returned no user")
        return self._identity(response, email)

    async def sign_in_with_password(self, email: str, password: str) -> AuthIdentity:
        auth = await self._auth()
        try:
            response = await auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except Exception as e:
            if getattr(e, "status", None) in (400, 401):
                raise InvalidCredentialsError(str(e))
            raise AuthError(f"Sign-in failed: {e}")

        if response.user is None:
            raise InvalidCredentialsError("Sign-in returned no user")
        return self._identity(response, email)

    async def restore(self, access_token: str, refresh_token: str) -> AuthIdentity:
        auth = await self._auth()
        try:
            response = await auth.set_session(access_token, refresh_token)
        except Exception as e:
            if getattr(e, "status", None) in (400, 401):
                raise InvalidCredentialsError(str(e))
            raise AuthError(f"Session restore failed: {e}")

        if response.user is None:
            raise InvalidCredentialsError("Session restore returned no user")
        return self._identity(response)

    async def sign_out(self) -> None:
        auth = await self._auth()
        try:
            await auth.sign_out()
        except Exception as e:
            raise AuthError(f"Sign-out failed: {e}")

    async def reset_password_for_email(self, email: str) -> None:
        auth = await self._auth()
        try:
            await auth.reset_password_for_email(email)
        except Exception as e:
            raise AuthError(f"Password reset failed: {e}")

    def on_auth_state_change(self, listener: AuthStateListener) -> None:
        self._listeners.append(listener)
