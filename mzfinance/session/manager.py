"""
Session Manager

Owns the current identity and the household's user list.

DESIGN DECISION: Authentication is delegated to the auth backend; the
profile table only maps usernames to emails and stores roles and
permissions. Every remote failure on the login path is logged and turned
into a False result, so callers show one generic "invalid login" message
and never learn whether the username exists.

Registration is the exception: it raises, because the caller has to tell
"backend not configured" apart from "sign-up refused".

The local marker carries the auth tokens next to the profile. A restart
resumes only when the auth backend accepts those tokens again; rotated
tokens are written back whenever the backend refreshes them.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from mzfinance.audit import AuditLogger, get_logger
from mzfinance.config import get_settings
from mzfinance.models.audit import AuditEventBuilder
from mzfinance.models.user import FULL_PERMISSIONS, User, UserPermissions
from mzfinance.services.auth.interface import (
    SIGNED_OUT,
    TOKEN_REFRESHED,
    AuthBackend,
    AuthError,
    AuthIdentity,
    ConfigurationError,
    InvalidCredentialsError,
    RegistrationError,
)
from mzfinance.services.storage.interface import RemoteStore, StorageError
from mzfinance.services.storage.mapping import profile_mapping
from mzfinance.session.local_state import LocalState


logger = get_logger(__name__)

IdentityListener = Callable[[Optional[User]], Awaitable[None]]


class SessionStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class PasswordResetResult(BaseModel):
    success: bool
    error: Optional[str] = None


class SessionManager:
    """
    Login, logout, registration and household user administration.

    Listeners registered with ``subscribe`` are awaited with the new
    identity after every transition (None when signed out).
    """

    def __init__(
        self,
        auth: Optional[AuthBackend] = None,
        remote: Optional[RemoteStore] = None,
        local_state: Optional[LocalState] = None,
        audit_logger: Optional[AuditLogger] = None,
        profiles_table: Optional[str] = None,
    ):
        self._auth = auth
        self._remote = remote
        self._local_state = local_state or LocalState()
        self._audit_logger = audit_logger or AuditLogger()
        self._profiles = profile_mapping(profiles_table or get_settings().sync.profiles_table)

        self._current: Optional[User] = None
        self._identity: Optional[AuthIdentity] = None
        self._users: list[User] = []
        self._listeners: list[IdentityListener] = []
        self._event_tasks: set[asyncio.Task] = set()

        if self._auth is not None:
            self._auth.on_auth_state_change(self.handle_auth_event)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_offline(self) -> bool:
        return self._auth is None or self._remote is None

    @property
    def status(self) -> SessionStatus:
        if self._current is None:
            return SessionStatus.ANONYMOUS
        return SessionStatus.AUTHENTICATED

    @property
    def current_user(self) -> Optional[User]:
        return self._current

    @property
    def users(self) -> list[User]:
        return list(self._users)

    def dependents(self) -> list[User]:
        """Users whose responsible user is the current user."""
        if self._current is None:
            return []
        return [u for u in self._users if u.responsible_id == self._current.id]

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register an identity listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, user: Optional[User]) -> None:
        for listener in list(self._listeners):
            try:
                await listener(user)
            except Exception as e:
                await self._audit_logger.log_error(
                    error_type="identity_listener_failed",
                    error_message=str(e),
                    details={"listener": getattr(listener, "__qualname__", repr(listener))},
                )

    def _clear_identity(self) -> None:
        self._current = None
        self._identity = None
        self._users = []
        self._local_state.clear_session()

    def _persist(self) -> None:
        identity = self._identity
        self._local_state.save_session(
            self._current,
            access_token=identity.access_token if identity else None,
            refresh_token=identity.refresh_token if identity else None,
        )

    # -------------------------------------------------------------------------
    # Login / logout
    # -------------------------------------------------------------------------

    async def _resolve_email(self, handle: str) -> Optional[str]:
        handle = handle.strip()
        if "@" in handle:
            return handle
        rows = await self._remote.select_where(self._profiles.table, {"username": handle})
        if not rows:
            return None
        return rows[0].get("email")

    async def _fetch_profile(self, user_id: str) -> Optional[User]:
        rows = await self._remote.select_where(self._profiles.table, {"id": user_id})
        if not rows:
            return None
        return self._profiles.from_remote(rows[0])

    async def login(self, handle: str, secret: str) -> bool:
        """
        Sign in with a username or an email.

        Returns:
            True on success. Unknown handles, wrong passwords and remote
            failures all return False (and are logged).
        """
        if self.is_offline:
            await self._audit_logger.log(AuditEventBuilder.login_failed(handle, "offline mode"))
            return False

        try:
            email = await self._resolve_email(handle)
            if not email:
                raise InvalidCredentialsError("Unknown username")
            identity = await self._auth.sign_in_with_password(email, secret)
            user = await self._fetch_profile(identity.user_id)
            if user is None:
                raise InvalidCredentialsError("No profile for the signed-in account")
        except (AuthError, StorageError, ValueError) as e:
            await self._audit_logger.log(AuditEventBuilder.login_failed(handle, str(e)))
            return False

        self._current = user
        self._identity = identity
        self._persist()
        await self.load_users()
        await self._audit_logger.log(AuditEventBuilder.login_succeeded(user.id, user.username))
        await self._notify(user)
        return True

    async def logout(self) -> None:
        """Sign out remotely and locally; listeners receive None."""
        user = self._current
        self._clear_identity()

        if self._auth is not None:
            try:
                await self._auth.sign_out()
            except AuthError as e:
                await self._audit_logger.log_external_service_error(
                    service="auth",
                    operation="sign_out",
                    error_message=str(e),
                )

        await self._audit_logger.log(AuditEventBuilder.logout(user.id if user else None))
        await self._notify(None)

    async def restore_session(self) -> Optional[User]:
        """
        Resume the session persisted by a previous run, if any.

        With an auth backend the saved tokens must reopen a remote session
        for the same account; otherwise the marker is dropped and the
        manager stays anonymous. Offline, the marker alone is enough.
        """
        marker = self._local_state.load_session()
        if marker is None:
            return None
        user = marker.user

        if self._auth is not None:
            try:
                if not marker.has_tokens:
                    raise InvalidCredentialsError("Session marker has no auth tokens")
                identity = await self._auth.restore(marker.access_token, marker.refresh_token)
                if identity.user_id != user.id:
                    raise InvalidCredentialsError("Restored session belongs to another account")
            except AuthError as e:
                self._local_state.clear_session()
                await self._audit_logger.log(AuditEventBuilder.session_restore_failed(user.id, str(e)))
                return None
        elif marker.has_tokens:
            identity = AuthIdentity(
                user_id=user.id,
                email=str(user.email),
                access_token=marker.access_token,
                refresh_token=marker.refresh_token,
            )
        else:
            identity = None

        self._current = user
        self._identity = identity
        self._persist()
        await self.load_users()
        await self._audit_logger.log(AuditEventBuilder.session_restored(user.id))
        await self._notify(user)
        return user

    def handle_auth_event(self, event: str, session=None) -> None:
        """
        Auth backend listener.

        A remote sign-out (expired or revoked session) drops the local
        identity immediately; listeners are notified from a task. Refreshed
        tokens replace the ones in the local marker.
        """
        if self._current is None:
            return
        if event == TOKEN_REFRESHED:
            self._store_refreshed_tokens(session)
            return
        if event != SIGNED_OUT:
            return

        user_id = self._current.id
        self._clear_identity()
        try:
            task = asyncio.get_running_loop().create_task(self._after_remote_sign_out(user_id))
        except RuntimeError:
            logger.warning("remote_sign_out_without_loop", user_id=user_id)
            return
        self._event_tasks.add(task)
        task.add_done_callback(self._event_tasks.discard)

    def _store_refreshed_tokens(self, session) -> None:
        access_token = getattr(session, "access_token", None)
        refresh_token = getattr(session, "refresh_token", None)
        if not (access_token and refresh_token) or self._identity is None:
            return
        self._identity = self._identity.model_copy(
            update={"access_token": access_token, "refresh_token": refresh_token}
        )
        self._persist()

    async def _after_remote_sign_out(self, user_id: str) -> None:
        await self._audit_logger.log(AuditEventBuilder.remote_signed_out(user_id))
        await self._notify(None)

    async def wait_for_events(self) -> None:
        """Wait until listeners of auth-backend events have run."""
        pending = [task for task in self._event_tasks if not task.done()]
        while pending:
            await asyncio.gather(*pending, return_exceptions=True)
            pending = [task for task in self._event_tasks if not task.done()]

    # -------------------------------------------------------------------------
    # Registration and password reset
    # -------------------------------------------------------------------------

    async def register(self, user: User, password: Optional[str] = None) -> User:
        """
        Create an auth account and its profile row.

        The profile id is the auth user id. Responsible users get every
        permission. The new user is not signed in.

        Raises:
            ConfigurationError: If the remote backend is not configured
            RegistrationError: If sign-up or the profile insert fails
        """
        if self.is_offline:
            raise ConfigurationError("Remote backend is not configured")

        if password is None and user.password is not None:
            password = user.password.get_secret_value()
        if not password:
            raise RegistrationError("A password is required")

        try:
            identity = await self._auth.sign_up(user.email, password, {
                "name": user.name,
                "username": user.username,
                "role": user.role.value,
            })
        except AuthError as e:
            await self._audit_logger.log(
                AuditEventBuilder.registration_failed(user.username, "sign_up", str(e))
            )
            raise RegistrationError(str(e)) from e

        update = {"id": identity.user_id, "password": None}
        if user.is_responsible:
            update["permissions"] = FULL_PERMISSIONS.model_copy()
        profile = user.model_copy(update=update)

        try:
            await self._remote.insert_row(self._profiles.table, self._profiles.to_remote(profile))
        except StorageError as e:
            await self._audit_logger.log(
                AuditEventBuilder.registration_failed(user.username, "profile", str(e))
            )
            raise RegistrationError(f"Profile could not be saved: {e}") from e

        if self._current is not None and profile.responsible_id == self._current.owner_id:
            self._users.append(profile)

        await self._audit_logger.log(
            AuditEventBuilder.user_registered(profile.id, profile.username, profile.role.value)
        )
        return profile

    async def request_password_reset(self, email: str) -> PasswordResetResult:
        """Ask the auth backend to send a reset link. Never raises."""
        if self.is_offline:
            result = PasswordResetResult(success=False, error="Remote backend is not configured")
        else:
            try:
                await self._auth.reset_password_for_email(email.strip())
                result = PasswordResetResult(success=True)
            except AuthError as e:
                result = PasswordResetResult(success=False, error=str(e))

        await self._audit_logger.log(
            AuditEventBuilder.password_reset_requested(email, result.success)
        )
        return result

    # -------------------------------------------------------------------------
    # Household users
    # -------------------------------------------------------------------------

    async def load_users(self) -> list[User]:
        """
        Fetch the household: the owner profile plus its dependents.

        On a remote failure the current list is kept.
        """
        if self._current is None or self._remote is None:
            return self.users

        owner_id = self._current.owner_id
        table = self._profiles.table
        try:
            owners, dependents = await asyncio.gather(
                self._remote.select_where(table, {"id": owner_id}),
                self._remote.select_where(table, {"responsible_id": owner_id}),
            )
            self._users = [self._profiles.from_remote(row) for row in owners + dependents]
        except (StorageError, ValueError) as e:
            await self._audit_logger.log(
                AuditEventBuilder.table_fetch_failed(table, owner_id, str(e))
            )
        return self.users

    async def update_dependent_permissions(
        self,
        user_id: str,
        permissions: UserPermissions,
    ) -> bool:
        """
        Replace a user's permissions remotely and locally.

        When the edited user is the one signed in, the current identity and
        the session marker are refreshed too.
        """
        if self._remote is not None:
            try:
                await self._remote.update_row(
                    self._profiles.table,
                    user_id,
                    {"permissions": permissions.model_dump(mode="json")},
                )
            except StorageError as e:
                await self._audit_logger.log_external_service_error(
                    service="remote_store",
                    operation="update_permissions",
                    error_message=str(e),
                )
                return False

        self._users = [
            u.model_copy(update={"permissions": permissions}) if u.id == user_id else u
            for u in self._users
        ]
        if self._current is not None and self._current.id == user_id:
            self._current = self._current.model_copy(update={"permissions": permissions})
            self._persist()

        await self._audit_logger.log(
            AuditEventBuilder.permissions_updated(user_id, permissions.model_dump())
        )
        return True

    async def delete_user(self, user_id: str) -> bool:
        """
        Remove a household user's profile.

        The local list changes first; the remote delete is best effort.
        The signed-in user cannot delete themselves.
        """
        if self._current is not None and self._current.id == user_id:
            return False
        remaining = [u for u in self._users if u.id != user_id]
        if len(remaining) == len(self._users):
            return False
        self._users = remaining

        if self._remote is not None:
            try:
                await self._remote.delete_row(self._profiles.table, user_id)
            except StorageError as e:
                await self._audit_logger.log(
                    AuditEventBuilder.remote_delete_failed(self._profiles.table, user_id, str(e))
                )

        await self._audit_logger.log(AuditEventBuilder.user_deleted(user_id))
        return True
