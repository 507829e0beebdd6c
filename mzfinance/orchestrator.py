"""
Application Context for Mz Finance

Builds the session manager and the finance store and wires them together:
every identity change of the session is forwarded to the store, which loads
or resets the household's collections.

DESIGN DECISION: Components are constructed explicitly and handed to the
caller as one FinanceApp object. Nothing is looked up from module-level
globals, so tests build a fully in-memory app with the same factory.

When Supabase is not configured the app runs in offline mode: the store
works on local defaults, login returns False and nothing is pushed.
"""

from typing import Optional

from mzfinance.audit import AuditLogger, configure_logging
from mzfinance.config import Settings, get_settings
from mzfinance.models.audit import AuditEventBuilder
from mzfinance.models.user import User
from mzfinance.services.auth import AuthBackend, SupabaseAuthBackend
from mzfinance.services.storage import (
    RemoteStore,
    SupabaseClient,
    SupabaseRemoteStore,
)
from mzfinance.session import LocalState, SessionManager
from mzfinance.store import FinanceStore


class FinanceApp:
    """The wired session manager and finance store."""

    def __init__(
        self,
        session: SessionManager,
        store: FinanceStore,
        local_state: LocalState,
        audit_logger: AuditLogger,
        offline_reason: Optional[str] = None,
    ):
        self.session = session
        self.store = store
        self.local_state = local_state
        self.audit_logger = audit_logger
        self.offline_reason = offline_reason
        self._unsubscribe = session.subscribe(store.on_identity_changed)

    @property
    def is_offline(self) -> bool:
        return self.offline_reason is not None

    @property
    def current_user(self) -> Optional[User]:
        return self.session.current_user

    async def start(self) -> Optional[User]:
        """Report offline mode and resume a persisted session, if any."""
        if self.offline_reason:
            await self.audit_logger.log(AuditEventBuilder.offline_mode(self.offline_reason))
        return await self.session.restore_session()

    async def shutdown(self) -> None:
        """Wait for in-flight pushes and stop following the session."""
        await self.session.wait_for_events()
        await self.store.flush()
        self._unsubscribe()


def create_app_context(
    settings: Optional[Settings] = None,
    remote: Optional[RemoteStore] = None,
    auth: Optional[AuthBackend] = None,
    local_state: Optional[LocalState] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> FinanceApp:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        remote: Remote store; built from the Supabase settings when omitted
        auth: Auth backend; built from the Supabase settings when omitted
        local_state: Local persisted state (defaults to the configured state_dir)
        audit_logger: Shared audit logger

    Returns:
        A FinanceApp. Call ``await app.start()`` before use.
    """
    settings = settings or get_settings()
    configure_logging(settings.app.debug_mode)
    audit_logger = audit_logger or AuditLogger()

    offline_reason = None
    if remote is None and auth is None:
        supabase_settings = settings.supabase
        if supabase_settings.is_configured:
            client = SupabaseClient(supabase_settings, settings.sync.remote_attempts)
            remote = SupabaseRemoteStore(client)
            auth = SupabaseAuthBackend(client)
        else:
            offline_reason = "Supabase URL or anon key is not configured"
    elif remote is None or auth is None:
        offline_reason = "remote store and auth backend must be provided together"
        remote = None
        auth = None

    local_state = local_state or LocalState(
        settings.app.state_dir,
        settings.app.default_language,
    )
    session = SessionManager(
        auth=auth,
        remote=remote,
        local_state=local_state,
        audit_logger=audit_logger,
        profiles_table=settings.sync.profiles_table,
    )
    store = FinanceStore(remote=remote, audit_logger=audit_logger)

    return FinanceApp(
        session=session,
        store=store,
        local_state=local_state,
        audit_logger=audit_logger,
        offline_reason=offline_reason,
    )
