"""
Shared fixtures.

Everything runs against the in-memory remote store and auth backend; no
test touches the network.
"""

import pytest

from mzfinance.audit import AuditLogger
from mzfinance.config import get_settings
from mzfinance.models.user import User, UserRole
from mzfinance.services.auth import InMemoryAuthBackend
from mzfinance.services.storage import InMemoryRemoteStore, profile_mapping
from mzfinance.session import LocalState, SessionManager
from mzfinance.store import FinanceStore


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from the developer's environment."""
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SYNC_REMOTE_ATTEMPTS",
                 "SYNC_PROFILES_TABLE", "MIN_PASSWORD_LENGTH", "DEFAULT_LANGUAGE"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def remote():
    return InMemoryRemoteStore()


@pytest.fixture
def auth():
    return InMemoryAuthBackend()


@pytest.fixture
def audit_logger():
    return AuditLogger("mzfinance.tests")


@pytest.fixture
def local_state(tmp_path):
    return LocalState(tmp_path / "state", default_language="pt")


@pytest.fixture
def store(remote, audit_logger):
    return FinanceStore(remote=remote, audit_logger=audit_logger)


@pytest.fixture
def session(auth, remote, local_state, audit_logger):
    return SessionManager(
        auth=auth,
        remote=remote,
        local_state=local_state,
        audit_logger=audit_logger,
        profiles_table="profiles",
    )


@pytest.fixture
def owner():
    return User(
        id="owner-1",
        name="Maria Souza",
        username="maria",
        email="maria@example.com",
        role=UserRole.RESPONSIBLE,
    )


@pytest.fixture
def seed_account(auth, remote):
    """Create an auth account plus profile row without going through register()."""

    async def seed(user: User, password: str) -> User:
        identity = await auth.sign_up(str(user.email), password)
        profile = user.model_copy(update={"id": identity.user_id})
        await remote.insert_row("profiles", profile_mapping().to_remote(profile))
        return profile

    return seed
