"""Services package."""

from mzfinance.services.auth import (
    AuthBackend,
    AuthError,
    ConfigurationError,
    InMemoryAuthBackend,
    InvalidCredentialsError,
    RegistrationError,
    SupabaseAuthBackend,
)
from mzfinance.services.storage import (
    DuplicateError,
    InMemoryRemoteStore,
    NotFoundError,
    RemoteStore,
    StorageConnectionError,
    StorageError,
    SupabaseClient,
    SupabaseRemoteStore,
)

__all__ = [
    # Auth services
    "AuthBackend",
    "AuthError",
    "ConfigurationError",
    "InMemoryAuthBackend",
    "InvalidCredentialsError",
    "RegistrationError",
    "SupabaseAuthBackend",
    # Storage services
    "DuplicateError",
    "InMemoryRemoteStore",
    "NotFoundError",
    "RemoteStore",
    "StorageConnectionError",
    "StorageError",
    "SupabaseClient",
    "SupabaseRemoteStore",
]
