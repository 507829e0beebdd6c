"""Authentication services package."""

from mzfinance.services.auth.interface import (
    SIGNED_IN,
    SIGNED_OUT,
    TOKEN_REFRESHED,
    AuthBackend,
    AuthError,
    AuthIdentity,
    ConfigurationError,
    InvalidCredentialsError,
    RegistrationError,
)
from mzfinance.services.auth.memory import InMemoryAuthBackend
from mzfinance.services.auth.supabase_auth import SupabaseAuthBackend

__all__ = [
    "SIGNED_IN",
    "SIGNED_OUT",
    "TOKEN_REFRESHED",
    "AuthBackend",
    "AuthError",
    "AuthIdentity",
    "ConfigurationError",
    "InvalidCredentialsError",
    "RegistrationError",
    "InMemoryAuthBackend",
    "SupabaseAuthBackend",
]
