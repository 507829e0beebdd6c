"""
Storage Services Package

Abstract remote store interface, explicit column mappings, and the Supabase
and in-memory implementations.
"""

from mzfinance.services.storage.interface import (
    DuplicateError,
    NotFoundError,
    RemoteStore,
    Row,
    StorageConnectionError,
    StorageError,
)
from mzfinance.services.storage.mapping import (
    MAPPINGS,
    OWNER_COLUMN,
    TABLES,
    EntityMapping,
    MappingError,
    profile_mapping,
)
from mzfinance.services.storage.memory import InMemoryRemoteStore
from mzfinance.services.storage.supabase_store import (
    SupabaseClient,
    SupabaseRemoteStore,
)

__all__ = [
    # Interface
    "RemoteStore",
    "Row",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Mappings
    "MAPPINGS",
    "OWNER_COLUMN",
    "TABLES",
    "EntityMapping",
    "MappingError",
    "profile_mapping",
    # Implementations
    "InMemoryRemoteStore",
    "SupabaseClient",
    "SupabaseRemoteStore",
]
