"""
Abstract Remote Store Interface

The remote store is a table-per-entity row store addressed by owner id.
Only the handful of operations the synchronization layer needs are exposed:
filtered read-all, upsert-many keyed by primary key, delete-by-id, plus the
single-row insert and update used for user profiles.

Implementations: SupabaseRemoteStore (production) and InMemoryRemoteStore
(tests and local development).
"""

from abc import ABC, abstractmethod
from typing import Any


Row = dict[str, Any]


class RemoteStore(ABC):
    """
    Abstract interface for remote table storage.

    Every method raises StorageError (or a subclass) on failure; callers
    decide whether to swallow it.
    """

    @abstractmethod
    async def select_where(self, table: str, filters: dict[str, Any]) -> list[Row]:
        """
        Read every row of a table matching all equality filters.

        Args:
            table: Table name
            filters: Column -> value; an empty dict reads the whole table

        Returns:
            Matching rows (possibly empty)
        """
        pass

    @abstractmethod
    async def upsert_rows(self, table: str, rows: list[Row]) -> None:
        """
        Insert or replace rows, using ``id`` as the conflict target.

        Upserting the same rows twice leaves the table unchanged.
        """
        pass

    @abstractmethod
    async def insert_row(self, table: str, row: Row) -> Row:
        """
        Insert one row.

        Raises:
            DuplicateError: If a row with the same id exists
        """
        pass

    @abstractmethod
    async def update_row(self, table: str, row_id: str, values: Row) -> None:
        """
        Update columns of one row.

        Raises:
            NotFoundError: If no row has this id
        """
        pass

    @abstractmethod
    async def delete_row(self, table: str, row_id: str) -> None:
        """Delete one row by id. Deleting a missing row is not an error."""
        pass

    async def select_owned(self, table: str, owner_id: str, owner_column: str = "user_id") -> list[Row]:
        """All rows of a table owned by one household."""
        return await self.select_where(table, {owner_column: owner_id})


class StorageError(Exception):
    """Base exception for remote store operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to the remote store."""
    pass
