"""
Supabase Remote Store Implementation

Rows live in one Postgres table per entity, filtered by the household
owner id (row-level security on ``user_id`` does the same server-side).

The async Supabase client is created lazily and shared with the auth
backend, so table requests carry the signed-in user's token.

Remote calls go through tenacity. The number of attempts comes from
``SyncSettings.remote_attempts`` and defaults to 1, i.e. no retries.
"""

from typing import Any, Awaitable, Callable, Optional, TypeVar

from supabase import AsyncClient, acreate_client
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from mzfinance.config import SupabaseSettings, get_settings
from mzfinance.services.storage.interface import (
    DuplicateError,
    NotFoundError,
    RemoteStore,
    Row,
    StorageConnectionError,
    StorageError,
)


T = TypeVar("T")

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Handles connection and provides the retry policy for API calls.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        attempts: Optional[int] = None,
    ):
        self._settings = settings or get_settings().supabase
        self._attempts = attempts or get_settings().sync.remote_attempts
        self._client: Optional[AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    async def connect(self) -> AsyncClient:
        """Create the async client on first use."""
        if self._client is None:
            if not self._settings.is_configured:
                raise StorageConnectionError(
                    "Supabase is not configured (SUPABASE_URL / SUPABASE_ANON_KEY)"
                )
            try:
                self._client = await acreate_client(
                    self._settings.url,
                    self._settings.anon_key,
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Supabase: {e}")
        return self._client

    async def call(self, operation: str, fn: Callable[[AsyncClient], Awaitable[T]]) -> T:
        """
        Run ``fn`` against the connected client under the retry policy.

        Raises:
            StorageConnectionError: If the client cannot be created
            StorageError: If the call still fails after the last attempt
        """
        client = await self.connect()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._attempts),
                wait=wait_exponential(multiplier=1, min=1, max=8),
                reraise=True,
            ):
                with attempt:
                    return await fn(client)
        except StorageError:
            raise
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                raise DuplicateError(f"{operation}: {e}")
            raise StorageError(f"{operation} failed: {e}")


class SupabaseRemoteStore(RemoteStore):
    """Supabase implementation of the remote store."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    async def select_where(self, table: str, filters: dict[str, Any]) -> list[Row]:
        async def run(client: AsyncClient) -> list[Row]:
            query = client.table(table).select("*")
            for column, value in filters.items():
                query = query.eq(column, value)
            response = await query.execute()
            return response.data or []

        return await self._client.call(f"select {table}", run)

    async def upsert_rows(self, table: str, rows: list[Row]) -> None:
        if not rows:
            return

        async def run(client: AsyncClient) -> None:
            await client.table(table).upsert(rows, on_conflict="id").execute()

        await self._client.call(f"upsert {table}", run)

    async def insert_row(self, table: str, row: Row) -> Row:
        async def run(client: AsyncClient) -> Row:
            response = await client.table(table).insert(row).execute()
            return response.data[0] if response.data else row

        return await self._client.call(f"insert {table}", run)

    async def update_row(self, table: str, row_id: str, values: Row) -> None:
        async def run(client: AsyncClient) -> list[Row]:
            response = await client.table(table).update(values).eq("id", row_id).execute()
            return response.data or []

        updated = await self._client.call(f"update {table}", run)
        if not updated:
            raise NotFoundError(f"Row {row_id} not found in {table}")

    async def delete_row(self, table: str, row_id: str) -> None:
        async def run(client: AsyncClient) -> None:
            await client.table(table).delete().eq("id", row_id).execute()

        await self._client.call(f"delete {table}", run)
