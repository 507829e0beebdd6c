"""
In-memory remote store.

Behaves like the hosted store closely enough for tests and local
development: rows are copied on the way in and out, upsert replaces by id,
and individual tables can be made to fail on demand.
"""

import asyncio
import copy
from typing import Any, Optional

from mzfinance.services.storage.interface import (
    DuplicateError,
    NotFoundError,
    RemoteStore,
    Row,
    StorageConnectionError,
)


class InMemoryRemoteStore(RemoteStore):
    """Dict-of-tables implementation of RemoteStore."""

    def __init__(self, tables: Optional[dict[str, list[Row]]] = None):
        self._tables: dict[str, dict[str, Row]] = {}
        for table, rows in (tables or {}).items():
            self._tables[table] = {row["id"]: copy.deepcopy(row) for row in rows}
        self._failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def fail_table(self, table: str) -> None:
        """Make every operation on a table raise StorageConnectionError."""
        self._failing.add(table)

    def heal_table(self, table: str) -> None:
        self._failing.discard(table)

    def rows(self, table: str) -> list[Row]:
        """Snapshot of a table's rows."""
        return [copy.deepcopy(row) for row in self._tables.get(table, {}).values()]

    def row(self, table: str, row_id: str) -> Optional[Row]:
        row = self._tables.get(table, {}).get(row_id)
        return copy.deepcopy(row) if row is not None else None

    async def _enter(self, operation: str, table: str) -> dict[str, Row]:
        self.calls.append((operation, table))
        # Yield like a real network call so concurrent pushes interleave
        await asyncio.sleep(0)
        if table in self._failing:
            raise StorageConnectionError(f"Table {table} is unreachable")
        return self._tables.setdefault(table, {})

    async def select_where(self, table: str, filters: dict[str, Any]) -> list[Row]:
        rows = await self._enter("select", table)
        return [
            copy.deepcopy(row)
            for row in rows.values()
            if all(row.get(column) == value for column, value in filters.items())
        ]

    async def upsert_rows(self, table: str, rows: list[Row]) -> None:
        stored = await self._enter("upsert", table)
        for row in rows:
            if "id" not in row:
                raise ValueError(f"Row for {table} has no id")
            stored[row["id"]] = copy.deepcopy(row)

    async def insert_row(self, table: str, row: Row) -> Row:
        stored = await self._enter("insert", table)
        if row["id"] in stored:
            raise DuplicateError(f"Row {row['id']} already exists in {table}")
        stored[row["id"]] = copy.deepcopy(row)
        return copy.deepcopy(row)

    async def update_row(self, table: str, row_id: str, values: Row) -> None:
        stored = await self._enter("update", table)
        if row_id not in stored:
            raise NotFoundError(f"Row {row_id} not found in {table}")
        stored[row_id].update(copy.deepcopy(values))

    async def delete_row(self, table: str, row_id: str) -> None:
        stored = await self._enter("delete", table)
        stored.pop(row_id, None)
