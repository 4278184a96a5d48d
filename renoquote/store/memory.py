"""Process-lifetime in-memory record store.

Selected when no database is configured (demo/offline mode). Applies the
same column defaults, NOT NULL checks and unique keys as the SQL schema, and
hands out copies so callers never mutate stored rows.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Mapping
from typing import Any

from sqlalchemy import MetaData, Table

from renoquote.errors import StoreError
from renoquote.store.base import Filters, RecordStore, Row, column_onupdate, unique_keys


class MemoryRecordStore(RecordStore):
    backend = "memory"

    def __init__(self, metadata: MetaData | None = None):
        super().__init__(metadata)
        self._rows: dict[str, list[Row]] = {name: [] for name in self.metadata.tables}

    def _matches(self, table: Table, row: Row, filters: Filters) -> bool:
        return all(row.get(key) == value for key, value in filters.items())

    def _select(self, table: Table, filters: Filters | None) -> list[Row]:
        if not filters:
            return list(self._rows[table.name])
        coerced = self.coerce_row(table, filters)
        return [row for row in self._rows[table.name] if self._matches(table, row, coerced)]

    def _check_not_null(self, table: Table, row: Row, operation: str) -> None:
        for column in table.columns:
            if not column.nullable and row.get(column.name) is None:
                raise StoreError(operation, table.name, f"null value in column '{column.name}'")

    def _check_unique(self, table: Table, row: Row, operation: str, ignore: list[Row]) -> None:
        ignore_ids = {id(existing) for existing in ignore}
        for key in unique_keys(table):
            values = tuple(row.get(name) for name in key)
            if any(value is None for value in values):
                continue
            for existing in self._rows[table.name]:
                if id(existing) in ignore_ids:
                    continue
                if tuple(existing.get(name) for name in key) == values:
                    raise StoreError(
                        operation,
                        table.name,
                        f"duplicate key value violates unique constraint on ({', '.join(key)})",
                    )

    async def fetch_one(self, table: str, filters: Filters) -> Row | None:
        await asyncio.sleep(0)
        t = self.table(table)
        rows = self._select(t, filters)
        if len(rows) > 1:
            raise StoreError("fetch_one", table, f"expected at most one row, found {len(rows)}")
        return copy.deepcopy(rows[0]) if rows else None

    async def fetch_many(
        self,
        table: str,
        filters: Filters | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        await asyncio.sleep(0)
        t = self.table(table)
        rows = self._select(t, filters)
        if order_by is not None:
            self.check_columns(t, [order_by])
            present = [row for row in rows if row.get(order_by) is not None]
            missing = [row for row in rows if row.get(order_by) is None]
            present.sort(key=lambda row: row[order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        return (await self.insert_many(table, [row]))[0]

    async def insert_many(self, table: str, rows: list[Mapping[str, Any]]) -> list[Row]:
        await asyncio.sleep(0)
        t = self.table(table)
        prepared = [self.with_defaults(t, row) for row in rows]
        staged: list[Row] = []
        for row in prepared:
            self._check_not_null(t, row, "insert")
            self._check_unique(t, row, "insert", ignore=[])
            # Also unique against the other rows of this batch
            for key in unique_keys(t):
                values = tuple(row.get(name) for name in key)
                if any(value is None for value in values):
                    continue
                if any(tuple(other.get(name) for name in key) == values for other in staged):
                    raise StoreError("insert", table, f"duplicate key in batch on ({', '.join(key)})")
            staged.append(row)
        self._rows[table].extend(staged)
        return copy.deepcopy(staged)

    async def update(self, table: str, filters: Filters, patch: Mapping[str, Any]) -> list[Row]:
        await asyncio.sleep(0)
        t = self.table(table)
        values = self.coerce_row(t, patch)
        targets = self._select(t, filters)
        updated: list[Row] = []
        for row in targets:
            candidate = {**row, **values}
            for column in t.columns:
                if column.name not in values and column.onupdate is not None:
                    candidate[column.name] = column_onupdate(t, column.name)
            self._check_not_null(t, candidate, "update")
            self._check_unique(t, candidate, "update", ignore=targets)
            updated.append(candidate)
        for row, candidate in zip(targets, updated):
            row.clear()
            row.update(candidate)
        return copy.deepcopy(updated)

    async def delete(self, table: str, filters: Filters) -> int:
        await asyncio.sleep(0)
        t = self.table(table)
        doomed = {id(row) for row in self._select(t, filters)}
        self._rows[table] = [row for row in self._rows[table] if id(row) not in doomed]
        return len(doomed)

    def clear(self) -> None:
        for rows in self._rows.values():
            rows.clear()
