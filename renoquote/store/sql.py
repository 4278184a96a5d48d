"""SQL record store backed by async SQLAlchemy Core statements.

Each call runs in its own session and transaction, so single-row writes are
atomic and nothing spans two calls.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import ColumnElement, Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from renoquote.errors import StoreError
from renoquote.store.base import Filters, RecordStore, Row


class SqlRecordStore(RecordStore):
    backend = "sql"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], metadata=None):
        super().__init__(metadata)
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str, table: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            raise StoreError(operation, table, str(exc.orig) if getattr(exc, "orig", None) else str(exc)) from exc

    def _where(self, table: Table, filters: Filters | None) -> list[ColumnElement[bool]]:
        if not filters:
            return []
        values = self.coerce_row(table, filters)
        return [
            table.c[key].is_(None) if value is None else table.c[key] == value
            for key, value in values.items()
        ]

    async def fetch_one(self, table: str, filters: Filters) -> Row | None:
        t = self.table(table)
        stmt = select(t).where(*self._where(t, filters)).limit(2)
        async with self._transaction("fetch_one", table) as session:
            rows = (await session.execute(stmt)).mappings().all()
        if len(rows) > 1:
            raise StoreError("fetch_one", table, "expected at most one row, found several")
        return dict(rows[0]) if rows else None

    async def fetch_many(
        self,
        table: str,
        filters: Filters | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        t = self.table(table)
        stmt = select(t).where(*self._where(t, filters))
        if order_by is not None:
            self.check_columns(t, [order_by])
            column = t.c[order_by]
            stmt = stmt.order_by(column.desc().nulls_last() if descending else column.asc().nulls_last())
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._transaction("fetch_many", table) as session:
            rows = (await session.execute(stmt)).mappings().all()
        return [dict(row) for row in rows]

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        return (await self.insert_many(table, [row]))[0]

    async def insert_many(self, table: str, rows: list[Mapping[str, Any]]) -> list[Row]:
        if not rows:
            return []
        t = self.table(table)
        # Fill defaults up front so every row carries the same keys and a known primary key
        values = [self.with_defaults(t, row) for row in rows]
        stmt = insert(t).returning(*t.c, sort_by_parameter_order=True)
        async with self._transaction("insert", table) as session:
            result = await session.execute(stmt, values)
            inserted = [dict(row) for row in result.mappings().all()]
        return inserted

    async def update(self, table: str, filters: Filters, patch: Mapping[str, Any]) -> list[Row]:
        t = self.table(table)
        values = self.coerce_row(t, patch)
        stmt = update(t).where(*self._where(t, filters)).values(**values).returning(*t.c)
        async with self._transaction("update", table) as session:
            result = await session.execute(stmt)
            rows = [dict(row) for row in result.mappings().all()]
        return rows

    async def delete(self, table: str, filters: Filters) -> int:
        t = self.table(table)
        stmt = delete(t).where(*self._where(t, filters))
        async with self._transaction("delete", table) as session:
            result = await session.execute(stmt)
            removed = result.rowcount or 0
        return removed
