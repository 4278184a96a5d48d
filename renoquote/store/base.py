"""Record store interface.

Rows are plain dicts keyed by column name. Both implementations read the
schema from ``renoquote.db.models`` so that column types, defaults and unique
keys behave identically whether the process runs against a database or the
in-memory fallback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    UniqueConstraint,
    Uuid,
)

from renoquote.db.models import Base
from renoquote.errors import StoreError, ValidationError

Row = dict[str, Any]
Filters = Mapping[str, Any]


def _parse_datetime(value: str) -> datetime:
    # fromisoformat() only accepts a trailing "Z" from 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def coerce_value(table: Table, column_name: str, value: Any) -> Any:
    """Convert a wire value (usually JSON) to the column's Python type."""
    if value is None:
        return None
    column = table.c[column_name]
    col_type = column.type
    try:
        if isinstance(col_type, Uuid):
            return value if isinstance(value, UUID) else UUID(str(value))
        if isinstance(col_type, DateTime):
            return _parse_datetime(value) if isinstance(value, str) else value
        if isinstance(col_type, Date):
            if isinstance(value, datetime):
                return value.date()
            return date.fromisoformat(value) if isinstance(value, str) else value
        if isinstance(col_type, Boolean):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if isinstance(col_type, Integer):
            if isinstance(value, bool):
                return int(value)
            if isinstance(value, (float, Decimal)):
                if value != int(value):
                    raise ValueError("expected a whole number")
                return int(value)
            return int(value) if isinstance(value, str) else value
        if isinstance(col_type, Float):
            return float(value) if isinstance(value, (str, Decimal, int)) else value
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid value for {table.name}.{column_name}: {value!r}") from exc
    return value


def column_default(table: Table, column_name: str) -> Any:
    """Python-side default for a column, or None."""
    default = table.c[column_name].default
    if default is None:
        return None
    if default.is_callable:
        # SQLAlchemy wraps zero-argument callables to accept an execution context
        return default.arg(None)
    if default.is_scalar:
        return default.arg
    return None


def column_onupdate(table: Table, column_name: str) -> Any:
    onupdate = table.c[column_name].onupdate
    if onupdate is None:
        return None
    if onupdate.is_callable:
        return onupdate.arg(None)
    return onupdate.arg if onupdate.is_scalar else None


def unique_keys(table: Table) -> list[tuple[str, ...]]:
    """Column tuples that must be unique across rows (PK, unique constraints, plain unique indexes)."""
    keys: list[tuple[str, ...]] = []
    for constraint in table.constraints:
        if isinstance(constraint, (PrimaryKeyConstraint, UniqueConstraint)):
            keys.append(tuple(column.name for column in constraint.columns))
    for index in table.indexes:
        partial = any(key.endswith("_where") for key in index.dialect_kwargs)
        if isinstance(index, Index) and index.unique and not partial:
            keys.append(tuple(column.name for column in index.columns))
    return keys


class RecordStore(ABC):
    """Asynchronous table-oriented persistence.

    Every method is independently failable and raises ``StoreError`` for
    backend failures. Single-row writes are atomic; there are no multi-call
    transactions.
    """

    backend: str = "abstract"

    def __init__(self, metadata: MetaData | None = None):
        self.metadata = metadata if metadata is not None else Base.metadata

    @property
    def is_persistent(self) -> bool:
        return self.backend != "memory"

    def table(self, name: str) -> Table:
        try:
            return self.metadata.tables[name]
        except KeyError as exc:
            raise StoreError("lookup", name, "unknown table") from exc

    def check_columns(self, table: Table, names: Iterable[str]) -> None:
        unknown = [name for name in names if name not in table.c]
        if unknown:
            raise ValidationError(f"Unknown field(s) for {table.name}: {', '.join(sorted(unknown))}")

    def coerce_row(self, table: Table, row: Mapping[str, Any]) -> Row:
        self.check_columns(table, row.keys())
        return {key: coerce_value(table, key, value) for key, value in row.items()}

    def with_defaults(self, table: Table, row: Mapping[str, Any]) -> Row:
        """Full row: coerced given values plus column defaults for the rest."""
        values = self.coerce_row(table, row)
        for column in table.columns:
            if column.name not in values:
                values[column.name] = column_default(table, column.name)
        return values

    @abstractmethod
    async def fetch_one(self, table: str, filters: Filters) -> Row | None:
        """Zero-or-one fetch. More than one matching row is a StoreError."""

    @abstractmethod
    async def fetch_many(
        self,
        table: str,
        filters: Filters | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """All rows matching ``filters`` (equality; None means IS NULL)."""

    @abstractmethod
    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it as persisted."""

    @abstractmethod
    async def insert_many(self, table: str, rows: list[Mapping[str, Any]]) -> list[Row]:
        """Insert several rows in one statement (all or nothing)."""

    @abstractmethod
    async def update(self, table: str, filters: Filters, patch: Mapping[str, Any]) -> list[Row]:
        """Apply ``patch`` to matching rows and return them as persisted."""

    @abstractmethod
    async def delete(self, table: str, filters: Filters) -> int:
        """Delete matching rows and return how many were removed."""

    async def fetch_max(self, table: str, column: str, filters: Filters) -> Any | None:
        rows = await self.fetch_many(table, filters, order_by=column, descending=True, limit=1)
        return rows[0][column] if rows else None

    async def close(self) -> None:
        return None
