"""Swappable record store.

The backend is chosen once per process: SQL when DATABASE_URL is set,
otherwise the in-memory store. Requests never mix the two.
"""

from __future__ import annotations

import logging

from renoquote.errors import UnconfiguredStoreError
from renoquote.store.base import Filters, RecordStore, Row
from renoquote.store.memory import MemoryRecordStore
from renoquote.store.sql import SqlRecordStore

logger = logging.getLogger(__name__)

_store: RecordStore | None = None


def create_record_store() -> RecordStore:
    """Build the store for the current configuration."""
    from renoquote.db.connection import get_session_factory

    try:
        return SqlRecordStore(get_session_factory())
    except UnconfiguredStoreError:
        logger.warning("DATABASE_URL not set; running on the in-memory record store (demo mode)")
        return MemoryRecordStore()


def get_record_store() -> RecordStore:
    """Process-wide record store singleton."""
    global _store
    if _store is None:
        _store = create_record_store()
        logger.info("Record store selected: %s", _store.backend)
    return _store


def set_record_store(store: RecordStore | None) -> None:
    """Replace (or with None, reset) the process-wide store."""
    global _store
    _store = store


__all__ = [
    "Filters",
    "MemoryRecordStore",
    "RecordStore",
    "Row",
    "SqlRecordStore",
    "create_record_store",
    "get_record_store",
    "set_record_store",
]
