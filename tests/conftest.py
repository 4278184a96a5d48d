"""Pytest configuration and fixtures for RenoQuote tests.

Store-backed tests use the ``store`` fixture, which runs each test against
both the in-memory store and an in-memory SQLite database.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from renoquote.config import reset_config
from renoquote.db.models import Base
from renoquote.store import MemoryRecordStore, RecordStore, SqlRecordStore, set_record_store

ENV_VARS = (
    "DATABASE_URL",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "ADMIN_EMAIL",
    "JSON_LOGS",
    "LOG_LEVEL",
    "APP_BASE_URL",
    "DEFAULT_LABOR_RATIO",
)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Isolate every test from the developer's environment and from other tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OBJECT_STORAGE_ROOT", str(tmp_path / "objects"))
    monkeypatch.setenv("OBJECT_STORAGE_PUBLIC_URL", "https://files.test")
    reset_config()
    set_record_store(None)
    yield
    reset_config()
    set_record_store(None)


@pytest.fixture
def memory_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request) -> RecordStore:
    """Record store under test: in-memory, then SQLite via aiosqlite."""
    if request.param == "memory":
        yield MemoryRecordStore()
        return

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield SqlRecordStore(async_sessionmaker(engine, expire_on_commit=False))
    finally:
        await engine.dispose()

