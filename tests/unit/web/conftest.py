"""Fixtures for route tests.

Route tests always run against the in-memory store: TestClient drives the
app from its own event loop, and seeding happens through ``asyncio.run``.
"""

from __future__ import annotations

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from renoquote.integrations.object_storage import LocalObjectStorage
from renoquote.store import MemoryRecordStore
from renoquote.web import dependencies
from renoquote.web.errors import register_exception_handlers


@pytest.fixture
def web_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def make_client(web_store):
    """Build a TestClient for one router with the store and storage overridden."""

    def build(router: APIRouter, **overrides) -> TestClient:
        app = FastAPI()
        app.include_router(router)
        register_exception_handlers(app)
        app.dependency_overrides[dependencies.get_record_store] = lambda: web_store
        app.dependency_overrides[dependencies.get_object_storage] = lambda: LocalObjectStorage()
        for dependency, provider in overrides.items():
            app.dependency_overrides[getattr(dependencies, dependency)] = provider
        return TestClient(app, raise_server_exceptions=False)

    return build
