"""Shared dependencies for RenoQuote web routes.

Route handlers receive their collaborators through FastAPI's Depends() so
tests can swap them with ``app.dependency_overrides``.

Usage:
    from fastapi import Depends
    from renoquote.web.dependencies import get_record_store

    @router.get("/api/things")
    async def things(store: RecordStore = Depends(get_record_store)):
        ...
"""

from __future__ import annotations

from renoquote.integrations import object_storage
from renoquote.integrations.object_storage import ObjectStorage
from renoquote.notifications import email as email_notifications
from renoquote.notifications.email import EmailService
from renoquote import store as record_store
from renoquote.store import RecordStore


def get_record_store() -> RecordStore:
    """Process-wide record store (SQL, or in-memory in demo mode)."""
    return record_store.get_record_store()


def get_object_storage() -> ObjectStorage:
    return object_storage.get_object_storage()


def get_email_service() -> EmailService:
    return email_notifications.get_email_service()
