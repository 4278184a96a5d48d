"""Estimate requests submitted from the landing page."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from renoquote.config import get_config
from renoquote.errors import NotFoundError, ValidationError
from renoquote.notifications.email import EmailService
from renoquote.store import RecordStore, Row

logger = logging.getLogger(__name__)

ESTIMATE_REQUESTS = "estimate_requests"
STYLEBOARDS = "customer_styleboards"

REQUIRED_FIELDS = ("complex_name", "size", "name", "phone", "email")
ESTIMATE_STATUSES = ("pending", "contacted", "completed", "cancelled")
UPDATABLE_FIELDS = ("status", "notes")


async def notify_admin(email: EmailService | None, estimate: Row) -> bool:
    """Send the new-request notification. Never raises."""
    if email is None:
        return False
    admin = get_config().email.admin_email
    try:
        result = await asyncio.to_thread(email.send, "estimate_request", admin, estimate)
    except Exception:
        logger.exception("Estimate notification crashed for %s", estimate["id"])
        return False
    if not result.success:
        logger.warning("Estimate notification not sent for %s: %s", estimate["id"], result.error)
    return result.success


async def create_estimate(
    store: RecordStore, data: Mapping[str, Any], email: EmailService | None = None
) -> Row:
    missing = [name for name in REQUIRED_FIELDS if not data.get(name)]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    row = {
        "complex_name": data["complex_name"],
        "size": data["size"],
        "floor_type": data.get("floor_type") or None,
        "name": data["name"],
        "phone": data["phone"],
        "email": data["email"],
        "wants_construction": bool(data.get("wants_construction")),
        "construction_scope": list(data.get("construction_scope") or []),
        "status": "pending",
    }
    estimate = await store.insert(ESTIMATE_REQUESTS, row)
    logger.info("Estimate request received: %s (%s)", estimate["id"], estimate["complex_name"])

    await notify_admin(email, estimate)
    return estimate


async def list_estimates(store: RecordStore, status: str | None = None) -> list[Row]:
    filters = {"status": status} if status else None
    return await store.fetch_many(ESTIMATE_REQUESTS, filters, order_by="created_at", descending=True)


async def update_estimate(store: RecordStore, estimate_id: str | UUID, patch: Mapping[str, Any]) -> Row:
    values = {key: patch[key] for key in UPDATABLE_FIELDS if key in patch}
    if not values:
        raise ValidationError("Nothing to update (status, notes)")
    if "status" in values and values["status"] not in ESTIMATE_STATUSES:
        raise ValidationError(f"Invalid estimate status: {values['status']}")

    rows = await store.update(ESTIMATE_REQUESTS, {"id": estimate_id}, values)
    if not rows:
        raise NotFoundError("Estimate request", estimate_id)
    return rows[0]


async def delete_estimate(store: RecordStore, estimate_id: str | UUID) -> None:
    # Style boards belong to their request
    await store.delete(STYLEBOARDS, {"estimate_id": estimate_id})
    removed = await store.delete(ESTIMATE_REQUESTS, {"id": estimate_id})
    if not removed:
        raise NotFoundError("Estimate request", estimate_id)
