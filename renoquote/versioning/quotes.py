"""Quote version history.

A version is an immutable copy of a quote and its items, numbered 1, 2, ...
per quote. Version rows are only ever inserted; rollback copies a version
back onto the live quote after saving the current state as a new version.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from renoquote.errors import NotFoundError, StoreError
from renoquote.pricing.locks import KeyedLocks
from renoquote.store import RecordStore, Row

logger = logging.getLogger(__name__)

QUOTES = "quotes"
QUOTE_ITEMS = "quote_items"
QUOTE_VERSIONS = "quote_versions"
QUOTE_VERSION_ITEMS = "quote_version_items"

DEFAULT_REASON = "수정"

MONEY_FIELDS = (
    "total_amount",
    "labor_cost",
    "material_cost",
    "other_cost",
    "discount_amount",
    "vat_amount",
    "final_amount",
)
# Restored onto the live quote by rollback
STATE_FIELDS = (*MONEY_FIELDS, "discount_reason", "status", "notes", "calculation_comment", "valid_until")
CUSTOMER_FIELDS = (
    "customer_name",
    "customer_email",
    "customer_phone",
    "property_address",
    "property_size",
)
ITEM_FIELDS = (
    "category",
    "sub_category",
    "item_name",
    "description",
    "size",
    "quantity",
    "unit",
    "unit_price",
    "total_price",
    "cost_type",
    "labor_ratio",
    "sort_order",
    "is_optional",
    "is_included",
    "reference_type",
    "reference_id",
)

# Serializes version numbering per quote within this process
version_locks = KeyedLocks()


@dataclass(slots=True)
class SnapshotResult:
    """A persisted version. ``items_copied`` is False when the item copy failed."""

    version: Row
    items_copied: bool = True
    items: list[Row] = field(default_factory=list)

    @property
    def version_number(self) -> int:
        return self.version["version_number"]

    def to_dict(self) -> dict[str, Any]:
        return {**self.version, "items": self.items}


def copy_item_fields(item: Row) -> Row:
    """Item columns shared by live items and version items (no identity, no owner)."""
    return {name: item.get(name) for name in ITEM_FIELDS if item.get(name) is not None}


async def load_quote(store: RecordStore, quote_id: str | UUID) -> tuple[Row, list[Row]]:
    quote = await store.fetch_one(QUOTES, {"id": quote_id})
    if quote is None:
        raise NotFoundError("Quote", quote_id)
    items = await store.fetch_many(QUOTE_ITEMS, {"quote_id": quote["id"]}, order_by="sort_order")
    return quote, items


async def _next_version_number(store: RecordStore, quote_id: UUID) -> int:
    current = await store.fetch_max(QUOTE_VERSIONS, "version_number", {"quote_id": quote_id})
    return (current or 0) + 1


def _version_row(quote: Row, version_number: int, reason: str) -> Row:
    row: Row = {
        "quote_id": quote["id"],
        "version_number": version_number,
        "quote_number": f"{quote['quote_number']}-v{version_number}",
        "saved_reason": reason,
        "discount_reason": quote.get("discount_reason"),
        "status": quote.get("status") or "draft",
        "notes": quote.get("notes"),
        "calculation_comment": quote.get("calculation_comment"),
        "valid_until": quote.get("valid_until"),
    }
    for name in MONEY_FIELDS:
        row[name] = quote.get(name) or 0
    for name in CUSTOMER_FIELDS:
        row[name] = quote.get(name)
    return row


async def _snapshot_loaded(store: RecordStore, quote: Row, items: list[Row], reason: str) -> SnapshotResult:
    async with version_locks.hold(quote["id"]):
        version_number = await _next_version_number(store, quote["id"])
        version = await store.insert(QUOTE_VERSIONS, _version_row(quote, version_number, reason))

    items_copied = True
    if items:
        try:
            await store.insert_many(
                QUOTE_VERSION_ITEMS,
                [{"version_id": version["id"], **copy_item_fields(item)} for item in items],
            )
        except StoreError as exc:
            # The version itself stands; callers see the partial result
            logger.error("Version %s of quote %s saved without items: %s", version_number, quote["id"], exc)
            items_copied = False

    persisted = await store.fetch_one(QUOTE_VERSIONS, {"id": version["id"]}) or version
    version_items = await store.fetch_many(
        QUOTE_VERSION_ITEMS, {"version_id": version["id"]}, order_by="sort_order"
    )
    logger.info(
        "Quote %s saved as version %d (%s, %d items)",
        quote["quote_number"],
        version_number,
        reason,
        len(version_items),
    )
    return SnapshotResult(version=persisted, items_copied=items_copied, items=version_items)


async def snapshot_quote(store: RecordStore, quote_id: str | UUID, reason: str | None = None) -> SnapshotResult:
    """Save the current state of a quote as its next version.

    Raises:
        NotFoundError: the quote does not exist.
        StoreError: the version row could not be written.
    """
    quote, items = await load_quote(store, quote_id)
    return await _snapshot_loaded(store, quote, items, reason or DEFAULT_REASON)


async def list_quote_versions(store: RecordStore, quote_id: str | UUID) -> list[Row]:
    """All versions of a quote with their items, newest first."""
    versions = await store.fetch_many(
        QUOTE_VERSIONS, {"quote_id": quote_id}, order_by="version_number", descending=True
    )
    for version in versions:
        version["items"] = await store.fetch_many(
            QUOTE_VERSION_ITEMS, {"version_id": version["id"]}, order_by="sort_order"
        )
    return versions


async def rollback_quote(store: RecordStore, quote_id: str | UUID, version_id: str | UUID) -> Row:
    """Restore a quote to a saved version.

    The current state is first saved as a backup version, so rollback never
    loses history. Returns the refreshed quote with its items.
    """
    version = await store.fetch_one(QUOTE_VERSIONS, {"id": version_id})
    if version is None:
        raise NotFoundError("Quote version", version_id)

    quote, items = await load_quote(store, quote_id)
    if version["quote_id"] != quote["id"]:
        raise NotFoundError("Quote version", version_id)

    await _snapshot_loaded(
        store, quote, items, f"롤백 전 백업 (v{version['version_number']}으로 롤백)"
    )

    await store.update(QUOTES, {"id": quote["id"]}, {name: version.get(name) for name in STATE_FIELDS})

    version_items = await store.fetch_many(
        QUOTE_VERSION_ITEMS, {"version_id": version["id"]}, order_by="sort_order"
    )
    await store.delete(QUOTE_ITEMS, {"quote_id": quote["id"]})
    if version_items:
        restored = []
        for index, item in enumerate(version_items):
            row = copy_item_fields(item)
            row.update(quote_id=quote["id"], sort_order=index)
            restored.append(row)
        try:
            await store.insert_many(QUOTE_ITEMS, restored)
        except StoreError as exc:
            logger.error("Rollback of quote %s restored no items: %s", quote["id"], exc)

    logger.info("Quote %s rolled back to version %d", quote["quote_number"], version["version_number"])
    refreshed, refreshed_items = await load_quote(store, quote["id"])
    return {**refreshed, "items": refreshed_items}
