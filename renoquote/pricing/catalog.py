"""Read access to the pricing catalogs and management of extracted items."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from renoquote.errors import NotFoundError, ValidationError
from renoquote.pricing.reconciliation import EXTRACTED_ITEMS
from renoquote.store import RecordStore, Row

logger = logging.getLogger(__name__)

# catalog kind -> (table, ordering column)
CATALOG_TABLES: dict[str, tuple[str, str]] = {
    "labor": ("labor_prices", "labor_type"),
    "material": ("material_prices", "category"),
    "composite": ("composite_prices", "category"),
}

EXTRACTED_ITEM_REQUIRED = ("category", "normalized_item_name")


def resolve_catalog_kinds(kind: str | None) -> list[str]:
    if kind in (None, "", "all"):
        return list(CATALOG_TABLES)
    if kind not in CATALOG_TABLES:
        raise ValidationError(f"Unknown pricing type: {kind}")
    return [kind]


async def list_catalogs(store: RecordStore, kind: str | None = "all") -> dict[str, list[Row]]:
    """Active entries of the requested catalogs, fetched concurrently."""
    kinds = resolve_catalog_kinds(kind)
    results = await asyncio.gather(
        *(
            store.fetch_many(CATALOG_TABLES[name][0], {"is_active": True}, order_by=CATALOG_TABLES[name][1])
            for name in kinds
        )
    )
    return dict(zip(kinds, results))


async def list_extracted_items(
    store: RecordStore,
    category: str | None = None,
    verified: bool | None = None,
    file_id: str | UUID | None = None,
) -> list[Row]:
    filters: dict[str, Any] = {}
    if category:
        filters["category"] = category
    if verified is not None:
        filters["is_verified"] = verified
    if file_id:
        filters["file_id"] = file_id
    return await store.fetch_many(EXTRACTED_ITEMS, filters, order_by="created_at", descending=True)


async def create_extracted_item(store: RecordStore, data: Mapping[str, Any]) -> Row:
    """Manually register an extracted item (normally written by ingestion)."""
    missing = [name for name in EXTRACTED_ITEM_REQUIRED if not data.get(name)]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    row = dict(data)
    row.setdefault("original_item_name", row["normalized_item_name"])
    item = await store.insert(EXTRACTED_ITEMS, row)
    logger.info("Extracted item created: %s/%s", item["category"], item["normalized_item_name"])
    return item


async def delete_extracted_item(store: RecordStore, item_id: str | UUID) -> None:
    removed = await store.delete(EXTRACTED_ITEMS, {"id": item_id})
    if not removed:
        raise NotFoundError("Extracted item", item_id)
