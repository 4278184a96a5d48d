"""Quote CRUD.

Line items are owned by their quote and replaced wholesale on update; amounts
are recomputed from the items whenever they change.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any
from uuid import UUID

from renoquote.config import get_config
from renoquote.errors import NotFoundError, StoreError, ValidationError
from renoquote.pricing.locks import KeyedLocks
from renoquote.quotes.calculation import COST_TYPES, recalculate_totals
from renoquote.store import RecordStore, Row
from renoquote.versioning.quotes import QUOTE_ITEMS, QUOTES, load_quote

logger = logging.getLogger(__name__)

QUOTE_STATUSES = ("draft", "confirmed", "sent", "accepted", "rejected", "expired")
PROTECTED_FIELDS = frozenset({"id", "quote_number", "sent_at", "created_at", "updated_at"})
# Ignored on incoming items: identity and ownership come from the quote
ITEM_IGNORED_FIELDS = ("id", "quote_id", "created_at")

_numbering = KeyedLocks()


def _prepare_items(store: RecordStore, items: Sequence[Mapping[str, Any]]) -> list[Row]:
    """Validate incoming items and number them in order. Owner is set by the caller.

    Rows are coerced against the item table here, so a bad value is rejected
    before the quote or its current items are touched.
    """
    table = store.table(QUOTE_ITEMS)
    prepared = []
    for index, item in enumerate(items):
        if not item.get("category") or not item.get("item_name"):
            raise ValidationError(f"Item {index + 1}: category and item_name are required")
        cost_type = item.get("cost_type") or "material"
        if cost_type not in COST_TYPES:
            raise ValidationError(f"Item {index + 1}: invalid cost_type {cost_type!r}")
        row = {key: value for key, value in item.items() if key not in ITEM_IGNORED_FIELDS}
        row.update(sort_order=index, cost_type=cost_type)
        prepared.append(store.coerce_row(table, row))
    return prepared


def _check_status(data: Mapping[str, Any]) -> None:
    status = data.get("status")
    if status is not None and status not in QUOTE_STATUSES:
        raise ValidationError(f"Invalid quote status: {status}")


async def next_quote_number(store: RecordStore, today: date | None = None) -> str:
    """``QT-{year}-{seq:04d}``, one past the highest number issued this year."""
    prefix = f"QT-{(today or date.today()).year}-"
    highest = 0
    for quote in await store.fetch_many(QUOTES):
        number = quote["quote_number"]
        if number.startswith(prefix) and number[len(prefix):].isdigit():
            highest = max(highest, int(number[len(prefix):]))
    return f"{prefix}{highest + 1:04d}"


def _totals_patch(items: Sequence[Mapping[str, Any]], amounts: Mapping[str, Any]) -> dict[str, int]:
    totals = recalculate_totals(
        items,
        other_cost=amounts.get("other_cost"),
        discount_amount=amounts.get("discount_amount"),
        vat_amount=amounts.get("vat_amount"),
        default_labor_ratio=get_config().pricing.default_labor_ratio,
    )
    return totals.to_dict()


async def create_quote(
    store: RecordStore,
    data: Mapping[str, Any],
    items: Sequence[Mapping[str, Any]] | None = None,
) -> Row:
    protected = PROTECTED_FIELDS.intersection(data)
    if protected:
        raise ValidationError(f"Field(s) cannot be set: {', '.join(sorted(protected))}")
    _check_status(data)

    prepared = _prepare_items(store, items or [])
    row = dict(data)
    if prepared:
        row.update(_totals_patch(prepared, data))

    async with _numbering.hold("quote_number"):
        row["quote_number"] = await next_quote_number(store)
        quote = await store.insert(QUOTES, row)

    quote_items = []
    if prepared:
        try:
            quote_items = await store.insert_many(
                QUOTE_ITEMS, [{**item, "quote_id": quote["id"]} for item in prepared]
            )
        except StoreError:
            # No itemless quote is left behind
            await store.delete(QUOTES, {"id": quote["id"]})
            raise
    logger.info("Quote created: %s (%d items)", quote["quote_number"], len(quote_items))
    return {**quote, "items": quote_items}


async def get_quote(store: RecordStore, quote_id: str | UUID) -> Row:
    quote, items = await load_quote(store, quote_id)
    return {**quote, "items": items}


async def list_quotes(
    store: RecordStore, estimate_id: str | UUID | None = None, status: str | None = None
) -> list[Row]:
    filters: dict[str, Any] = {}
    if estimate_id:
        filters["estimate_id"] = estimate_id
    if status:
        filters["status"] = status
    quotes = await store.fetch_many(QUOTES, filters, order_by="created_at", descending=True)
    for quote in quotes:
        quote["items"] = await store.fetch_many(QUOTE_ITEMS, {"quote_id": quote["id"]}, order_by="sort_order")
    return quotes


async def update_quote(
    store: RecordStore,
    quote_id: str | UUID,
    patch: Mapping[str, Any],
    items: Sequence[Mapping[str, Any]] | None = None,
) -> Row:
    """Apply ``patch``; when ``items`` is given, replace the items and recompute amounts."""
    protected = PROTECTED_FIELDS.intersection(patch)
    if protected:
        raise ValidationError(f"Field(s) cannot be changed: {', '.join(sorted(protected))}")
    _check_status(patch)
    patch = store.coerce_row(store.table(QUOTES), patch)

    quote, _ = await load_quote(store, quote_id)
    values = dict(patch)

    if items is not None:
        prepared = [{**item, "quote_id": quote["id"]} for item in _prepare_items(store, items)]
        values.update(_totals_patch(prepared, {**quote, **patch}))
        await store.delete(QUOTE_ITEMS, {"quote_id": quote["id"]})
        if prepared:
            await store.insert_many(QUOTE_ITEMS, prepared)

    if values:
        await store.update(QUOTES, {"id": quote["id"]}, values)
    logger.info("Quote %s updated", quote["quote_number"])
    return await get_quote(store, quote["id"])


async def delete_quote(store: RecordStore, quote_id: str | UUID) -> None:
    """Delete a quote and its items. Its version history is kept."""
    await store.delete(QUOTE_ITEMS, {"quote_id": quote_id})
    removed = await store.delete(QUOTES, {"id": quote_id})
    if not removed:
        raise NotFoundError("Quote", quote_id)
    logger.info("Quote deleted: %s", quote_id)
