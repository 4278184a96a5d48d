"""Price reconciliation: promote extracted line items into the standard catalog.

An extracted item becomes a catalog entry keyed by (category, canonical name).
The unit price is taken from the item, or derived from total / quantity when
the document only carried a line total. Existing entries are refreshed in
place, so the catalog holds at most one live row per key.

Promotion of a key runs under a per-key lock; the unique constraint on
``material_prices (category, product_name)`` covers writers in other processes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID

from renoquote.config import PricingConfig, get_config
from renoquote.errors import StoreError, ValidationError
from renoquote.pricing.locks import KeyedLocks, catalog_locks
from renoquote.store import RecordStore, Row

logger = logging.getLogger(__name__)

EXTRACTED_ITEMS = "extracted_estimate_items"
MATERIAL_PRICES = "material_prices"

# Fields copied onto an existing entry only when the item supplies a value
OPTIONAL_OVERWRITE_FIELDS = ("brand", "product_grade", "unit")


class PromotionStatus(str, Enum):
    PROMOTED = "promoted"
    SKIPPED_NO_PRICE = "skipped-no-price"
    SKIPPED_NOT_FOUND = "skipped-not-found"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Provenance:
    """``source`` annotations written on catalog entries."""

    created: str
    updated: str


BATCH_PROVENANCE = Provenance(created="시장 단가에서 생성", updated="시장 단가에서 가져옴")
VERIFICATION_PROVENANCE = Provenance(created="시장 단가에서 검증됨", updated="시장 단가에서 검증됨")


@dataclass(slots=True)
class PromotionOutcome:
    item_id: str
    status: PromotionStatus
    action: str | None = None  # "created" or "updated"
    unit_price: int | None = None
    catalog_id: UUID | None = None
    error: str | None = None

    @property
    def promoted(self) -> bool:
        return self.status is PromotionStatus.PROMOTED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.item_id, "status": self.status.value}
        if self.action:
            data["action"] = self.action
        if self.unit_price is not None:
            data["unit_price"] = self.unit_price
        if self.catalog_id is not None:
            data["catalog_id"] = str(self.catalog_id)
        if self.error:
            data["error"] = self.error
        return data


@dataclass(slots=True)
class PromotionResult:
    outcomes: list[PromotionOutcome] = field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.promoted)

    def count(self, status: PromotionStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def resolve_unit_price(item: Mapping[str, Any]) -> int | None:
    """Unit price for an extracted item, or None when it cannot be resolved.

    Uses ``unit_price`` when present and non-zero, else
    ``total_price / quantity`` rounded half-up to a whole currency unit.
    Zero quantities are never divided. Non-positive results are unusable.
    """
    unit_price = _to_decimal(item.get("unit_price"))
    if unit_price:
        resolved = unit_price.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    else:
        total = _to_decimal(item.get("total_price"))
        quantity = _to_decimal(item.get("quantity"))
        if not total or not quantity:
            return None
        resolved = (total / quantity).quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    if resolved <= 0:
        return None
    return int(resolved)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class PriceReconciler:
    """Promotes extracted items into ``material_prices``."""

    def __init__(
        self,
        store: RecordStore,
        pricing: PricingConfig | None = None,
        locks: KeyedLocks | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.pricing = pricing or get_config().pricing
        self.locks = locks or catalog_locks
        self._today = today

    async def promote(self, item_ids: Sequence[str | UUID]) -> PromotionResult:
        """Promote each item independently, in input order.

        Per-item problems (missing item, no resolvable price, store failure)
        are recorded as outcomes; they never abort the batch.
        """
        result = PromotionResult()
        for item_id in item_ids:
            result.outcomes.append(await self._promote_by_id(item_id))

        logger.info(
            "Promotion batch finished: %d/%d promoted (%d no price, %d not found, %d failed)",
            result.updated_count,
            len(result.outcomes),
            result.count(PromotionStatus.SKIPPED_NO_PRICE),
            result.count(PromotionStatus.SKIPPED_NOT_FOUND),
            result.count(PromotionStatus.FAILED),
        )
        return result

    async def _promote_by_id(self, item_id: str | UUID) -> PromotionOutcome:
        try:
            item = await self.store.fetch_one(EXTRACTED_ITEMS, {"id": item_id})
        except ValidationError:
            item = None  # malformed identity cannot match any row
        except StoreError as exc:
            logger.error("Failed to load extracted item %s: %s", item_id, exc)
            return PromotionOutcome(str(item_id), PromotionStatus.FAILED, error=exc.message)

        if item is None:
            logger.warning("Extracted item not found, skipping: %s", item_id)
            return PromotionOutcome(str(item_id), PromotionStatus.SKIPPED_NOT_FOUND)

        return await self.promote_item(item, BATCH_PROVENANCE, mark_verified=True)

    async def promote_item(
        self,
        item: Row,
        provenance: Provenance = BATCH_PROVENANCE,
        mark_verified: bool = False,
    ) -> PromotionOutcome:
        """Promote one already-loaded extracted item."""
        item_id = str(item["id"])
        unit_price = resolve_unit_price(item)
        if unit_price is None:
            logger.warning(
                "Cannot resolve unit price (unit_price/total_price/quantity missing): %s",
                item.get("normalized_item_name"),
            )
            return PromotionOutcome(item_id, PromotionStatus.SKIPPED_NO_PRICE)

        key = (item["category"], item["normalized_item_name"])
        try:
            async with self.locks.hold(key):
                entry, action = await self._upsert_catalog_entry(item, unit_price, provenance)
        except StoreError as exc:
            logger.error("Catalog upsert failed for %s/%s: %s", key[0], key[1], exc)
            return PromotionOutcome(item_id, PromotionStatus.FAILED, unit_price=unit_price, error=exc.message)

        if mark_verified and not item.get("is_verified"):
            try:
                await self.store.update(EXTRACTED_ITEMS, {"id": item["id"]}, {"is_verified": True})
            except StoreError as exc:
                logger.warning("Promoted %s but could not mark it verified: %s", item_id, exc)

        return PromotionOutcome(
            item_id,
            PromotionStatus.PROMOTED,
            action=action,
            unit_price=unit_price,
            catalog_id=entry["id"],
        )

    async def _upsert_catalog_entry(
        self, item: Row, unit_price: int, provenance: Provenance
    ) -> tuple[Row, str]:
        category = item["category"]
        product_name = item["normalized_item_name"]
        existing = await self.store.fetch_one(
            MATERIAL_PRICES, {"category": category, "product_name": product_name}
        )

        if existing is not None:
            patch: dict[str, Any] = {
                "unit_price": unit_price,
                "is_verified": True,
                "price_date": self._today(),
                "source": provenance.updated,
            }
            for name in OPTIONAL_OVERWRITE_FIELDS:
                if not _is_blank(item.get(name)):
                    patch[name] = item[name]
            rows = await self.store.update(MATERIAL_PRICES, {"id": existing["id"]}, patch)
            if not rows:
                raise StoreError("update", MATERIAL_PRICES, "catalog entry vanished during promotion")
            return rows[0], "updated"

        entry = await self.store.insert(
            MATERIAL_PRICES,
            {
                "category": category,
                "sub_category": item.get("sub_category"),
                "detail_category": item.get("detail_category"),
                "product_name": product_name,
                "brand": item.get("brand"),
                "model": item.get("model"),
                "product_grade": item.get("product_grade") or self.pricing.default_product_grade,
                "unit": item.get("unit") or self.pricing.default_unit,
                "unit_price": unit_price,
                "source": provenance.created,
                "is_verified": True,
                "is_active": True,
                "price_date": self._today(),
            },
        )
        return entry, "created"


async def promote_items(store: RecordStore, item_ids: Sequence[str | UUID]) -> PromotionResult:
    """Convenience function: promote a batch with default settings."""
    return await PriceReconciler(store).promote(item_ids)
