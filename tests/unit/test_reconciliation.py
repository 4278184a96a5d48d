"""Tests for price reconciliation (promotion of extracted items)."""

from __future__ import annotations

import asyncio
from datetime import date
from unittest.mock import patch
from uuid import uuid4

import pytest

from factories import make_extracted_item
from renoquote.errors import StoreError
from renoquote.pricing.reconciliation import (
    PriceReconciler,
    PromotionStatus,
    promote_items,
    resolve_unit_price,
)

TODAY = date(2025, 3, 14)


def reconciler_for(store) -> PriceReconciler:
    return PriceReconciler(store, today=lambda: TODAY)


class TestResolveUnitPrice:
    def test_explicit_unit_price_wins(self):
        assert resolve_unit_price({"unit_price": 150000, "total_price": 999, "quantity": 1}) == 150000

    def test_derived_from_total_and_quantity(self):
        assert resolve_unit_price({"unit_price": None, "total_price": 360000, "quantity": 2}) == 180000

    def test_rounds_half_up(self):
        assert resolve_unit_price({"total_price": 5, "quantity": 2}) == 3
        assert resolve_unit_price({"total_price": 100000, "quantity": 3}) == 33333

    def test_zero_unit_price_falls_back_to_total(self):
        assert resolve_unit_price({"unit_price": 0, "total_price": 90000, "quantity": 3}) == 30000

    @pytest.mark.parametrize("quantity", [0, None])
    def test_unresolvable_without_usable_quantity(self, quantity):
        assert resolve_unit_price({"total_price": 360000, "quantity": quantity}) is None

    def test_unresolvable_without_total(self):
        assert resolve_unit_price({"quantity": 2}) is None

    def test_non_positive_result_is_unresolvable(self):
        assert resolve_unit_price({"total_price": -1000, "quantity": 2}) is None


@pytest.mark.asyncio
async def test_promotes_new_entry_with_defaults(store):
    item = await make_extracted_item(store)

    result = await reconciler_for(store).promote([str(item["id"])])

    assert result.updated_count == 1
    outcome = result.outcomes[0]
    assert outcome.status is PromotionStatus.PROMOTED
    assert outcome.action == "created"

    entry = await store.fetch_one("material_prices", {"category": "욕실", "product_name": "욕실수전"})
    assert entry["unit_price"] == 180000
    assert entry["is_verified"] is True
    assert entry["is_active"] is True
    assert entry["product_grade"] == "일반"
    assert entry["unit"] == "개"
    assert entry["source"] == "시장 단가에서 생성"
    assert entry["price_date"] == TODAY
    assert outcome.catalog_id == entry["id"]


@pytest.mark.asyncio
async def test_promotion_marks_extracted_item_verified(store):
    item = await make_extracted_item(store)

    await reconciler_for(store).promote([item["id"]])

    refreshed = await store.fetch_one("extracted_estimate_items", {"id": item["id"]})
    assert refreshed["is_verified"] is True


@pytest.mark.asyncio
async def test_promoting_same_key_twice_keeps_one_entry_with_latest_price(store):
    first = await make_extracted_item(store, unit_price=150000)
    second = await make_extracted_item(store, unit_price=170000, total_price=None)

    result = await reconciler_for(store).promote([first["id"], second["id"]])

    assert [outcome.action for outcome in result.outcomes] == ["created", "updated"]
    entries = await store.fetch_many("material_prices")
    assert len(entries) == 1
    assert entries[0]["unit_price"] == 170000
    assert entries[0]["source"] == "시장 단가에서 가져옴"


@pytest.mark.asyncio
async def test_update_preserves_fields_when_incoming_empty(store):
    await store.insert(
        "material_prices",
        {
            "category": "욕실",
            "product_name": "욕실수전",
            "brand": "대림바스",
            "product_grade": "고급",
            "unit": "세트",
            "unit_price": 200000,
        },
    )
    item = await make_extracted_item(store, brand="", product_grade=None, unit="  ")

    await reconciler_for(store).promote([item["id"]])

    entry = await store.fetch_one("material_prices", {"category": "욕실", "product_name": "욕실수전"})
    assert entry["unit_price"] == 180000
    assert entry["brand"] == "대림바스"
    assert entry["product_grade"] == "고급"
    assert entry["unit"] == "세트"


@pytest.mark.asyncio
async def test_update_overwrites_fields_when_incoming_present(store):
    await store.insert(
        "material_prices",
        {"category": "욕실", "product_name": "욕실수전", "brand": "대림바스", "unit_price": 200000},
    )
    item = await make_extracted_item(store, brand="아메리칸스탠다드", product_grade="중급", unit="EA")

    await reconciler_for(store).promote([item["id"]])

    entry = await store.fetch_one("material_prices", {"category": "욕실", "product_name": "욕실수전"})
    assert entry["brand"] == "아메리칸스탠다드"
    assert entry["product_grade"] == "중급"
    assert entry["unit"] == "EA"
    assert entry["is_verified"] is True
    assert entry["price_date"] == TODAY


@pytest.mark.asyncio
async def test_batch_reports_per_item_outcomes(store):
    priced = await make_extracted_item(store)
    unpriced = await make_extracted_item(store, normalized_item_name="세면대", quantity=0)

    result = await reconciler_for(store).promote([str(uuid4()), unpriced["id"], priced["id"], "garbage"])

    assert [outcome.status for outcome in result.outcomes] == [
        PromotionStatus.SKIPPED_NOT_FOUND,
        PromotionStatus.SKIPPED_NO_PRICE,
        PromotionStatus.PROMOTED,
        PromotionStatus.SKIPPED_NOT_FOUND,
    ]
    assert result.updated_count == 1
    refreshed = await store.fetch_one("extracted_estimate_items", {"id": unpriced["id"]})
    assert refreshed["is_verified"] is False


@pytest.mark.asyncio
async def test_store_failure_fails_only_that_item(memory_store):
    bad = await make_extracted_item(memory_store, normalized_item_name="변기")
    good = await make_extracted_item(memory_store)
    original_insert = memory_store.insert

    async def flaky_insert(table, row):
        if row.get("product_name") == "변기":
            raise StoreError("insert", table, "connection reset")
        return await original_insert(table, row)

    with patch.object(memory_store, "insert", side_effect=flaky_insert):
        result = await reconciler_for(memory_store).promote([bad["id"], good["id"]])

    assert result.outcomes[0].status is PromotionStatus.FAILED
    assert "connection reset" in result.outcomes[0].error
    assert result.outcomes[1].status is PromotionStatus.PROMOTED
    assert result.updated_count == 1


@pytest.mark.asyncio
async def test_concurrent_promotions_of_one_key_create_one_entry(memory_store):
    items = [await make_extracted_item(memory_store, unit_price=100000 + i) for i in range(5)]
    reconciler = reconciler_for(memory_store)

    results = await asyncio.gather(*(reconciler.promote([item["id"]]) for item in items))

    assert all(result.updated_count == 1 for result in results)
    actions = sorted(result.outcomes[0].action for result in results)
    assert actions == ["created", "updated", "updated", "updated", "updated"]
    assert len(await memory_store.fetch_many("material_prices")) == 1


@pytest.mark.asyncio
async def test_promote_items_convenience(memory_store):
    item = await make_extracted_item(memory_store)

    result = await promote_items(memory_store, [item["id"]])

    assert result.updated_count == 1
