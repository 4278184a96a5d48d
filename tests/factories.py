"""Row factories shared by the store-backed tests."""

from __future__ import annotations

from typing import Any

from renoquote.errors import StoreError
from renoquote.store import RecordStore, Row


async def make_estimate(store: RecordStore, **overrides: Any) -> Row:
    row = {
        "complex_name": "헬리오시티",
        "size": "34평",
        "name": "김민수",
        "phone": "010-1234-5678",
        "email": "minsu@example.com",
    }
    row.update(overrides)
    return await store.insert("estimate_requests", row)


async def make_styleboard(store: RecordStore, **overrides: Any) -> Row:
    if "estimate_id" not in overrides:
        overrides["estimate_id"] = (await make_estimate(store))["id"]
    row = {"customer_name": "김민수", "customer_phone": "010-1234-5678", "password": "4821"}
    row.update(overrides)
    return await store.insert("customer_styleboards", row)


async def make_extracted_item(store: RecordStore, **overrides: Any) -> Row:
    row = {
        "category": "욕실",
        "normalized_item_name": "욕실수전",
        "original_item_name": "욕실 수전 (매립형)",
        "quantity": 2,
        "total_price": 360000,
    }
    row.update(overrides)
    return await store.insert("extracted_estimate_items", row)


async def make_quote(store: RecordStore, items: int = 3, **overrides: Any) -> Row:
    row = {
        "quote_number": "QT-2025-0001",
        "customer_name": "김민수",
        "customer_phone": "010-1234-5678",
        "property_address": "서울시 송파구 헬리오시티 101동",
        "property_size": 34.0,
        "total_amount": 38181818,
        "labor_cost": 15000000,
        "material_cost": 23181818,
        "vat_amount": 3818182,
        "final_amount": 42000000,
        "status": "draft",
    }
    row.update(overrides)
    quote = await store.insert("quotes", row)
    if items:
        await store.insert_many(
            "quote_items",
            [
                {
                    "quote_id": quote["id"],
                    "category": category,
                    "item_name": name,
                    "quantity": 1,
                    "unit_price": price,
                    "total_price": price,
                    "cost_type": cost_type,
                    "sort_order": index,
                }
                for index, (category, name, price, cost_type) in enumerate(
                    [
                        ("철거", "전체 철거", 3000000, "labor"),
                        ("욕실", "욕실 리모델링", 12000000, "composite"),
                        ("도배", "실크 벽지", 4500000, "material"),
                        ("주방", "싱크대 교체", 6000000, "material"),
                    ][:items]
                )
            ],
        )
    return quote


async def make_contract(store: RecordStore, **overrides: Any) -> Row:
    row = {
        "contract_number": "CT-2025-0042",
        "access_code": "123456",
        "customer_name": "김민수",
        "customer_phone": "010-1234-5678",
        "property_address": "서울시 송파구 헬리오시티 101동",
        "total_amount": 42000000,
        "deposit_amount": 4200000,
        "final_payment": 37800000,
        "status": "pending",
    }
    row.update(overrides)
    return await store.insert("contracts", row)


SIGNATURE_DATA_URI = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="


def failing_insert_many(store: RecordStore, table: str, detail: str = "disk full"):
    """Side effect for patching ``store.insert_many``: inserts into ``table`` fail, others go through."""
    original = store.insert_many

    async def insert_many(name: str, rows: list) -> list[Row]:
        if name == table:
            raise StoreError("insert", name, detail)
        return await original(name, rows)

    return insert_many
