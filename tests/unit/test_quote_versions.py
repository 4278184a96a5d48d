"""Tests for quote version snapshots and rollback."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from factories import failing_insert_many, make_quote
from renoquote.errors import NotFoundError, StoreError
from renoquote.versioning.quotes import list_quote_versions, rollback_quote, snapshot_quote


@pytest.mark.asyncio
async def test_snapshot_copies_quote_and_items(store):
    quote = await make_quote(store, items=3)

    result = await snapshot_quote(store, str(quote["id"]))

    version = result.version
    assert result.items_copied is True
    assert version["version_number"] == 1
    assert version["quote_number"] == "QT-2025-0001-v1"
    assert version["saved_reason"] == "수정"
    assert version["final_amount"] == 42000000
    assert version["customer_name"] == "김민수"
    assert version["property_size"] == 34.0
    assert len(result.items) == 3
    assert [item["item_name"] for item in result.items] == ["전체 철거", "욕실 리모델링", "실크 벽지"]
    live_ids = {item["id"] for item in await store.fetch_many("quote_items", {"quote_id": quote["id"]})}
    for item in result.items:
        assert item["version_id"] == version["id"]
        assert "quote_id" not in item
        assert item["id"] not in live_ids


@pytest.mark.asyncio
async def test_version_numbers_strictly_increase(store):
    quote = await make_quote(store, items=1)

    numbers = [(await snapshot_quote(store, quote["id"], f"edit {i}")).version_number for i in range(3)]

    assert numbers == [1, 2, 3]
    listed = await list_quote_versions(store, quote["id"])
    assert [version["version_number"] for version in listed] == [3, 2, 1]
    assert listed[0]["saved_reason"] == "edit 2"
    assert all(len(version["items"]) == 1 for version in listed)


@pytest.mark.asyncio
async def test_versions_are_numbered_per_quote(store):
    first = await make_quote(store, items=0)
    second = await make_quote(store, items=0, quote_number="QT-2025-0002")

    await snapshot_quote(store, first["id"])
    await snapshot_quote(store, first["id"])
    result = await snapshot_quote(store, second["id"])

    assert result.version_number == 1


@pytest.mark.asyncio
async def test_missing_amounts_default_to_zero(memory_store):
    quote = await memory_store.insert("quotes", {"quote_number": "QT-2025-0009"})
    await memory_store.update("quotes", {"id": quote["id"]}, {"status": "sent"})

    result = await snapshot_quote(memory_store, quote["id"])

    assert result.version["total_amount"] == 0
    assert result.version["status"] == "sent"
    assert result.items == []


@pytest.mark.asyncio
async def test_snapshot_of_unknown_quote(store):
    with pytest.raises(NotFoundError):
        await snapshot_quote(store, uuid4())


@pytest.mark.asyncio
async def test_item_copy_failure_keeps_version(memory_store):
    quote = await make_quote(memory_store, items=2)

    failing = failing_insert_many(memory_store, "quote_version_items")
    with patch.object(memory_store, "insert_many", AsyncMock(side_effect=failing)):
        result = await snapshot_quote(memory_store, quote["id"])

    assert result.items_copied is False
    assert result.items == []
    assert result.version_number == 1
    assert len(await list_quote_versions(memory_store, quote["id"])) == 1


@pytest.mark.asyncio
async def test_version_insert_failure_is_fatal(memory_store):
    quote = await make_quote(memory_store, items=1)

    with patch.object(memory_store, "insert", AsyncMock(side_effect=StoreError("insert", "quote_versions", "down"))):
        with pytest.raises(StoreError):
            await snapshot_quote(memory_store, quote["id"])


@pytest.mark.asyncio
async def test_versions_survive_quote_deletion(store):
    quote = await make_quote(store, items=2)
    await snapshot_quote(store, quote["id"])

    await store.delete("quote_items", {"quote_id": quote["id"]})
    await store.delete("quotes", {"id": quote["id"]})

    versions = await list_quote_versions(store, quote["id"])
    assert len(versions) == 1
    assert len(versions[0]["items"]) == 2


class TestRollback:
    @pytest.mark.asyncio
    async def test_rollback_restores_version_and_backs_up_current(self, store):
        quote = await make_quote(store, items=3)
        v1 = (await snapshot_quote(store, quote["id"])).version

        await store.update("quotes", {"id": quote["id"]}, {"final_amount": 50000000, "status": "sent"})
        await store.delete("quote_items", {"quote_id": quote["id"]})

        restored = await rollback_quote(store, str(quote["id"]), str(v1["id"]))

        assert restored["final_amount"] == 42000000
        assert restored["status"] == "draft"
        assert [item["sort_order"] for item in restored["items"]] == [0, 1, 2]

        versions = await list_quote_versions(store, quote["id"])
        assert [version["version_number"] for version in versions] == [2, 1]
        backup = versions[0]
        assert backup["saved_reason"] == "롤백 전 백업 (v1으로 롤백)"
        assert backup["final_amount"] == 50000000
        assert backup["items"] == []

    @pytest.mark.asyncio
    async def test_rollback_rejects_version_of_another_quote(self, store):
        quote = await make_quote(store, items=1)
        other = await make_quote(store, items=1, quote_number="QT-2025-0002")
        foreign = (await snapshot_quote(store, other["id"])).version

        with pytest.raises(NotFoundError):
            await rollback_quote(store, quote["id"], foreign["id"])

    @pytest.mark.asyncio
    async def test_rollback_to_unknown_version(self, store):
        quote = await make_quote(store, items=1)

        with pytest.raises(NotFoundError):
            await rollback_quote(store, quote["id"], uuid4())
