"""Tests for mailing quotes to customers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from factories import make_quote
from renoquote.config import EmailConfig
from renoquote.errors import DeliveryError, NotFoundError, StoreError, ValidationError
from renoquote.notifications.email import EmailResult, EmailService
from renoquote.quotes.sending import group_items, list_send_logs, send_quote


@pytest.fixture
def email():
    service = MagicMock(spec=EmailService)
    service.send.return_value = EmailResult(success=True)
    return service


class TestGroupItems:
    def test_groups_in_item_order_with_subtotals(self):
        items = [
            {"category": "욕실", "item_name": "수전", "total_price": 180000},
            {"category": "도배", "item_name": "실크 벽지", "total_price": 4500000},
            {"category": "욕실", "item_name": "타일", "total_price": 2000000},
            {"category": "욕실", "item_name": "욕조", "total_price": 900000, "is_included": False},
        ]

        groups = group_items(items)

        assert [(group["name"], group["total"]) for group in groups] == [("욕실", 2180000), ("도배", 4500000)]
        assert [item["item_name"] for item in groups[0]["items"]] == ["수전", "타일"]


class TestSendQuote:
    @pytest.mark.asyncio
    async def test_sends_to_customer_and_marks_sent(self, store, email):
        quote = await make_quote(store, items=2, customer_email="minsu@example.com")

        result = await send_quote(store, email, quote["id"])

        kind, recipient, context = email.send.call_args.args
        assert (kind, recipient) == ("quote", "minsu@example.com")
        assert context["recipient_name"] == "김민수"
        assert context["quote_url"] == f"https://standardunit.kr/q/{quote['id']}"
        assert [group["name"] for group in context["categories"]] == ["철거", "욕실"]
        assert result.quote["status"] == "sent"
        assert result.quote["sent_at"] is not None
        assert result.send_log["status"] == "sent"
        assert result.send_log["recipient_email"] == "minsu@example.com"

    @pytest.mark.asyncio
    async def test_explicit_recipient_wins(self, memory_store, email):
        quote = await make_quote(memory_store, items=1, customer_email="minsu@example.com")

        await send_quote(memory_store, email, quote["id"], recipient_email="office@example.com", recipient_name="박대리")

        _, recipient, context = email.send.call_args.args
        assert recipient == "office@example.com"
        assert context["recipient_name"] == "박대리"

    @pytest.mark.asyncio
    async def test_no_recipient_is_rejected(self, memory_store, email):
        quote = await make_quote(memory_store, items=1)

        with pytest.raises(ValidationError):
            await send_quote(memory_store, email, quote["id"])

        email.send.assert_not_called()
        assert await list_send_logs(memory_store, quote["id"]) == []

    @pytest.mark.asyncio
    async def test_unsupported_send_type(self, memory_store, email):
        quote = await make_quote(memory_store, items=1, customer_email="minsu@example.com")

        with pytest.raises(ValidationError):
            await send_quote(memory_store, email, quote["id"], send_type="fax")

    @pytest.mark.asyncio
    async def test_unknown_quote(self, store, email):
        with pytest.raises(NotFoundError):
            await send_quote(store, email, uuid4(), recipient_email="minsu@example.com")

    @pytest.mark.asyncio
    async def test_failed_delivery_is_logged_and_quote_unchanged(self, store, email):
        quote = await make_quote(store, items=1, customer_email="minsu@example.com")
        email.send.return_value = EmailResult(success=False, error="SMTP not configured")

        with pytest.raises(DeliveryError, match="SMTP not configured"):
            await send_quote(store, email, quote["id"])

        logs = await list_send_logs(store, quote["id"])
        assert [(log["status"], log["error_message"]) for log in logs] == [("failed", "SMTP not configured")]
        current = await store.fetch_one("quotes", {"id": quote["id"]})
        assert current["status"] == "draft"
        assert current["sent_at"] is None

    @pytest.mark.asyncio
    async def test_log_failure_does_not_undo_delivery(self, memory_store, email):
        quote = await make_quote(memory_store, items=1, customer_email="minsu@example.com")

        with patch.object(memory_store, "insert", AsyncMock(side_effect=StoreError("insert", "quote_send_logs", "down"))):
            result = await send_quote(memory_store, email, quote["id"])

        assert result.send_log is None
        assert result.quote["status"] == "sent"

    @pytest.mark.asyncio
    async def test_renders_with_real_templates(self, memory_store):
        quote = await make_quote(memory_store, items=3, customer_email="minsu@example.com", discount_amount=500000)
        service = EmailService(EmailConfig(smtp_user="bot@example.com", smtp_password="secret"))

        with patch.object(service, "send_email", return_value=EmailResult(success=True)) as send_email:
            await send_quote(memory_store, service, quote["id"], message="현장 실측 후 확정됩니다.")

        recipients, subject, html = send_email.call_args.args
        assert recipients == ["minsu@example.com"]
        assert subject == "[스탠다드 유닛] 김민수님의 인테리어 견적서 (QT-2025-0001)"
        assert "₩42,000,000" in html
        assert "-₩500,000" in html
        assert "실크 벽지" in html
        assert "현장 실측 후 확정됩니다." in html
