"""Quote delivery to customers by e-mail.

Every attempt is recorded in ``quote_send_logs``. A delivered quote moves
to ``sent``; a failed delivery leaves the quote untouched.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from renoquote.config import get_config
from renoquote.errors import DeliveryError, StoreError, ValidationError
from renoquote.notifications.email import EmailService
from renoquote.store import RecordStore, Row
from renoquote.versioning.quotes import QUOTES, load_quote

logger = logging.getLogger(__name__)

QUOTE_SEND_LOGS = "quote_send_logs"
SEND_TYPES = ("email",)


@dataclass(slots=True)
class SendResult:
    quote: Row
    send_log: Row | None


def group_items(items: list[Row]) -> list[dict[str, Any]]:
    """Included items grouped by category, in item order, with a subtotal each."""
    groups: dict[str, dict[str, Any]] = {}
    for item in items:
        if item.get("is_included") is False:
            continue
        group = groups.setdefault(item["category"], {"name": item["category"], "total": 0, "items": []})
        group["items"].append(item)
        group["total"] += item.get("total_price") or 0
    return list(groups.values())


async def _log_attempt(store: RecordStore, row: Row) -> Row | None:
    # The mail has already gone out (or failed); a lost log line must not change that outcome
    try:
        return await store.insert(QUOTE_SEND_LOGS, row)
    except StoreError as exc:
        logger.error("Could not record quote delivery for %s: %s", row["quote_id"], exc)
        return None


async def send_quote(
    store: RecordStore,
    email: EmailService,
    quote_id: str | UUID,
    recipient_email: str | None = None,
    recipient_name: str | None = None,
    send_type: str = "email",
    message: str | None = None,
) -> SendResult:
    """Mail a quote to ``recipient_email`` (default: the quote's customer).

    Raises:
        NotFoundError: no such quote.
        ValidationError: unsupported send type or no recipient address.
        DeliveryError: the mail server rejected or never received the message.
    """
    if send_type not in SEND_TYPES:
        raise ValidationError(f"Unsupported send_type: {send_type}")

    quote, items = await load_quote(store, quote_id)
    to_email = recipient_email or quote["customer_email"]
    to_name = recipient_name or quote["customer_name"]
    if not to_email:
        raise ValidationError("수신자 이메일이 필요합니다.")

    context = {
        "quote": quote,
        "categories": group_items(items),
        "recipient_name": to_name or "고객",
        "quote_number": quote["quote_number"],
        "message": message,
        "quote_url": f"{get_config().email.link_base_url}/q/{quote['id']}",
    }
    result = await asyncio.to_thread(email.send, "quote", to_email, context)

    log_row = {
        "quote_id": quote["id"],
        "recipient_email": to_email,
        "recipient_name": to_name,
        "send_type": send_type,
        "status": "sent" if result.success else "failed",
        "error_message": result.error,
    }
    send_log = await _log_attempt(store, log_row)
    if not result.success:
        raise DeliveryError(f"이메일 발송 실패: {result.error}")

    rows = await store.update(
        QUOTES, {"id": quote["id"]}, {"status": "sent", "sent_at": datetime.now(timezone.utc)}
    )
    logger.info("Quote %s sent to %s", quote["quote_number"], to_email)
    return SendResult(quote=rows[0] if rows else quote, send_log=send_log)


async def list_send_logs(store: RecordStore, quote_id: str | UUID) -> list[Row]:
    return await store.fetch_many(QUOTE_SEND_LOGS, {"quote_id": quote_id}, order_by="sent_at", descending=True)
