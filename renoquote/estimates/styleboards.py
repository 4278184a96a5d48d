"""Style boards: per-customer image picks that feed the consultation.

An admin opens a board for an estimate request and mails the customer a link
and password. The customer picks up to five images per space and sub
category; the admin view sees everything, the customer view never sees the
password.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from renoquote.config import get_config
from renoquote.errors import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from renoquote.estimates.service import ESTIMATE_REQUESTS, STYLEBOARDS
from renoquote.notifications.email import EmailService
from renoquote.pricing.locks import KeyedLocks
from renoquote.store import RecordStore, Row

logger = logging.getLogger(__name__)

MAX_IMAGES_PER_CATEGORY = 5
REQUIRED_FIELDS = ("estimate_id", "customer_name", "customer_phone", "password")

SPACE_LABELS = {
    "living": "거실",
    "bedroom": "침실",
    "bathroom": "욕실",
    "kitchen": "주방",
    "entrance": "현관",
    "study": "서재",
    "kids": "아이방",
}
# Korean labels are accepted as space keys and stored under the English name
SPACE_KEYS = {**{key: key for key in SPACE_LABELS}, **{label: key for key, label in SPACE_LABELS.items()}}

_creation = KeyedLocks()


@dataclass(slots=True)
class LinkResult:
    styleboard: Row
    link: str
    email_sent: bool


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _public(board: Row) -> Row:
    return {key: value for key, value in board.items() if key != "password"}


def normalize_selection(selected: Any) -> dict[str, dict[str, list[str]]]:
    """Validate ``{space: {sub_category: [path, ...]}}`` and key spaces by English name."""
    if not isinstance(selected, Mapping):
        raise ValidationError("selected_images must map spaces to sub categories")
    normalized: dict[str, dict[str, list[str]]] = {}
    for space, subs in selected.items():
        key = SPACE_KEYS.get(space)
        if key is None:
            raise ValidationError(f"Unknown space: {space}")
        if not isinstance(subs, Mapping):
            raise ValidationError(f"{space}: expected sub categories")
        for sub, images in subs.items():
            if not isinstance(images, list) or not all(isinstance(path, str) for path in images):
                raise ValidationError(f"{space}/{sub}: expected a list of image paths")
            if len(images) > MAX_IMAGES_PER_CATEGORY:
                raise ValidationError(
                    f"{space}/{sub} 카테고리는 최대 {MAX_IMAGES_PER_CATEGORY}장까지 선택 가능합니다."
                )
            normalized.setdefault(key, {})[sub] = list(images)
    return normalized


async def _load(store: RecordStore, styleboard_id: str | UUID) -> Row:
    board = await store.fetch_one(STYLEBOARDS, {"id": styleboard_id})
    if board is None:
        raise NotFoundError("Style board", styleboard_id)
    return board


def _check_password(board: Row, password: str) -> None:
    if not secrets.compare_digest(board["password"].encode(), password.encode()):
        raise AccessDeniedError("비밀번호가 일치하지 않습니다.")


async def create_styleboard(store: RecordStore, data: Mapping[str, Any]) -> Row:
    """Open an empty board for an estimate request; one board per request."""
    missing = [name for name in REQUIRED_FIELDS if not data.get(name)]
    if missing:
        raise ValidationError(f"필수 정보가 누락되었습니다: {', '.join(missing)}")

    estimate = await store.fetch_one(ESTIMATE_REQUESTS, {"id": data["estimate_id"]})
    if estimate is None:
        raise NotFoundError("Estimate request", data["estimate_id"])

    async with _creation.hold(estimate["id"]):
        if await store.fetch_one(STYLEBOARDS, {"estimate_id": estimate["id"]}) is not None:
            raise ConflictError("이미 스타일보드가 생성되어 있습니다.")
        board = await store.insert(
            STYLEBOARDS,
            {
                "estimate_id": estimate["id"],
                "customer_name": data["customer_name"],
                "customer_phone": data["customer_phone"],
                "customer_email": data.get("customer_email") or None,
                "password": data["password"],
            },
        )
    logger.info("Style board %s opened for estimate %s", board["id"], estimate["id"])
    return board


async def list_styleboards(store: RecordStore) -> list[Row]:
    boards = await store.fetch_many(STYLEBOARDS, order_by="created_at", descending=True)
    for board in boards:
        board["estimate"] = await store.fetch_one(ESTIMATE_REQUESTS, {"id": board["estimate_id"]})
    return boards


async def get_styleboard(store: RecordStore, styleboard_id: str | UUID, password: str | None = None) -> Row:
    """Admin view without ``password``; customer view (password checked and hidden) with it."""
    board = await _load(store, styleboard_id)
    if password is None:
        return board
    _check_password(board, password)
    return _public(board)


async def update_styleboard(store: RecordStore, styleboard_id: str | UUID, patch: Mapping[str, Any]) -> Row:
    """Save picks (``selected_images``), mark saved (``save``) or record a sent link (``link_sent``).

    A ``password`` in the patch is checked, not changed.
    """
    board = await _load(store, styleboard_id)
    if patch.get("password") is not None:
        _check_password(board, patch["password"])

    now = _now()
    values: dict[str, Any] = {}
    if patch.get("selected_images") is not None:
        values["selected_images"] = normalize_selection(patch["selected_images"])
        values["last_modified_at"] = now
    if patch.get("save"):
        values["saved_at"] = now
    if patch.get("link_sent") is not None:
        values["link_sent"] = bool(patch["link_sent"])
        if patch["link_sent"]:
            values["link_sent_at"] = now
    if not values:
        raise ValidationError("Nothing to update (selected_images, save, link_sent)")

    rows = await store.update(STYLEBOARDS, {"id": board["id"]}, values)
    if not rows:
        raise NotFoundError("Style board", styleboard_id)
    return rows[0] if patch.get("password") is None else _public(rows[0])


async def delete_styleboard(store: RecordStore, styleboard_id: str | UUID) -> None:
    removed = await store.delete(STYLEBOARDS, {"id": styleboard_id})
    if not removed:
        raise NotFoundError("Style board", styleboard_id)
    logger.info("Style board deleted: %s", styleboard_id)


async def send_styleboard_link(store: RecordStore, email: EmailService, styleboard_id: str | UUID) -> LinkResult:
    """Mail the board link and password to the customer, then mark the link sent.

    A failed mail is reported through ``email_sent`` and the link is still marked sent,
    so the admin can pass it on by phone.
    """
    board = await _load(store, styleboard_id)
    estimate = await store.fetch_one(ESTIMATE_REQUESTS, {"id": board["estimate_id"]}) or {}
    link = f"{get_config().email.link_base_url}/styleboard/{board['id']}"
    recipient = board["customer_email"] or estimate.get("email")

    context = {
        "customer_name": board["customer_name"],
        "complex_name": estimate.get("complex_name"),
        "size": estimate.get("size"),
        "styleboard_url": link,
        "password": board["password"],
    }
    try:
        result = await asyncio.to_thread(email.send, "styleboard_link", recipient, context)
    except Exception:
        logger.exception("Style board mail crashed for %s", board["id"])
        email_sent = False
    else:
        email_sent = result.success
        if not result.success:
            logger.warning("Style board link not mailed for %s: %s", board["id"], result.error)

    rows = await store.update(STYLEBOARDS, {"id": board["id"]}, {"link_sent": True, "link_sent_at": _now()})
    return LinkResult(styleboard=rows[0] if rows else board, link=link, email_sent=email_sent)
