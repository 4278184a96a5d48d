"""Contract lifecycle: create, read, update, sign.

Status machine::

    pending --sign--> signed
    pending|signed --update--> cancelled   (terminal)

Nothing returns a contract to ``pending``. Signing is a conditional update
on ``status = 'pending'``, so of two concurrent signers exactly one wins.
"""

from __future__ import annotations

import base64
import binascii
import logging
import random
import re
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from renoquote.contracts.terms import DEFAULT_CONTRACT_CONTENT
from renoquote.errors import ConflictError, NotFoundError, StoreError, ValidationError
from renoquote.integrations.object_storage import ObjectStorage, ObjectStorageError
from renoquote.store import RecordStore, Row
from renoquote.versioning.contracts import SIGNED_REASON, snapshot_contract

logger = logging.getLogger(__name__)

CONTRACTS = "contracts"

STATUS_PENDING = "pending"
STATUS_SIGNED = "signed"
STATUS_CANCELLED = "cancelled"
CONTRACT_STATUSES = (STATUS_PENDING, STATUS_SIGNED, STATUS_CANCELLED)

# Assigned by the service, never by callers
PROTECTED_FIELDS = frozenset(
    {"id", "contract_number", "access_code", "signed_at", "customer_signature_url", "created_at", "updated_at"}
)

_DATA_URI_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")
_NUMBER_ATTEMPTS = 5


def generate_contract_number(today: date | None = None) -> str:
    year = (today or date.today()).year
    return f"CT-{year}-{random.randint(0, 9999):04d}"


def generate_access_code() -> str:
    return str(random.randint(100000, 999999))


def decode_signature(signature_data: str) -> bytes:
    """Decode a (data-URI or bare) base64 signature image."""
    payload = _DATA_URI_PREFIX.sub("", signature_data.strip())
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("signature_data is not valid base64 image data") from exc
    if not data:
        raise ValidationError("signature_data is empty")
    return data


async def _unused(store: RecordStore, column: str, generate: Callable[[], str]) -> str:
    for _ in range(_NUMBER_ATTEMPTS):
        candidate = generate()
        if await store.fetch_one(CONTRACTS, {column: candidate}) is None:
            return candidate
    raise StoreError("insert", CONTRACTS, f"could not allocate a unique {column}")


async def create_contract(store: RecordStore, data: Mapping[str, Any]) -> Row:
    """Create a pending contract with a fresh number and access code."""
    if not data.get("customer_name"):
        raise ValidationError("customer_name is required")
    protected = PROTECTED_FIELDS.intersection(data)
    if protected:
        raise ValidationError(f"Field(s) cannot be set: {', '.join(sorted(protected))}")

    row = dict(data)
    row["contract_number"] = await _unused(store, "contract_number", generate_contract_number)
    row["access_code"] = await _unused(store, "access_code", generate_access_code)
    row["contract_content"] = row.get("contract_content") or DEFAULT_CONTRACT_CONTENT
    row["status"] = STATUS_PENDING

    contract = await store.insert(CONTRACTS, row)
    logger.info("Contract created: %s", contract["contract_number"])
    return contract


async def get_contract(store: RecordStore, contract_id: str | UUID) -> Row:
    contract = await store.fetch_one(CONTRACTS, {"id": contract_id})
    if contract is None:
        raise NotFoundError("Contract", contract_id)
    return contract


async def get_contract_by_access_code(store: RecordStore, access_code: str) -> Row:
    contract = await store.fetch_one(CONTRACTS, {"access_code": access_code})
    if contract is None:
        raise NotFoundError("Contract", "access code")
    return contract


async def list_contracts(store: RecordStore, status: str | None = None) -> list[Row]:
    filters = {"status": status} if status else None
    return await store.fetch_many(CONTRACTS, filters, order_by="created_at", descending=True)


def _check_transition(contract: Row, patch: Mapping[str, Any]) -> None:
    current = contract["status"]
    requested = patch.get("status", current)

    if requested not in CONTRACT_STATUSES:
        raise ValidationError(f"Invalid contract status: {requested}")
    if requested == STATUS_SIGNED and current != STATUS_SIGNED:
        raise ConflictError("Contracts are signed through the signing endpoint")
    if current == STATUS_CANCELLED:
        raise ConflictError("Cancelled contracts cannot be modified")
    if current == STATUS_SIGNED and (set(patch) - {"status"} or requested != STATUS_CANCELLED):
        raise ConflictError("Signed contracts can only be cancelled")
    if requested == STATUS_PENDING and current != STATUS_PENDING:
        raise ConflictError("Contracts cannot return to pending")


async def update_contract(store: RecordStore, contract_id: str | UUID, patch: Mapping[str, Any]) -> Row:
    protected = PROTECTED_FIELDS.intersection(patch)
    if protected:
        raise ValidationError(f"Field(s) cannot be changed: {', '.join(sorted(protected))}")

    contract = await get_contract(store, contract_id)
    _check_transition(contract, patch)
    if not patch:
        return contract

    # Guard on the status we validated against
    rows = await store.update(CONTRACTS, {"id": contract["id"], "status": contract["status"]}, patch)
    if not rows:
        raise ConflictError("Contract status changed concurrently; reload and retry")
    logger.info("Contract %s updated (%s)", contract["contract_number"], ", ".join(sorted(patch)))
    return rows[0]


async def delete_contract(store: RecordStore, contract_id: str | UUID) -> None:
    removed = await store.delete(CONTRACTS, {"id": contract_id})
    if not removed:
        raise NotFoundError("Contract", contract_id)
    logger.info("Contract deleted: %s", contract_id)


async def _store_signature(
    storage: ObjectStorage, contract_id: UUID, signature_data: str, image: bytes
) -> tuple[str, str | None]:
    """Upload the image; returns its URL and object path, or the data URI and None."""
    # Unique per attempt so a losing signer never shares a path with the winner
    path = f"signatures/{contract_id}_{int(time.time() * 1000)}_{uuid4().hex[:8]}.png"
    try:
        return await storage.upload(path, image, "image/png"), path
    except ObjectStorageError as exc:
        logger.warning("Signature upload failed for contract %s, keeping data URI: %s", contract_id, exc)
        return signature_data, None


async def _discard_signature(storage: ObjectStorage, path: str) -> None:
    try:
        await storage.delete(path)
    except ObjectStorageError as exc:
        logger.warning("Could not remove unused signature %s: %s", path, exc)


async def sign_contract(
    store: RecordStore,
    storage: ObjectStorage,
    contract_id: str | UUID,
    signature_data: str,
    now: Callable[[], datetime] | None = None,
) -> Row:
    """Sign a pending contract and record version 1 of its history.

    Raises:
        ValidationError: missing or undecodable signature.
        NotFoundError: no such contract.
        ConflictError: the contract is not pending (including a lost race).
    """
    if not signature_data:
        raise ValidationError("signature_data is required")

    contract = await get_contract(store, contract_id)
    if contract["status"] == STATUS_SIGNED:
        raise ConflictError("Contract is already signed")
    if contract["status"] != STATUS_PENDING:
        raise ConflictError(f"Contract cannot be signed while {contract['status']}")

    image = decode_signature(signature_data)
    signature_url, signature_path = await _store_signature(storage, contract["id"], signature_data, image)

    signed_at = now() if now else datetime.now(timezone.utc)
    rows = await store.update(
        CONTRACTS,
        {"id": contract["id"], "status": STATUS_PENDING},
        {"status": STATUS_SIGNED, "signed_at": signed_at, "customer_signature_url": signature_url},
    )
    if not rows:
        if signature_path:
            await _discard_signature(storage, signature_path)
        raise ConflictError("Contract is already signed")

    signed = rows[0]
    logger.info("Contract %s signed", signed["contract_number"])

    try:
        await snapshot_contract(store, signed, SIGNED_REASON, version_number=1)
    except StoreError as exc:
        logger.error("Contract %s signed but its version snapshot failed: %s", signed["contract_number"], exc)

    return signed
