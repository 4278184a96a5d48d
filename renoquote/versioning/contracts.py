"""Contract version history (append-only snapshots)."""

from __future__ import annotations

import logging
from uuid import UUID

from renoquote.store import RecordStore, Row

logger = logging.getLogger(__name__)

CONTRACT_VERSIONS = "contract_versions"

SIGNED_REASON = "고객 서명 완료"

CONTRACT_FIELDS = (
    "quote_id",
    "contract_number",
    "customer_name",
    "customer_phone",
    "customer_email",
    "customer_address",
    "property_address",
    "construction_start_date",
    "construction_end_date",
    "total_amount",
    "deposit_amount",
    "deposit_due_date",
    "mid_payment_1",
    "mid_payment_1_due_date",
    "mid_payment_2",
    "mid_payment_2_due_date",
    "final_payment",
    "final_payment_due_date",
    "status",
    "signed_at",
    "customer_signature_url",
    "contract_content",
    "special_terms",
)


async def snapshot_contract(
    store: RecordStore, contract: Row, reason: str, version_number: int
) -> Row:
    """Insert one version row copying every contract field."""
    row: Row = {name: contract.get(name) for name in CONTRACT_FIELDS}
    row.update(contract_id=contract["id"], version_number=version_number, saved_reason=reason)
    version = await store.insert(CONTRACT_VERSIONS, row)
    logger.info(
        "Contract %s saved as version %d (%s)", contract["contract_number"], version_number, reason
    )
    return version


async def list_contract_versions(store: RecordStore, contract_id: str | UUID) -> list[Row]:
    return await store.fetch_many(
        CONTRACT_VERSIONS, {"contract_id": contract_id}, order_by="version_number", descending=True
    )
