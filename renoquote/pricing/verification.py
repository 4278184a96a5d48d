"""Verification gate for extracted items.

Marking an item verified is the trigger for promoting it into the standard
catalog. The flag change always stands; promotion is a best-effort side
effect whose result is reported back, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from renoquote.errors import NotFoundError
from renoquote.pricing.reconciliation import (
    EXTRACTED_ITEMS,
    VERIFICATION_PROVENANCE,
    PriceReconciler,
    PromotionOutcome,
)
from renoquote.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VerificationResult:
    item_id: str
    verified: bool
    added_to_standard: bool | None = None  # None when un-verifying
    promotion: PromotionOutcome | None = None

    @property
    def message(self) -> str:
        if not self.verified:
            return "검증이 해제되었습니다"
        if self.added_to_standard:
            return "검증 완료 및 표준 단가에 추가되었습니다"
        return "검증 완료 (표준 단가 추가 실패)"


async def set_verified(
    store: RecordStore,
    item_id: str | UUID,
    verified: bool,
    reconciler: PriceReconciler | None = None,
) -> VerificationResult:
    """Persist the verification flag, then promote the item when verifying.

    Raises:
        NotFoundError: no extracted item with this id.
        StoreError: the flag could not be written.
    """
    rows = await store.update(EXTRACTED_ITEMS, {"id": item_id}, {"is_verified": verified})
    if not rows:
        raise NotFoundError("Extracted item", item_id)

    item = rows[0]
    result = VerificationResult(item_id=str(item["id"]), verified=verified)
    if not verified:
        logger.info("Extracted item %s un-verified", result.item_id)
        return result

    reconciler = reconciler or PriceReconciler(store)
    try:
        outcome = await reconciler.promote_item(item, VERIFICATION_PROVENANCE)
    except Exception:
        logger.exception("Promotion after verification failed for %s", result.item_id)
        result.added_to_standard = False
        return result

    result.promotion = outcome
    result.added_to_standard = outcome.promoted
    if not outcome.promoted:
        logger.warning(
            "Item %s verified but not added to the catalog (%s)", result.item_id, outcome.status.value
        )
    return result
