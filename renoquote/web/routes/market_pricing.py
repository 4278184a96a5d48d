"""Market pricing routes: extracted items and their promotion to standard prices.

Routes:
- GET    /api/market-pricing              - List extracted items
- POST   /api/market-pricing              - Register an extracted item manually
- DELETE /api/market-pricing?id=          - Delete an extracted item
- POST   /api/market-pricing/set-standard - Promote items into the standard catalog
- POST   /api/market-pricing/verify       - Set the verification flag (promotes on verify)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from renoquote.pricing.catalog import create_extracted_item, delete_extracted_item, list_extracted_items
from renoquote.pricing.reconciliation import PriceReconciler
from renoquote.pricing.verification import set_verified
from renoquote.store import RecordStore
from renoquote.web.dependencies import get_record_store
from renoquote.web.models import ExtractedItemCreate, SetStandardRequest, VerifyRequest

router = APIRouter(tags=["market-pricing"])


# ============================================================================
# Extracted Items
# ============================================================================


@router.get("/api/market-pricing")
async def get_extracted_items(
    category: Optional[str] = Query(default=None),
    verified: Optional[bool] = Query(default=None),
    file_id: Optional[str] = Query(default=None),
    store: RecordStore = Depends(get_record_store),
):
    items = await list_extracted_items(store, category=category, verified=verified, file_id=file_id)
    return {"success": True, "data": items}


@router.post("/api/market-pricing")
async def post_extracted_item(body: ExtractedItemCreate, store: RecordStore = Depends(get_record_store)):
    item = await create_extracted_item(store, body.model_dump(exclude_none=True))
    return {"success": True, "data": item}


@router.delete("/api/market-pricing")
async def remove_extracted_item(id: str = Query(...), store: RecordStore = Depends(get_record_store)):
    await delete_extracted_item(store, id)
    return {"success": True, "message": "항목이 삭제되었습니다."}


# ============================================================================
# Promotion & Verification
# ============================================================================


@router.post("/api/market-pricing/set-standard")
async def set_standard(body: SetStandardRequest, store: RecordStore = Depends(get_record_store)):
    """Promote extracted items into the standard price catalog.

    Per-item problems never fail the request; they are listed in ``outcomes``.
    """
    result = await PriceReconciler(store).promote(body.item_ids)
    return {
        "success": True,
        "updated": result.updated_count,
        "message": f"{result.updated_count}개 항목이 표준 단가로 설정되었습니다.",
        "outcomes": [outcome.to_dict() for outcome in result.outcomes],
    }


@router.post("/api/market-pricing/verify")
async def verify_item(body: VerifyRequest, store: RecordStore = Depends(get_record_store)):
    result = await set_verified(store, body.id, body.verified)
    payload = {"success": True, "message": result.message}
    if result.verified:
        payload["addedToStandard"] = bool(result.added_to_standard)
    return payload
