"""Pricing catalog routes.

Routes:
- GET /api/pricing?type=all|labor|material|composite - Active catalog entries
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from renoquote.pricing.catalog import list_catalogs
from renoquote.store import RecordStore
from renoquote.web.dependencies import get_record_store

router = APIRouter(tags=["pricing"])


@router.get("/api/pricing")
async def get_pricing(
    type: str = Query(default="all"),
    store: RecordStore = Depends(get_record_store),
):
    catalogs = await list_catalogs(store, type)
    return {"success": True, "data": catalogs}
