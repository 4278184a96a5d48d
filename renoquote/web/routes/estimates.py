"""Estimate request routes (landing page form and admin follow-up).

Routes:
- POST   /api/estimates      - Submit an estimate request
- GET    /api/estimates      - List requests, newest first
- PATCH  /api/estimates/{id} - Update status / notes
- DELETE /api/estimates/{id} - Delete a request
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from renoquote.estimates.service import create_estimate, delete_estimate, list_estimates, update_estimate
from renoquote.notifications.email import EmailService
from renoquote.store import RecordStore
from renoquote.web.dependencies import get_email_service, get_record_store
from renoquote.web.models import EstimateCreate, EstimateUpdate

router = APIRouter(tags=["estimates"])


@router.post("/api/estimates", status_code=201)
async def post_estimate(
    body: EstimateCreate,
    store: RecordStore = Depends(get_record_store),
    email: EmailService = Depends(get_email_service),
):
    estimate = await create_estimate(store, body.model_dump(), email)
    return {"success": True, "data": estimate}


@router.get("/api/estimates")
async def get_estimates(
    status: Optional[str] = Query(default=None),
    store: RecordStore = Depends(get_record_store),
):
    payload = {"success": True, "data": await list_estimates(store, status), "demoMode": not store.is_persistent}
    if not store.is_persistent:
        payload["message"] = "데이터베이스가 설정되지 않았습니다. 데모 모드로 실행 중입니다."
    return payload


@router.patch("/api/estimates/{estimate_id}")
async def patch_estimate(
    estimate_id: str, body: EstimateUpdate, store: RecordStore = Depends(get_record_store)
):
    estimate = await update_estimate(store, estimate_id, body.model_dump(exclude_unset=True))
    return {"success": True, "data": estimate}


@router.delete("/api/estimates/{estimate_id}")
async def remove_estimate(estimate_id: str, store: RecordStore = Depends(get_record_store)):
    await delete_estimate(store, estimate_id)
    return {"success": True}
