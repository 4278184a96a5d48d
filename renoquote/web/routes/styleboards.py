"""Style board routes (admin management and the customer picker).

Routes:
- GET    /api/styleboard              - All boards with their estimate request (admin)
- POST   /api/styleboard              - Open a board for an estimate request
- POST   /api/styleboard/send         - Mail the board link to the customer
- GET    /api/styleboard/{id}         - One board (?password= for the customer view)
- PATCH  /api/styleboard/{id}         - Save picks / mark saved / mark link sent
- DELETE /api/styleboard/{id}         - Delete a board
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from renoquote.estimates.styleboards import (
    create_styleboard,
    delete_styleboard,
    get_styleboard,
    list_styleboards,
    send_styleboard_link,
    update_styleboard,
)
from renoquote.notifications.email import EmailService
from renoquote.store import RecordStore
from renoquote.web.dependencies import get_email_service, get_record_store
from renoquote.web.models import StyleboardCreate, StyleboardSendRequest, StyleboardUpdate

router = APIRouter(tags=["styleboards"])


@router.get("/api/styleboard")
async def get_styleboards(store: RecordStore = Depends(get_record_store)):
    return {"success": True, "data": await list_styleboards(store), "demoMode": not store.is_persistent}


@router.post("/api/styleboard")
async def post_styleboard(body: StyleboardCreate, store: RecordStore = Depends(get_record_store)):
    board = await create_styleboard(store, body.model_dump())
    return {"success": True, "data": board}


@router.post("/api/styleboard/send")
async def post_styleboard_link(
    body: StyleboardSendRequest,
    store: RecordStore = Depends(get_record_store),
    email: EmailService = Depends(get_email_service),
):
    result = await send_styleboard_link(store, email, body.styleboard_id)
    return {"success": True, "emailSent": result.email_sent, "styleboardLink": result.link}


@router.get("/api/styleboard/{styleboard_id}")
async def get_one_styleboard(
    styleboard_id: str,
    password: Optional[str] = Query(default=None),
    store: RecordStore = Depends(get_record_store),
):
    return {"success": True, "data": await get_styleboard(store, styleboard_id, password)}


@router.patch("/api/styleboard/{styleboard_id}")
async def patch_styleboard(
    styleboard_id: str, body: StyleboardUpdate, store: RecordStore = Depends(get_record_store)
):
    board = await update_styleboard(store, styleboard_id, body.model_dump(exclude_unset=True))
    return {"success": True, "data": board}


@router.delete("/api/styleboard/{styleboard_id}")
async def remove_styleboard(styleboard_id: str, store: RecordStore = Depends(get_record_store)):
    await delete_styleboard(store, styleboard_id)
    return {"success": True, "message": "스타일보드가 삭제되었습니다."}
