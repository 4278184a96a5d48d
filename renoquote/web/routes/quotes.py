"""Quote routes: CRUD, version history, rollback and delivery.

Routes:
- GET    /api/quotes/versions?quote_id= - Version history (newest first)
- POST   /api/quotes/versions           - Save the current quote as a version
- POST   /api/quotes/rollback           - Restore a quote to a saved version
- POST   /api/quotes/send               - E-mail a quote to the customer
- GET    /api/quotes/send?quote_id=     - Delivery attempts for a quote
- GET    /api/quotes                    - One quote (?id=) or a filtered list
- POST   /api/quotes                    - Create a quote
- PUT    /api/quotes                    - Update a quote (optionally replacing items)
- DELETE /api/quotes?id=                - Delete a quote
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from renoquote.notifications.email import EmailService
from renoquote.quotes.sending import list_send_logs, send_quote
from renoquote.quotes.service import create_quote, delete_quote, get_quote, list_quotes, update_quote
from renoquote.store import RecordStore
from renoquote.versioning.quotes import list_quote_versions, rollback_quote, snapshot_quote
from renoquote.web.dependencies import get_email_service, get_record_store
from renoquote.web.models import QuoteUpdate, QuoteVersionCreate, QuoteWrite, RollbackRequest, SendQuoteRequest

router = APIRouter(tags=["quotes"])


# ============================================================================
# Version History
# ============================================================================


@router.get("/api/quotes/versions")
async def get_quote_versions(quote_id: str = Query(...), store: RecordStore = Depends(get_record_store)):
    versions = await list_quote_versions(store, quote_id)
    return {"success": True, "data": versions}


@router.post("/api/quotes/versions")
async def save_quote_version(body: QuoteVersionCreate, store: RecordStore = Depends(get_record_store)):
    result = await snapshot_quote(store, body.quote_id, body.reason)
    message = f"버전 {result.version_number}이(가) 저장되었습니다."
    if not result.items_copied:
        message += " (항목 복사 실패)"
    return {
        "success": True,
        "data": result.to_dict(),
        "itemsCopied": result.items_copied,
        "message": message,
    }


@router.post("/api/quotes/rollback")
async def rollback(body: RollbackRequest, store: RecordStore = Depends(get_record_store)):
    quote = await rollback_quote(store, body.quote_id, body.version_id)
    return {"success": True, "data": quote, "message": "선택한 버전으로 롤백되었습니다."}


# ============================================================================
# Delivery
# ============================================================================


@router.post("/api/quotes/send")
async def post_send_quote(
    body: SendQuoteRequest,
    store: RecordStore = Depends(get_record_store),
    email: EmailService = Depends(get_email_service),
):
    result = await send_quote(
        store,
        email,
        body.quote_id,
        recipient_email=body.recipient_email,
        recipient_name=body.recipient_name,
        send_type=body.send_type,
        message=body.message,
    )
    return {
        "success": True,
        "message": "견적서가 발송되었습니다.",
        "data": {"quote": result.quote, "send_log": result.send_log},
    }


@router.get("/api/quotes/send")
async def get_send_logs(quote_id: str = Query(...), store: RecordStore = Depends(get_record_store)):
    return {"success": True, "data": await list_send_logs(store, quote_id)}


# ============================================================================
# Quote CRUD
# ============================================================================


@router.get("/api/quotes")
async def get_quotes(
    id: Optional[str] = Query(default=None),
    estimate_id: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    store: RecordStore = Depends(get_record_store),
):
    if id:
        return {"success": True, "data": await get_quote(store, id)}
    return {"success": True, "data": await list_quotes(store, estimate_id=estimate_id, status=status)}


@router.post("/api/quotes")
async def post_quote(body: QuoteWrite, store: RecordStore = Depends(get_record_store)):
    quote = await create_quote(store, body.payload(), body.items)
    return {"success": True, "data": quote}


@router.put("/api/quotes")
async def put_quote(body: QuoteUpdate, store: RecordStore = Depends(get_record_store)):
    quote = await update_quote(store, body.id, body.payload(), body.items)
    return {"success": True, "data": quote}


@router.delete("/api/quotes")
async def remove_quote(id: str = Query(...), store: RecordStore = Depends(get_record_store)):
    await delete_quote(store, id)
    return {"success": True, "message": "견적서가 삭제되었습니다."}
