"""Health check API routes.

Provides endpoints for monitoring application health and store connectivity.
"""

from fastapi import APIRouter, Depends, status

from renoquote.errors import StoreError
from renoquote.store import RecordStore
from renoquote.web.dependencies import get_record_store

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(store: RecordStore = Depends(get_record_store)):
    """Check application health.

    Runs a trivial read against the record store.
    """
    try:
        await store.fetch_many("labor_prices", limit=1)
    except StoreError as e:
        return {"status": "error", "store": store.backend, "detail": e.message}
    return {"status": "ok", "store": store.backend, "persistent": store.is_persistent}
