"""Contract routes.

Routes:
- GET    /api/contracts/versions?contract_id= - Contract version history
- POST   /api/contracts/sign                  - Customer signature
- GET    /api/contracts                       - By ?access_code=, by ?id=, or list (?status=)
- POST   /api/contracts                       - Create a pending contract
- PUT    /api/contracts                       - Update / cancel a contract
- DELETE /api/contracts?id=                   - Delete a contract
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from renoquote.contracts.service import (
    create_contract,
    delete_contract,
    get_contract,
    get_contract_by_access_code,
    list_contracts,
    sign_contract,
    update_contract,
)
from renoquote.integrations.object_storage import ObjectStorage
from renoquote.store import RecordStore
from renoquote.versioning.contracts import list_contract_versions
from renoquote.web.dependencies import get_object_storage, get_record_store
from renoquote.web.models import ContractUpdate, ContractWrite, SignContractRequest

router = APIRouter(tags=["contracts"])


# ============================================================================
# Signing & History
# ============================================================================


@router.post("/api/contracts/sign")
async def sign(
    body: SignContractRequest,
    store: RecordStore = Depends(get_record_store),
    storage: ObjectStorage = Depends(get_object_storage),
):
    contract = await sign_contract(store, storage, body.contract_id, body.signature_data)
    return {"success": True, "data": contract, "message": "계약서 서명이 완료되었습니다."}


@router.get("/api/contracts/versions")
async def get_contract_versions(contract_id: str = Query(...), store: RecordStore = Depends(get_record_store)):
    return {"success": True, "data": await list_contract_versions(store, contract_id)}


# ============================================================================
# Contract CRUD
# ============================================================================


@router.get("/api/contracts")
async def get_contracts(
    id: Optional[str] = Query(default=None),
    access_code: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    store: RecordStore = Depends(get_record_store),
):
    if access_code:
        return {"success": True, "data": await get_contract_by_access_code(store, access_code)}
    if id:
        return {"success": True, "data": await get_contract(store, id)}
    return {"success": True, "data": await list_contracts(store, status)}


@router.post("/api/contracts")
async def post_contract(body: ContractWrite, store: RecordStore = Depends(get_record_store)):
    contract = await create_contract(store, body.payload())
    return {
        "success": True,
        "data": contract,
        "message": f"계약서가 생성되었습니다. 접근코드: {contract['access_code']}",
    }


@router.put("/api/contracts")
async def put_contract(body: ContractUpdate, store: RecordStore = Depends(get_record_store)):
    contract = await update_contract(store, body.id, body.payload())
    return {"success": True, "data": contract}


@router.delete("/api/contracts")
async def remove_contract(id: str = Query(...), store: RecordStore = Depends(get_record_store)):
    await delete_contract(store, id)
    return {"success": True, "message": "계약서가 삭제되었습니다."}
