"""Shared Pydantic request models for the RenoQuote API.

Field names follow the wire format the web clients send: snake_case for
admin endpoints, camelCase aliases where the public forms send them.

Usage:
    from renoquote.web.models import SetStandardRequest

    @router.post("/api/market-pricing/set-standard")
    async def set_standard(body: SetStandardRequest):
        ...
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Market Pricing Models
# ============================================================================


class SetStandardRequest(BaseModel):
    """Used by: POST /api/market-pricing/set-standard"""

    model_config = ConfigDict(populate_by_name=True)

    item_ids: list[str] = Field(alias="itemIds", min_length=1)


class VerifyRequest(BaseModel):
    """Used by: POST /api/market-pricing/verify"""

    id: str
    verified: bool


class ExtractedItemCreate(BaseModel):
    """Used by: POST /api/market-pricing"""

    file_id: Optional[str] = None
    category: str
    sub_category: Optional[str] = None
    detail_category: Optional[str] = None
    normalized_item_name: str
    original_item_name: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    product_grade: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[float] = None
    unit_price: Optional[int] = None
    total_price: Optional[int] = None
    notes: Optional[str] = None
    confidence_score: float = 0.0


# ============================================================================
# Quote Models
# ============================================================================


class QuoteWrite(BaseModel):
    """Quote fields plus an optional full replacement item list.

    Used by: POST /api/quotes
    """

    model_config = ConfigDict(extra="allow")

    items: Optional[list[dict[str, Any]]] = None

    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude={"id", "items"})


class QuoteUpdate(QuoteWrite):
    """Used by: PUT /api/quotes"""

    id: str


class QuoteVersionCreate(BaseModel):
    """Used by: POST /api/quotes/versions"""

    quote_id: str
    reason: Optional[str] = None


class RollbackRequest(BaseModel):
    """Used by: POST /api/quotes/rollback"""

    quote_id: str
    version_id: str


class SendQuoteRequest(BaseModel):
    """Used by: POST /api/quotes/send"""

    quote_id: str
    send_type: str = "email"
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    message: Optional[str] = None


# ============================================================================
# Contract Models
# ============================================================================


class ContractWrite(BaseModel):
    """Used by: POST /api/contracts"""

    model_config = ConfigDict(extra="allow")

    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude={"id"})


class ContractUpdate(ContractWrite):
    """Used by: PUT /api/contracts"""

    id: str


class SignContractRequest(BaseModel):
    """Used by: POST /api/contracts/sign"""

    contract_id: str
    signature_data: str = Field(min_length=1)


# ============================================================================
# Estimate Request Models
# ============================================================================


class EstimateCreate(BaseModel):
    """Landing page form. Used by: POST /api/estimates"""

    model_config = ConfigDict(populate_by_name=True)

    complex_name: Optional[str] = Field(default=None, alias="complexName")
    size: Optional[str] = None
    floor_type: Optional[str] = Field(default=None, alias="floorType")
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    wants_construction: bool = Field(default=False, alias="wantsConstruction")
    construction_scope: list[str] = Field(default_factory=list, alias="constructionScope")


class EstimateUpdate(BaseModel):
    """Used by: PATCH /api/estimates/{id}"""

    status: Optional[str] = None
    notes: Optional[str] = None


# ============================================================================
# Style Board Models
# ============================================================================


class StyleboardCreate(BaseModel):
    """Used by: POST /api/styleboard"""

    estimate_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    password: Optional[str] = None


class StyleboardUpdate(BaseModel):
    """Used by: PATCH /api/styleboard/{id}"""

    password: Optional[str] = None
    selected_images: Optional[dict[str, Any]] = None
    save: bool = False
    link_sent: Optional[bool] = None


class StyleboardSendRequest(BaseModel):
    """Used by: POST /api/styleboard/send"""

    model_config = ConfigDict(populate_by_name=True)

    styleboard_id: str = Field(alias="styleboardId")
