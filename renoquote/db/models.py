"""SQLAlchemy async database models for RenoQuote.

One table per entity. Column defaults are Python-side so that the in-memory
record store can apply exactly the same defaults as the database.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class EstimateRequestModel(Base):
    """Customer estimate request from the landing page form."""

    __tablename__ = "estimate_requests"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    complex_name: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[str] = mapped_column(Text, nullable=False)
    floor_type: Mapped[str | None] = mapped_column(Text)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text)
    wants_construction: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    construction_scope: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending", index=True)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'contacted', 'completed', 'cancelled')",
            name="check_estimate_status",
        ),
    )


class ExtractedItemModel(Base):
    """Line item mechanically extracted from an uploaded estimate document.

    Not trusted as a pricing source until promoted into ``material_prices``.
    """

    __tablename__ = "extracted_estimate_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    file_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), index=True)

    # Category hierarchy
    category: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    sub_category: Mapped[str | None] = mapped_column(Text)
    detail_category: Mapped[str | None] = mapped_column(Text)

    # Names: original as written in the document, normalized for lookup
    original_item_name: Mapped[str | None] = mapped_column(Text)
    normalized_item_name: Mapped[str] = mapped_column(Text, nullable=False)

    # Product
    brand: Mapped[str | None] = mapped_column(Text)
    model: Mapped[str | None] = mapped_column(Text)
    product_grade: Mapped[str | None] = mapped_column(Text)

    # Pricing (any of unit_price / total_price may be missing)
    unit: Mapped[str | None] = mapped_column(Text)
    quantity: Mapped[float | None] = mapped_column(Float)
    unit_price: Mapped[int | None] = mapped_column(BigInteger)
    total_price: Mapped[int | None] = mapped_column(BigInteger)
    notes: Mapped[str | None] = mapped_column(Text)

    confidence_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_extracted_category_name", "category", "normalized_item_name"),
    )


class MaterialPriceModel(Base):
    """Standard price catalog entry: trusted unit price per (category, product_name)."""

    __tablename__ = "material_prices"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    category: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    sub_category: Mapped[str | None] = mapped_column(Text)
    detail_category: Mapped[str | None] = mapped_column(Text)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    brand: Mapped[str | None] = mapped_column(Text)
    model: Mapped[str | None] = mapped_column(Text)
    size: Mapped[str | None] = mapped_column(Text)
    product_grade: Mapped[str] = mapped_column(Text, nullable=False, default="일반")
    unit: Mapped[str] = mapped_column(Text, nullable=False, default="개")
    unit_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    price_includes_install: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    price_date: Mapped[date | None] = mapped_column(Date)
    source: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="check_material_price_non_negative"),
        # One live catalog entry per key
        UniqueConstraint("category", "product_name", name="uq_material_category_product"),
    )


class LaborPriceModel(Base):
    """Daily labor rate per trade."""

    __tablename__ = "labor_prices"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    labor_type: Mapped[str] = mapped_column(Text, nullable=False)
    labor_type_en: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    daily_rate: Mapped[int] = mapped_column(BigInteger, nullable=False)
    hourly_rate: Mapped[int | None] = mapped_column(BigInteger)
    min_work_hours: Mapped[float | None] = mapped_column(Float)
    overtime_rate: Mapped[float | None] = mapped_column(Float)
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class CompositePriceModel(Base):
    """Combined labor + material unit cost (e.g. tiling per m2)."""

    __tablename__ = "composite_prices"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    cost_name: Mapped[str] = mapped_column(Text, nullable=False)
    cost_name_en: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    sub_category: Mapped[str | None] = mapped_column(Text)
    unit: Mapped[str] = mapped_column(Text, nullable=False)
    unit_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    labor_ratio: Mapped[float | None] = mapped_column(Float)
    material_ratio: Mapped[float | None] = mapped_column(Float)
    min_quantity: Mapped[float | None] = mapped_column(Float)
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class QuoteModel(Base):
    """Customer-facing estimate with aggregate amounts."""

    __tablename__ = "quotes"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    estimate_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), index=True)
    quote_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # Customer / property
    customer_name: Mapped[str | None] = mapped_column(Text)
    customer_email: Mapped[str | None] = mapped_column(Text)
    customer_phone: Mapped[str | None] = mapped_column(Text)
    property_address: Mapped[str | None] = mapped_column(Text)
    property_size: Mapped[float | None] = mapped_column(Float)

    # Amounts (KRW)
    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    labor_cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    material_cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    other_cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    discount_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    discount_reason: Mapped[str | None] = mapped_column(Text)
    vat_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    final_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft", index=True)
    notes: Mapped[str | None] = mapped_column(Text)
    calculation_comment: Mapped[str | None] = mapped_column(Text)
    valid_until: Mapped[date | None] = mapped_column(Date)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class QuoteItemModel(Base):
    """Line item owned by a quote."""

    __tablename__ = "quote_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    quote_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category: Mapped[str] = mapped_column(Text, nullable=False)
    sub_category: Mapped[str | None] = mapped_column(Text)
    item_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    size: Mapped[str | None] = mapped_column(Text)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    unit: Mapped[str | None] = mapped_column(Text)
    unit_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    cost_type: Mapped[str] = mapped_column(Text, nullable=False, default="material")
    labor_ratio: Mapped[float | None] = mapped_column(Float)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Back-reference to the catalog entry the price came from
    reference_type: Mapped[str | None] = mapped_column(Text)
    reference_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class QuoteSendLogModel(Base):
    """One delivery attempt of a quote to a customer, successful or not."""

    __tablename__ = "quote_send_logs"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    # No foreign key: the delivery record is kept when the quote is deleted
    quote_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    recipient_email: Mapped[str] = mapped_column(Text, nullable=False)
    recipient_name: Mapped[str | None] = mapped_column(Text)
    send_type: Mapped[str] = mapped_column(Text, nullable=False, default="email")
    status: Mapped[str] = mapped_column(Text, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        CheckConstraint("status IN ('sent', 'failed')", name="check_quote_send_status"),
    )


class QuoteVersionModel(Base):
    """Immutable snapshot of a quote. Append-only."""

    __tablename__ = "quote_versions"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    # No foreign key: history outlives the quote it was taken from
    quote_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    quote_number: Mapped[str] = mapped_column(Text, nullable=False)
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    saved_reason: Mapped[str | None] = mapped_column(Text)

    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    labor_cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    material_cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    other_cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    discount_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    discount_reason: Mapped[str | None] = mapped_column(Text)
    vat_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    final_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    notes: Mapped[str | None] = mapped_column(Text)
    calculation_comment: Mapped[str | None] = mapped_column(Text)
    valid_until: Mapped[date | None] = mapped_column(Date)

    customer_name: Mapped[str | None] = mapped_column(Text)
    customer_email: Mapped[str | None] = mapped_column(Text)
    customer_phone: Mapped[str | None] = mapped_column(Text)
    property_address: Mapped[str | None] = mapped_column(Text)
    property_size: Mapped[float | None] = mapped_column(Float)

    __table_args__ = (
        UniqueConstraint("quote_id", "version_number", name="uq_quote_version_number"),
        CheckConstraint("version_number >= 1", name="check_quote_version_positive"),
    )


class QuoteVersionItemModel(Base):
    """Item copy owned by exactly one quote version."""

    __tablename__ = "quote_version_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    version_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("quote_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(Text, nullable=False)
    sub_category: Mapped[str | None] = mapped_column(Text)
    item_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    size: Mapped[str | None] = mapped_column(Text)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    unit: Mapped[str | None] = mapped_column(Text)
    unit_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    cost_type: Mapped[str] = mapped_column(Text, nullable=False, default="material")
    labor_ratio: Mapped[float | None] = mapped_column(Float)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reference_type: Mapped[str | None] = mapped_column(Text)
    reference_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class ContractModel(Base):
    """Construction contract signed online by the customer."""

    __tablename__ = "contracts"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    quote_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), index=True)
    contract_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    access_code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # Customer
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(Text)
    customer_email: Mapped[str | None] = mapped_column(Text)
    customer_address: Mapped[str | None] = mapped_column(Text)

    # Construction
    property_address: Mapped[str | None] = mapped_column(Text)
    construction_start_date: Mapped[date | None] = mapped_column(Date)
    construction_end_date: Mapped[date | None] = mapped_column(Date)

    # Payment schedule (KRW)
    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    deposit_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    deposit_due_date: Mapped[date | None] = mapped_column(Date)
    mid_payment_1: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mid_payment_1_due_date: Mapped[date | None] = mapped_column(Date)
    mid_payment_2: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mid_payment_2_due_date: Mapped[date | None] = mapped_column(Date)
    final_payment: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    final_payment_due_date: Mapped[date | None] = mapped_column(Date)

    # Lifecycle
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending", index=True)
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    customer_signature_url: Mapped[str | None] = mapped_column(Text)
    company_stamp_url: Mapped[str | None] = mapped_column(Text)

    contract_content: Mapped[str | None] = mapped_column(Text)
    special_terms: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'signed', 'cancelled')", name="check_contract_status"
        ),
    )


class ContractVersionModel(Base):
    """Immutable snapshot of a contract taken at signature time."""

    __tablename__ = "contract_versions"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    # No foreign key: history outlives the contract it was taken from
    contract_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)

    quote_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True))
    contract_number: Mapped[str] = mapped_column(Text, nullable=False)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(Text)
    customer_email: Mapped[str | None] = mapped_column(Text)
    customer_address: Mapped[str | None] = mapped_column(Text)
    property_address: Mapped[str | None] = mapped_column(Text)
    construction_start_date: Mapped[date | None] = mapped_column(Date)
    construction_end_date: Mapped[date | None] = mapped_column(Date)
    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    deposit_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    deposit_due_date: Mapped[date | None] = mapped_column(Date)
    mid_payment_1: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mid_payment_1_due_date: Mapped[date | None] = mapped_column(Date)
    mid_payment_2: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mid_payment_2_due_date: Mapped[date | None] = mapped_column(Date)
    final_payment: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    final_payment_due_date: Mapped[date | None] = mapped_column(Date)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    customer_signature_url: Mapped[str | None] = mapped_column(Text)
    contract_content: Mapped[str | None] = mapped_column(Text)
    special_terms: Mapped[str | None] = mapped_column(Text)
    saved_reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("contract_id", "version_number", name="uq_contract_version_number"),
    )


class StyleboardModel(Base):
    """Customer style board: images picked per space and sub category.

    ``selected_images`` maps space -> sub category -> image paths, e.g.
    ``{"living": {"lighting": ["living/lighting/01.jpg"]}}``.
    """

    __tablename__ = "customer_styleboards"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    estimate_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("estimate_requests.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_phone: Mapped[str] = mapped_column(Text, nullable=False)
    customer_email: Mapped[str | None] = mapped_column(Text)
    password: Mapped[str] = mapped_column(Text, nullable=False)

    selected_images: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    link_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    link_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    saved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_modified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
