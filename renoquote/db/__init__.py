"""Database layer for RenoQuote with async SQLAlchemy."""

from renoquote.db.connection import close_db, get_engine, get_session_factory, init_db
from renoquote.db.models import (
    Base,
    CompositePriceModel,
    ContractModel,
    ContractVersionModel,
    EstimateRequestModel,
    ExtractedItemModel,
    LaborPriceModel,
    MaterialPriceModel,
    QuoteItemModel,
    QuoteModel,
    QuoteVersionItemModel,
    QuoteVersionModel,
)

__all__ = [
    "Base",
    "EstimateRequestModel",
    "ExtractedItemModel",
    "MaterialPriceModel",
    "LaborPriceModel",
    "CompositePriceModel",
    "QuoteModel",
    "QuoteItemModel",
    "QuoteVersionModel",
    "QuoteVersionItemModel",
    "ContractModel",
    "ContractVersionModel",
    "close_db",
    "get_engine",
    "get_session_factory",
    "init_db",
]
