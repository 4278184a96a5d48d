"""Error taxonomy shared by services, stores and HTTP handlers.

Every error carries the HTTP status its handler should answer with; the web
layer turns them into ``{"success": false, "error": message}`` payloads.
"""

from __future__ import annotations


class RenoQuoteError(Exception):
    """Base class for expected, user-reportable failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RenoQuoteError):
    """Required field missing or malformed."""

    status_code = 400


class NotFoundError(RenoQuoteError):
    """Referenced entity does not exist."""

    status_code = 404

    def __init__(self, entity: str, identity: object):
        super().__init__(f"{entity} not found: {identity}")
        self.entity = entity
        self.identity = identity


class ConflictError(RenoQuoteError):
    """Requested transition is not allowed from the current state."""

    status_code = 409


class StoreError(RenoQuoteError):
    """Underlying record store operation failed."""

    status_code = 500

    def __init__(self, operation: str, table: str, detail: str):
        super().__init__(f"Store {operation} on {table} failed: {detail}")
        self.operation = operation
        self.table = table
        self.detail = detail


class UnconfiguredStoreError(RenoQuoteError):
    """No database is configured (DATABASE_URL unset)."""

    status_code = 503


class AccessDeniedError(RenoQuoteError):
    """Customer-facing resource opened with the wrong password."""

    status_code = 401


class DeliveryError(RenoQuoteError):
    """Outbound mail could not be delivered."""

    status_code = 502
