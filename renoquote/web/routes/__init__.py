"""RenoQuote API route modules.

Each module exports a `router` object (APIRouter instance); the app factory in
renoquote.web.app includes them. Shared dependencies live in
renoquote.web.dependencies and request models in renoquote.web.models.

Usage:
    from renoquote.web.routes import quotes
    app.include_router(quotes.router)
"""

from renoquote.web.routes import (
    contracts,
    estimates,
    health,
    market_pricing,
    pricing,
    quotes,
    styleboards,
)

__all__ = [
    "contracts",
    "estimates",
    "health",
    "market_pricing",
    "pricing",
    "quotes",
    "styleboards",
]
