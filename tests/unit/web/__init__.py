"""Unit tests for RenoQuote web route modules.

Each route module has a corresponding test file.

Structure:
    tests/unit/web/
    ├── test_routes_market_pricing.py  # Extracted items, promotion, verification
    ├── test_routes_quotes.py          # Quote CRUD, versions, rollback
    ├── test_routes_contracts.py       # Contract CRUD and signing
    ├── test_routes_estimates.py       # Estimate requests
    └── test_routes_pricing_health.py  # Catalog listing and health check

Testing pattern:
    - Mount the router under test on a bare FastAPI app
    - Override dependencies with an in-memory record store
    - Test request/response validation and the error envelope
"""
