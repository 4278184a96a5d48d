"""FastAPI application for the RenoQuote API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from renoquote import __version__
from renoquote.config import get_config
from renoquote.core.logging import configure_logging
from renoquote.db.connection import close_db
from renoquote.store import get_record_store
from renoquote.web.errors import register_exception_handlers
from renoquote.web.routes import contracts, estimates, health, market_pricing, pricing, quotes, styleboards

logger = structlog.get_logger()


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise

        logger.info("request_completed", status_code=response.status_code)
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = get_record_store()
    logger.info("app_started", store=store.backend)
    yield
    await store.close()
    await close_db()
    logger.info("app_stopped")


def create_app() -> FastAPI:
    """Build the API application with middleware, metrics, handlers and routers."""
    configure_logging()
    config = get_config()

    app = FastAPI(
        title="RenoQuote API",
        description="Estimate intake, quoting and contract signing for home renovation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in config.cors_origins.split(",") if origin.strip()],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prometheus Metrics
    Instrumentator().instrument(app).expose(app)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(market_pricing.router)
    app.include_router(pricing.router)
    app.include_router(quotes.router)
    app.include_router(contracts.router)
    app.include_router(estimates.router)
    app.include_router(styleboards.router)

    return app


app = create_app()
