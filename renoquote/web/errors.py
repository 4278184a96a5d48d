"""Exception handlers mapping errors to ``{"success": false, "error": ...}`` responses."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from renoquote.errors import RenoQuoteError

logger = structlog.get_logger()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RenoQuoteError)
    async def renoquote_error_handler(request: Request, exc: RenoQuoteError):
        if exc.status_code >= 500:
            logger.error("request_error", path=request.url.path, error=exc.message)
        else:
            logger.info("request_rejected", path=request.url.path, status_code=exc.status_code, error=exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(400, _describe_validation_error(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("request_crashed", path=request.url.path)
        return error_response(500, "Internal server error")
