"""Map domain and Protean exceptions onto JSON error envelopes.

Every error response has the shape ``{"error": {"code", "message", "details"}}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.errors import MarketplaceError

logger = structlog.get_logger(__name__)


def _envelope(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    log = logger.error if exc.http_status >= 500 else logger.info
    log("api.request_failed", path=request.url.path, code=exc.code, message=exc.message)
    return _envelope(exc.http_status, exc.code, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("api.validation_failed", path=request.url.path, messages=exc.messages)
    return _envelope(400, "VALIDATION_ERROR", "request failed validation", exc.messages)


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _envelope(404, "NOT_FOUND", str(exc) or "not found")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
