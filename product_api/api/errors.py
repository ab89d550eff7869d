"""Process-wide error handling.

Every failure that escapes a route ends up here and is rendered as
``{"status": <code>, "message": <text>}``. Unmatched routes produce 404,
anything without a more specific status produces 500. In the dev
environment the exception type is added under ``error``.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from product_api.config import get_environment
from product_api.services import ProductStoreError

logger = logging.getLogger(__name__)


def render_error(
    status_code: int,
    message: str,
    exc: Optional[BaseException] = None,
    extra: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Build the error response for a status and message."""
    content: dict[str, Any] = {"status": status_code, "message": message}
    if extra:
        content.update(extra)
    if exc is not None and get_environment() == "dev":
        content["error"] = type(exc).__name__
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def product_store_exception_handler(request: Request, exc: ProductStoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc}", exc_info=exc)
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc}")
    return render_error(exc.status_code, str(exc), exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return render_error(exc.status_code, str(exc.detail), exc, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> 422: invalid request")
    return render_error(
        422,
        "Validation error",
        exc,
        extra={"errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return render_error(500, "Internal Server Error", exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the handlers above to an application."""
    app.add_exception_handler(ProductStoreError, product_store_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
