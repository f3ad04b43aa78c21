"""Error taxonomy and the handlers that render it as JSON.

Every error response carries an ``error`` field. Handlers raise one of the
classes below and the status code is decided here, not at the raise site.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PdfStoreError(Exception):
    """Base error carrying a client-facing message and an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(PdfStoreError):
    """Bad or missing client input."""

    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLargeError(ValidationError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE


class NotFoundError(PdfStoreError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageError(PdfStoreError):
    """Database unreachable or a query failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ConfigurationError(PdfStoreError):
    """Invalid environment configuration. Raised at startup, never rendered."""


def error_body(message: str, details: str | None = None) -> dict:
    body = {"error": message}
    if details:
        body["details"] = details
    return body


async def handle_pdf_store_error(request: Request, exc: PdfStoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} on {request.url.path} ({exc.status_code}): "
            f"{exc.message} {exc.details or ''}".rstrip()
        )
    else:
        logger.warning(f"{type(exc).__name__} on {request.url.path} ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    logger.warning(f"Request validation failed on {request.url.path}: {messages}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request", messages),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy (and framework errors) to JSON responses."""
    app.add_exception_handler(PdfStoreError, handle_pdf_store_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
