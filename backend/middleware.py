"""ASGI middleware: request size filter and last-resort error handler."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from errors import error_body

logger = logging.getLogger(__name__)

# Boundaries and part headers on top of the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds max_bytes."""

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request, call_next):
        length = request.headers.get("content-length")
        try:
            size = int(length) if length is not None else None
        except ValueError:
            size = None
        if size is not None and size > self.max_bytes:
            logger.warning(f"Rejected {request.url.path}: {size} bytes exceeds {self.max_bytes}")
            return JSONResponse(
                status_code=413,
                content=error_body("Request body exceeds allowed size"),
            )
        return await call_next(request)


class CatchAllExceptionMiddleware(BaseHTTPMiddleware):
    """Turn any exception that escaped the handlers into a JSON 500."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(f"{type(exc).__name__} on {request.url.path} (500): {exc}", exc_info=True)
            return JSONResponse(status_code=500, content=error_body("Internal server error"))
