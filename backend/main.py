"""PDF store FastAPI application."""

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import files, status
from config import HOST, PORT, settings
from errors import register_exception_handlers
from middleware import MULTIPART_OVERHEAD_BYTES, CatchAllExceptionMiddleware, RequestSizeLimitMiddleware
from models import Database

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="PDF Store API", version="1.0.0")

app.add_middleware(
    RequestSizeLimitMiddleware,
    max_bytes=settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES,
)
app.add_middleware(CatchAllExceptionMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(files.router)
app.include_router(status.router)


@app.on_event("startup")
async def startup():
    """Create the connection pool shared by every request."""
    logger.info(f"Creating database pool for {settings.safe_database_url}")
    app.state.database = Database(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
    )
    logger.info(f"PDF API server is running on port {PORT}")
    logger.info(f"Status: http://localhost:{PORT}/status")


@app.on_event("shutdown")
async def shutdown():
    """Close pooled connections. Requests still in flight are not awaited."""
    logger.info("Shutting down gracefully...")
    database = getattr(app.state, "database", None)
    if database is not None:
        await database.shutdown()


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
