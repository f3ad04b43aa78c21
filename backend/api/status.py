"""Service health endpoint.

Always answers 200: an unreachable database is reported in the body, not as
an HTTP failure.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from errors import StorageError
from models import get_db
from storage.files import database_time

logger = logging.getLogger(__name__)

router = APIRouter(tags=["status"])


class DatabaseStatus(BaseModel):
    status: str
    current_time: datetime | None = None
    error: str | None = None


class StatusResponse(BaseModel):
    status: str
    message: str
    timestamp: str
    database: DatabaseStatus
    error: str | None = None


@router.get("/status", response_model=StatusResponse, response_model_exclude_none=True)
async def service_status(db: AsyncSession = Depends(get_db)):
    """Report liveness and whether the database answers a round-trip."""
    try:
        current_time = await database_time(db)
    except StorageError as e:
        error = e.details or e.message
        logger.warning(f"Status check: database unreachable: {error}")
        return StatusResponse(
            status="running",
            message="PDF API is running but database connection failed",
            timestamp=datetime.now(timezone.utc).isoformat(),
            database=DatabaseStatus(status="disconnected", error=error),
            error=error,
        )

    return StatusResponse(
        status="running",
        message="PDF API is running successfully",
        timestamp=datetime.now(timezone.utc).isoformat(),
        database=DatabaseStatus(status="connected", current_time=current_time),
    )
