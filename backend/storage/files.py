"""Queries against the pdf_files table.

Every function issues exactly one statement on the caller's session.
Driver and pool failures (including an unreachable server) surface as
StorageError so the HTTP layer can render a 500 instead of crashing.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from errors import StorageError
from models import StoredFile

logger = logging.getLogger(__name__)

# asyncpg raises plain OSError subclasses when the server can't be reached
DATABASE_ERRORS = (SQLAlchemyError, OSError)


@dataclass
class StoredFileRecord:
    """File metadata without the payload."""

    id: int
    filename: str
    uploaded_at: datetime


async def insert_file(db: AsyncSession, filename: str, data: bytes) -> StoredFileRecord:
    """Insert a file and commit. The database assigns id and uploaded_at.

    Args:
        db: Database session.
        filename: Client-supplied name, stored as-is.
        data: Raw PDF bytes.

    Returns:
        The generated id, the stored filename and the insert timestamp.

    Raises:
        StorageError: If the insert or commit fails.
    """
    try:
        result = await db.execute(
            insert(StoredFile)
            .values(filename=filename, file_data=data)
            .returning(StoredFile.id, StoredFile.filename, StoredFile.uploaded_at)
        )
        row = result.one()
        await db.commit()
    except DATABASE_ERRORS as e:
        logger.error(f"Upload error details: {e}")
        raise StorageError("Failed to upload PDF", details=str(e)) from e
    return StoredFileRecord(id=row.id, filename=row.filename, uploaded_at=row.uploaded_at)


async def get_file(db: AsyncSession, file_id: int) -> tuple[str, bytes] | None:
    """Return (filename, data) for an id, or None if no such row exists."""
    try:
        result = await db.execute(
            select(StoredFile.filename, StoredFile.file_data).where(StoredFile.id == file_id)
        )
        row = result.one_or_none()
    except DATABASE_ERRORS as e:
        logger.error(f"Download error: {e}")
        raise StorageError("Failed to download PDF") from e
    if row is None:
        return None
    return row.filename, bytes(row.file_data)


async def list_files(db: AsyncSession) -> list[StoredFileRecord]:
    """All file metadata, most recent first. Equal timestamps fall back to newest id."""
    try:
        result = await db.execute(
            select(StoredFile.id, StoredFile.filename, StoredFile.uploaded_at)
            .order_by(StoredFile.uploaded_at.desc(), StoredFile.id.desc())
        )
        rows = result.all()
    except DATABASE_ERRORS as e:
        logger.error(f"Files list error: {e}")
        raise StorageError("Failed to retrieve files list") from e
    return [StoredFileRecord(id=r.id, filename=r.filename, uploaded_at=r.uploaded_at) for r in rows]


async def database_time(db: AsyncSession) -> datetime:
    """Round-trip to the server and return its current time."""
    try:
        result = await db.execute(select(func.now()))
        return result.scalar_one()
    except DATABASE_ERRORS as e:
        raise StorageError("Database connection failed", details=str(e)) from e
