"""PDF upload, download and listing endpoints.

POST /upload        : Store one PDF sent as multipart field "pdf"
GET  /download/{id} : Return the stored bytes as an attachment
GET  /files         : List stored file metadata, newest first
"""

import re
import logging
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from errors import NotFoundError, PayloadTooLargeError, ValidationError
from models import get_db
from storage.files import get_file, insert_file, list_files

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])

PDF_MEDIA_TYPE = "application/pdf"
UPLOAD_FIELD = "pdf"
READ_CHUNK_SIZE = 64 * 1024
MAX_FILE_ID = 2**31 - 1  # PostgreSQL integer primary key
FALLBACK_FILENAME = "download.pdf"

_FILE_ID_RE = re.compile(r"[0-9]+")


class UploadedFile(BaseModel):
    id: int
    filename: str
    uploaded_at: datetime
    size: int


class UploadResponse(BaseModel):
    message: str
    file: UploadedFile


class FileListItem(BaseModel):
    id: int
    filename: str
    uploaded_at: datetime


class FileListResponse(BaseModel):
    files: list[FileListItem]


@dataclass
class ReceivedPdf:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def _is_pdf(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() == PDF_MEDIA_TYPE


async def _read_limited(file: UploadFile, limit: int) -> bytes:
    """Read an upload in chunks, failing as soon as it grows past limit."""
    chunks = []
    received = 0
    while True:
        chunk = await file.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        received += len(chunk)
        if received > limit:
            raise PayloadTooLargeError(
                f"File too large. Maximum size is {limit // (1024 * 1024)}MB."
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def pdf_upload(pdf: UploadFile | None = File(None)) -> ReceivedPdf | None:
    """Filter stage for uploads: wrong type or oversized parts never reach the handler."""
    if pdf is None:
        return None
    if not _is_pdf(pdf.content_type):
        raise ValidationError("Only PDF files are allowed")
    try:
        data = await _read_limited(pdf, settings.max_upload_bytes)
    finally:
        await pdf.close()
    return ReceivedPdf(
        filename=pdf.filename or "unknown.pdf",
        content_type=pdf.content_type,
        data=data,
    )


def content_disposition(filename: str) -> str:
    """Build an attachment header value that can't break out of its quotes.

    Control characters, quotes and backslashes are dropped from the plain
    ``filename`` parameter. Names with non-ASCII characters also get an
    RFC 5987 ``filename*`` parameter carrying the full name percent-encoded.
    """
    printable = "".join(ch for ch in filename if ch.isprintable())
    fallback = "".join(ch for ch in printable if ord(ch) < 128 and ch not in '"\\').strip()
    value = f'attachment; filename="{fallback or FALLBACK_FILENAME}"'
    if any(ord(ch) >= 128 for ch in printable):
        value += f"; filename*=utf-8''{quote(printable, safe='')}"
    return value


@router.post("/upload", response_model=UploadResponse)
async def upload_pdf(
    upload: ReceivedPdf | None = Depends(pdf_upload),
    db: AsyncSession = Depends(get_db),
):
    """Store an uploaded PDF and return its generated id."""
    logger.info("Upload endpoint hit")
    if upload is None:
        raise ValidationError(
            f'No PDF file uploaded. Make sure to use form-data with field name "{UPLOAD_FIELD}"'
        )

    logger.info(f"File details: {upload.filename}, {upload.content_type}, {upload.size} bytes")

    if not _is_pdf(upload.content_type):
        raise ValidationError("Only PDF files are allowed")

    record = await insert_file(db, upload.filename, upload.data)
    logger.info(f"PDF uploaded successfully with ID: {record.id}")

    return UploadResponse(
        message="PDF uploaded successfully",
        file=UploadedFile(
            id=record.id,
            filename=record.filename,
            uploaded_at=record.uploaded_at,
            size=upload.size,
        ),
    )


@router.get("/download/{file_id}")
async def download_pdf(file_id: str, db: AsyncSession = Depends(get_db)):
    """Send a stored PDF as an attachment."""
    if not _FILE_ID_RE.fullmatch(file_id) or int(file_id) > MAX_FILE_ID:
        raise ValidationError("Invalid file ID")

    result = await get_file(db, int(file_id))
    if result is None:
        raise NotFoundError("File not found")

    filename, data = result
    return Response(
        content=data,
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.get("/files", response_model=FileListResponse)
async def list_pdfs(db: AsyncSession = Depends(get_db)):
    """List every stored file, most recent upload first."""
    records = await list_files(db)
    return FileListResponse(
        files=[
            FileListItem(id=r.id, filename=r.filename, uploaded_at=r.uploaded_at)
            for r in records
        ]
    )
