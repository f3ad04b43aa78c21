"""Master test fixtures.

Environment variables are set BEFORE any application imports so that
``config.Settings()`` initialises with test-safe values and never
touches Docker secrets or a production database.
"""

import os

# ── Set test env vars before any app import ──────────────────────────
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite://",
    "DB_PASSWORD": "testpassword",
    "CORS_ORIGINS": "https://test.example.com",
})

import pytest

from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

# Now safe to import application code
from models import Database, StoredFile


PDF_BYTES = b"%PDF-1.4\n" + bytes(range(256)) * 64 + b"\n%%EOF\n"


@pytest.fixture
async def database(tmp_path):
    """A pool over a fresh SQLite file with the pdf_files table provisioned.

    A file (rather than ``:memory:``) gives each pooled connection its own
    handle, so concurrent requests behave like they would against a server.
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'pdf_store.db'}")
    async with db.engine.begin() as conn:
        await conn.run_sync(StoredFile.__table__.create)
    yield db
    await db.shutdown()


@pytest.fixture
async def unreachable_database(tmp_path):
    """A pool whose every connection attempt fails."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'pdf_store.db'}")
    yield db
    await db.shutdown()


async def _client_for(db: Database):
    """HTTPX async client wired to the FastAPI app with the given pool.

    The startup event is NOT run, so the pool is installed on app.state here.
    """
    from main import app

    app.state.database = db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    del app.state.database


@pytest.fixture
async def test_client(database: Database):
    async for ac in _client_for(database):
        yield ac


@pytest.fixture
async def offline_client(unreachable_database: Database):
    """Client whose database is down."""
    async for ac in _client_for(unreachable_database):
        yield ac


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def row_count(database: Database):
    """Async callable returning how many rows pdf_files holds."""

    async def _count() -> int:
        async with database.session() as session:
            result = await session.execute(select(func.count()).select_from(StoredFile))
            return result.scalar_one()

    return _count
