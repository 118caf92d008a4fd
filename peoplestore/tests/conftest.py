import os
import sys
from pathlib import Path
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Point at a PostgreSQL database to run the suite against the real engine
TEST_DATABASE_URL = os.getenv('PEOPLESTORE_TEST_DATABASE_URL', 'sqlite+aiosqlite:///:memory:')

# Ensure the package root is on sys.path when pytest changes CWD to this tests dir
HERE = Path(__file__).resolve()
PKG_ROOT = HERE.parents[2]
if str(PKG_ROOT) not in sys.path:
    sys.path.insert(0, str(PKG_ROOT))

from peoplestore.models import Database  # noqa: E402
from peoplestore.deps import get_db  # noqa: E402
from peoplestore.main import app  # noqa: E402


@pytest_asyncio.fixture
async def db():
    """A database with freshly created tables, dropped again afterwards."""
    database = Database(TEST_DATABASE_URL)
    await database.create_all()
    try:
        yield database
    finally:
        await database.drop_all()
        await database.dispose()


@pytest_asyncio.fixture
async def client(db):
    app.dependency_overrides[get_db] = lambda: db
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url='http://test') as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
