import pytest
from fastapi.testclient import TestClient

from core.config import TEMPLATE_DIR
from core.db import Database
from web import create_app
from wiki.services.page import PageRepository


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'wiki.db'}"


@pytest.fixture
async def database(database_url):
    db = Database(database_url, pool_size=5, timeout=5)
    yield db
    await db.dispose()


@pytest.fixture
async def repository(database):
    pages = PageRepository(database)
    await pages.ensure_schema()
    return pages


@pytest.fixture
def client(database_url):
    with TestClient(create_app(database_url, TEMPLATE_DIR)) as client:
        yield client
