"""
Shared fixtures: a throwaway SQLite store per test and a TestClient wired
to an app built from explicit settings.
"""
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import Database
from app.main import create_app


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'videos.db'}",
        base_url="http://testserver",
        uploads_dir=str(tmp_path / "uploads"),
        log_level="DEBUG",
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def database(test_settings):
    db = Database(test_settings.database_url)
    db.connect()
    await db.create_tables()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db(database):
    async with database.session() as session:
        yield session
