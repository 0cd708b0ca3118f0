"""
Pytest configuration and fixtures for Blogstore tests.

Each test gets a fresh file-backed SQLite database under tmp_path and an
in-memory content store. HTTP tests run the app in-process through
httpx's ASGI transport with the publishing service overridden.
"""
import sys
from pathlib import Path
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from blogstore.api.dependencies import get_publisher
from blogstore.config import Settings
from blogstore.core.publisher import PublishContext, PublishService
from blogstore.database import create_engine_from_settings, create_session_factory, init_db
from blogstore.main import create_app
from blogstore.repository import PostRepository
from blogstore.storage.backends.memory import MemoryStorageBackend
from blogstore.storage.config import StorageBackendType, StorageConfig
from blogstore.storage.service import StorageService

TEST_TOKEN = "test-token"


# ============================================
# Stores
# ============================================

@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway database and the memory backend."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        UPLOAD_TOKEN=TEST_TOKEN,
        STORAGE_BACKEND=StorageBackendType.MEMORY,
        STORAGE_ROOT=str(tmp_path / "blobs"),
        DEBUG=False,
    )


@pytest.fixture
async def db_engine(test_settings: Settings):
    """Create the schema in a fresh SQLite file."""
    engine = create_engine_from_settings(test_settings)
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def post_repository(db_engine) -> PostRepository:
    return PostRepository(create_session_factory(db_engine))


@pytest.fixture
def memory_backend() -> MemoryStorageBackend:
    return MemoryStorageBackend()


@pytest.fixture
def storage(memory_backend: MemoryStorageBackend) -> StorageService:
    return StorageService(
        config=StorageConfig(backend=StorageBackendType.MEMORY),
        backend=memory_backend,
    )


@pytest.fixture
def publisher(storage: StorageService, post_repository: PostRepository) -> PublishService:
    return PublishService(PublishContext(
        storage=storage,
        posts=post_repository,
        upload_token=TEST_TOKEN,
    ))


# ============================================
# HTTP
# ============================================

@pytest.fixture
def test_app(test_settings: Settings, publisher: PublishService, db_engine):
    """App with the publishing service injected."""
    app = create_app(test_settings)
    app.dependency_overrides[get_publisher] = lambda: publisher
    app.state.engine = db_engine

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


# ============================================
# Pytest Configuration
# ============================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "fast: Fast unit tests (no I/O beyond tmp files)"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that exercise the HTTP app against real stores"
    )
