"""
CrudLab Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before anything from crudlab is
       imported, because crudlab.config builds its settings singleton (and
       crudlab.database its engine) at import time.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── temp_storage: Temporary directory for file operations
    ├── sample_image_bytes: Minimal PNG for upload tests
    ├── db_engine / db_session_factory / db_session: in-memory SQLite
    ├── app / test_client: FastAPI app wired to the SQLite session
    └── user / auth_headers: a registered user and its X-User-ID header
"""

import os
import tempfile

# Override settings for testing BEFORE any crudlab imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="crudlab_test_")
os.environ["CLOUDINARY_CLOUD_NAME"] = "demo"
os.environ["CLOUDINARY_API_KEY"] = "test-key-not-real"
os.environ["CLOUDINARY_API_SECRET"] = "test-secret-not-real"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import crudlab.models  # noqa: E402,F401
from crudlab.database import Base, get_db_session  # noqa: E402
from crudlab.models.user import User  # noqa: E402
from crudlab.services.security import hash_password  # noqa: E402

TEST_PASSWORD = "correct horse battery staple"


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_todo(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = todo
            result = await todo_service.get_todo(mock_db_session, user_id, todo_id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.expire = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Smallest valid PNG: signature + IHDR + IDAT + IEND for a 1x1 pixel."""
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
        b"\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05\x18\xd8N"
        b"\x00\x00\x00\x00IEND\xaeB`\x82"
    )


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures (in-memory SQLite, schema from Base.metadata)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    # StaticPool: every session shares the one in-memory database
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(db_session_factory):
    """A session for calling services directly. Committed on teardown."""
    async with db_session_factory() as session:
        yield session
        await session.commit()


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(db_session_factory):
    from crudlab.main import create_app

    application = create_app()

    async def override_get_db_session():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def user(db_session_factory):
    """A stored user whose password is TEST_PASSWORD."""
    async with db_session_factory() as session:
        account = User(
            full_name="Ada Lovelace",
            email="ada@example.com",
            password=await hash_password(TEST_PASSWORD),
        )
        session.add(account)
        await session.commit()
        return account


@pytest.fixture
def auth_headers(user):
    return {"X-User-ID": str(user.id)}


@pytest_asyncio.fixture
async def other_user(db_session_factory):
    async with db_session_factory() as session:
        account = User(
            full_name="Charles Babbage",
            email="charles@example.com",
            password=await hash_password(TEST_PASSWORD),
        )
        session.add(account)
        await session.commit()
        return account
