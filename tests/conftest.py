"""Pytest configuration and fixtures for SessionAuth tests.

Database Handling:
- TEST_DATABASE_URL, when set, is used as-is (e.g. a local PostgreSQL)
- Otherwise, if testcontainers is installed and Docker is available, a PostgreSQL
  container is started for the session
- Otherwise tests run against an in-memory SQLite database through aiosqlite
"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

# Set test environment variables before importing sessionauth modules
os.environ["JWT_ACCESS_SECRET_KEY"] = "test-access-secret-" + "a" * 64
os.environ["JWT_REFRESH_SECRET_KEY"] = "test-refresh-secret-" + "r" * 64
os.environ["COOKIE_SECURE"] = "false"
# Cheap Argon2 parameters; hashing cost is not under test
os.environ["PASSWORD_HASH_TIME_COST"] = "1"
os.environ["PASSWORD_HASH_MEMORY_COST"] = "8"
os.environ["PASSWORD_HASH_PARALLELISM"] = "1"

SQLITE_URL = "sqlite+aiosqlite://"

# Test credentials (satisfy the credential rules)
TEST_USERNAME = "alice1"
TEST_PASSWORD = "Zq7!mWp#2k"
TEST_ADMIN_USERNAME = "admin1"
TEST_ADMIN_PASSWORD = "Zq7!mWp#2k"

FAKE_NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=UTC)


# --- PostgreSQL Container Management ---

_container = None
_database_url = None


def _try_testcontainers() -> str | None:
    """Try to start PostgreSQL using testcontainers.

    Returns database URL if successful, None otherwise.
    """
    try:
        from testcontainers.postgres import PostgresContainer
    except ImportError:
        return None

    try:
        global _container
        _container = PostgresContainer(
            image="postgres:15-alpine",
            username="test",
            password="test",
            dbname="sessionauth_test",
        )
        _container.start()

        url = _container.get_connection_url()
        async_url = url.replace("postgresql+psycopg2://", "postgresql+asyncpg://")
        async_url = async_url.replace("postgresql://", "postgresql+asyncpg://")
        return async_url
    except Exception as e:
        # Docker not available or other error
        import warnings

        warnings.warn(f"Testcontainers not available: {e}", stacklevel=2)
        if _container:
            try:
                _container.stop()
            except Exception:
                pass
            _container = None
        return None


def _get_database_url() -> str:
    """Get database URL: explicit, then testcontainers, then SQLite."""
    global _database_url

    if _database_url is not None:
        return _database_url

    explicit_url = os.environ.get("TEST_DATABASE_URL")
    if explicit_url:
        _database_url = explicit_url
        return _database_url

    container_url = _try_testcontainers()
    if container_url:
        _database_url = container_url
        return _database_url

    _database_url = SQLITE_URL
    return _database_url


# Set DATABASE_URL for sessionauth imports
os.environ["DATABASE_URL"] = _get_database_url()


def pytest_sessionfinish(session, exitstatus):
    """Clean up testcontainers when tests finish."""
    global _container
    if _container:
        try:
            _container.stop()
        except Exception:
            pass
        _container = None


# --- Clock ---


class FakeClock:
    """Settable stand-in for the wall clock."""

    def __init__(self, start: datetime = FAKE_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a database engine with a fresh schema for each test."""
    from sessionauth.core.database import Base
    from sessionauth.models import Session, User  # noqa: F401

    url = _get_database_url()
    if url.startswith("sqlite"):
        # One shared connection keeps the in-memory database alive
        engine = create_async_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# --- Service Fixtures ---


@pytest.fixture
def hasher():
    from sessionauth.api.deps import get_password_hasher

    return get_password_hasher()


@pytest.fixture
def codec(clock):
    from sessionauth.core import settings
    from sessionauth.services.token_codec import TokenCodec

    return TokenCodec.from_settings(settings, clock=clock)


@pytest.fixture
def lifecycle(db_session, codec, hasher, clock):
    from sessionauth.services.auth import SessionLifecycle

    return SessionLifecycle(db_session, codec, hasher, clock=clock)


@pytest.fixture
def user_factory(lifecycle):
    """Factory for creating users through the service layer."""

    async def _create_user(
        username: str = TEST_USERNAME,
        password: str = TEST_PASSWORD,
        is_admin: bool = False,
        member_since: datetime | None = None,
    ):
        return await lifecycle.register_user(
            username, password, is_admin=is_admin, member_since=member_since
        )

    return _create_user


@pytest_asyncio.fixture
async def user(user_factory):
    """Create a regular test user."""
    return await user_factory()


@pytest_asyncio.fixture
async def admin_user(user_factory):
    """Create a test admin user."""
    return await user_factory(
        username=TEST_ADMIN_USERNAME, password=TEST_ADMIN_PASSWORD, is_admin=True
    )


# --- HTTP Client ---


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession, clock: FakeClock
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database and clock overrides."""
    from sessionauth.api.deps import get_clock
    from sessionauth.core.database import get_db
    from sessionauth.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    def override_get_clock():
        return clock

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = override_get_clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def response_cookies(response) -> dict[str, str]:
    """Cookies set by a response, including deletions (empty values)."""
    cookies = {}
    for header in response.headers.get_list("set-cookie"):
        name, _, rest = header.partition("=")
        cookies[name.strip()] = rest.split(";", 1)[0].strip().strip('"')
    return cookies


def cookie_header(access: str | None = None, refresh: str | None = None) -> dict[str, str]:
    """Explicit Cookie header; takes precedence over the client's cookie jar."""
    from sessionauth.api.deps import ACCESS_COOKIE, REFRESH_COOKIE

    parts = []
    if access is not None:
        parts.append(f"{ACCESS_COOKIE}={access}")
    if refresh is not None:
        parts.append(f"{REFRESH_COOKIE}={refresh}")
    return {"Cookie": "; ".join(parts)}


@pytest.fixture
def login(async_client):
    """Log in over HTTP and return the issued cookies."""

    async def _login(username: str = TEST_USERNAME, password: str = TEST_PASSWORD):
        response = await async_client.post(
            "/login", json={"username": username, "password": password}
        )
        assert response.status_code == 200, response.text
        return response_cookies(response)

    return _login


# --- Pytest Hooks for Auto-Marking ---


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their fixtures and location.

    - Tests using db_session, db_engine, or async_client are marked as 'integration'
    - Everything else is marked as 'unit'
    - Tests can override with explicit markers
    """
    integration_fixtures = {"db_session", "db_engine", "async_client"}

    for item in items:
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue

        if hasattr(item, "fixturenames"):
            if integration_fixtures & set(item.fixturenames):
                item.add_marker(pytest.mark.integration)
                continue

        item.add_marker(pytest.mark.unit)
