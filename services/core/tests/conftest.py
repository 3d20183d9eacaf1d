"""Pytest configuration and fixtures for Insight Stream core tests.

This module provides fixtures for:
- Database: SQLite in-memory engine and sessions
- HTTP client: AsyncClient for FastAPI testing, anonymous and logged in
- Users: factories for admin and regular users
- Mocks: httpx.AsyncClient for external service calls
"""

from collections.abc import AsyncGenerator, Generator
from typing import Any, Callable, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from insight_core.config import Settings
from insight_core.domain.models import Base, User


# -----------------------------------------------------------------------------
# Test Settings
# -----------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with safe defaults."""
    from insight_core.infrastructure.crypto import CryptoService

    return Settings(
        mysql_url="sqlite+pysqlite:///:memory:",
        celery_broker_url="memory://",
        celery_result_backend="cache+memory://",
        app_url="http://localhost:9002",
        secret_key="test-secret-key-do-not-use-in-production",
        encryption_key=CryptoService.generate_key(),
        session_expire_hours=1,
        provider_reddit_client_id="test_client_id",
        provider_reddit_client_secret="test_client_secret",
        sentiment_call_delay_ms=0,
        email_host=None,
        email_user=None,
        email_pass=None,
        log_json=False,
    )


# -----------------------------------------------------------------------------
# Synchronous Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def sync_engine():
    """Create a synchronous SQLite in-memory engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # SQLite only supports autoincrement on INTEGER PRIMARY KEY, so
    # temporarily compile BigInteger as INTEGER while creating tables
    from sqlalchemy.dialects import sqlite
    original_visit = sqlite.dialect.type_compiler_cls.visit_BIGINT
    sqlite.dialect.type_compiler_cls.visit_BIGINT = lambda self, type_, **kw: "INTEGER"

    Base.metadata.create_all(bind=engine)

    sqlite.dialect.type_compiler_cls.visit_BIGINT = original_visit

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sync_session_factory(sync_engine) -> sessionmaker[Session]:
    """Create a synchronous session factory."""
    return sessionmaker(
        bind=sync_engine,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
def db_session(sync_session_factory) -> Generator[Session, None, None]:
    """Create a synchronous database session for testing."""
    session = sync_session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# -----------------------------------------------------------------------------
# User Factories
# -----------------------------------------------------------------------------


@pytest.fixture
def make_user(db_session) -> Callable[..., User]:
    """Factory that creates and commits a user."""
    from insight_core.domain.services.users import UserService

    counter = {"n": 0}

    def _make_user(
        name: Optional[str] = None,
        email: Optional[str] = None,
        role: str = "user",
        password: Optional[str] = "test-password",
        assigned_keywords: Optional[list[str]] = None,
    ) -> User:
        counter["n"] += 1
        user = UserService(db_session).add_user(
            name=name or f"Test User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            role=role,
            password=password,
            assigned_keywords=assigned_keywords,
        )
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def regular_user(make_user) -> User:
    """A regular user with two keywords."""
    return make_user(
        name="Regular User",
        email="user@example.com",
        assigned_keywords=["python", "fastapi"],
    )


@pytest.fixture
def admin_user(make_user) -> User:
    """An admin user (gets the default admin keywords)."""
    return make_user(name="Admin User", email="admin@example.com", role="admin")


# -----------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def test_app(test_settings, sync_engine, sync_session_factory) -> FastAPI:
    """Create a FastAPI test application with test settings and DB override."""
    from insight_core.api.deps import get_db
    from insight_core.config import get_settings
    from insight_core.main import app

    app.state.settings = test_settings

    # Override the database dependency to use test database
    def override_get_db():
        session = sync_session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings

    yield app

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app, db_session) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing FastAPI endpoints.

    Note: The db_session fixture is included to ensure the test database
    is set up before the client is created.
    """
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


def _session_cookie(db_session: Session, user: User) -> dict[str, str]:
    from insight_core.domain.services.auth import AuthService

    session_id = AuthService(db_session).create_session(user.id, expire_hours=1)
    db_session.commit()
    return {"session": session_id}


@pytest.fixture
async def user_client(
    test_app, db_session, regular_user
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client logged in as ``regular_user``."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        cookies=_session_cookie(db_session, regular_user),
    ) as ac:
        yield ac


@pytest.fixture
async def admin_client(
    test_app, db_session, admin_user
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client logged in as ``admin_user``."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        cookies=_session_cookie(db_session, admin_user),
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Mock Fixtures for External Services
# -----------------------------------------------------------------------------


@pytest.fixture
def mock_httpx_client() -> Generator[AsyncMock, None, None]:
    """Mock httpx.AsyncClient for testing external HTTP calls."""
    with patch("httpx.AsyncClient") as mock:
        mock_instance = AsyncMock()
        mock.return_value.__aenter__.return_value = mock_instance
        mock.return_value.__aexit__.return_value = None

        # Default response
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {}
        mock_response.text = ""
        mock_response.headers = {}
        mock_instance.get.return_value = mock_response
        mock_instance.post.return_value = mock_response

        yield mock_instance


def make_response(
    status_code: int = 200, json_data: Any = None, text: str = ""
) -> MagicMock:
    """Build a MagicMock shaped like an httpx.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data if json_data is not None else {}
    response.text = text
    response.headers = {"content-type": "application/xml"}
    return response


@pytest.fixture
def response_factory() -> Callable[..., MagicMock]:
    """Factory for httpx-like mock responses."""
    return make_response


# -----------------------------------------------------------------------------
# Cleanup Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset the settings cache and the Reddit token cache around each test."""
    from insight_core.config import get_settings
    from insight_core.providers.reddit.auth import clear_token_cache

    get_settings.cache_clear()
    clear_token_cache()
    yield
    get_settings.cache_clear()
    clear_token_cache()
