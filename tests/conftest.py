"""Shared fixtures: a throwaway SQLite database, local media storage and an API client."""
from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import AsyncGenerator, Callable, Iterator
from pathlib import Path

import pytest

# Configure the application before any appify module reads its settings.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="appify-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'appify_test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP_DIR / "uploads")
os.environ["MEDIA_BASE_URL"] = "http://testserver"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from appify.db.base import Base  # noqa: E402
from appify.db.session import enable_sqlite_foreign_keys, get_db  # noqa: E402
from appify.main import app  # noqa: E402
from appify.services import storage_service  # noqa: E402

test_engine = create_async_engine(os.environ["DATABASE_URL"], poolclass=NullPool)
enable_sqlite_foreign_keys(test_engine.sync_engine)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    """Create all tables once for the test session."""

    async def _create() -> None:
        async with test_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def _drop() -> None:
        async with test_engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await test_engine.dispose()

    asyncio.run(_create())
    yield
    asyncio.run(_drop())


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    """Empty every table and reset the storage singleton before each test."""

    async def _clean() -> None:
        async with test_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                await conn.execute(table.delete())

    asyncio.run(_clean())
    storage_service.set_storage(None)
    yield


@pytest.fixture
def client() -> Iterator[TestClient]:
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def lenient_client() -> Iterator[TestClient]:
    """Client that returns the 500 response instead of re-raising server errors."""
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def upload_dir() -> Path:
    return Path(os.environ["UPLOAD_DIR"])


@pytest.fixture
def make_user(client: TestClient) -> Callable[..., dict]:
    """Register a user and return its JSON plus ready-to-use auth headers."""

    counter = {"n": 0}

    def _make_user(first_name: str = "Test", last_name: str = "User", email: str | None = None) -> dict:
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        response = client.post(
            "/auth/register",
            json={
                "first_name": first_name,
                "last_name": last_name,
                "email": email,
                "password": "correct-horse",
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "user": body["user"],
            "headers": {"Authorization": f"Bearer {body['access_token']}"},
        }

    return _make_user


@pytest.fixture
def make_post(client: TestClient) -> Callable[..., dict]:
    def _make_post(headers: dict, content: str = "Hello world", is_public: bool = True) -> dict:
        response = client.post(
            "/posts",
            data={"content": content, "is_public": "true" if is_public else "false"},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make_post
