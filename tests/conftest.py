"""Shared test fixtures.

Each test gets its own SQLite database file (aiosqlite driver) with the schema
created from the ORM metadata and the launch badges seeded. Redis is not
initialized, so rate limiting is skipped and pub/sub events are not published.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.jwt import create_access_token
from arcticcare.auth.password import hash_password
from arcticcare.config import get_settings
from arcticcare.database import close_db, get_engine, get_session, init_db
from arcticcare.db.base import Base
from arcticcare.db.models import User
from arcticcare.gamification.seed import seed_badges
from arcticcare.main import create_app
from arcticcare.time_utils import utcnow

TEST_PASSWORD = "segredo123"

UserFactory = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def database(tmp_path, monkeypatch) -> AsyncGenerator[None, None]:
    """Fresh SQLite database with schema and seeded badges."""
    monkeypatch.setenv("ARCTIC_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'arcticcare.db'}")
    monkeypatch.setenv("ARCTIC_LOG_FORMAT", "console")
    get_settings.cache_clear()

    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async for session in get_session():
        await seed_badges(session)
        break

    yield

    await close_db()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for setup and assertions."""
    async for session in get_session():
        yield session
        await session.close()
        break


@pytest_asyncio.fixture
async def user_factory(db_session: AsyncSession) -> UserFactory:
    """Create committed users directly, with zero points and no ledger rows."""
    counter = 0

    async def _create(
        name: str | None = None,
        email: str | None = None,
        role: str = "user",
        created_at: datetime | None = None,
    ) -> User:
        nonlocal counter
        counter += 1
        now = created_at or utcnow()
        user = User(
            email=email or f"user{counter}@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            name=name or f"Usuário {counter}",
            role=role,
            points=0,
            level=1,
            current_streak=0,
            longest_streak=0,
            last_active_at=now,
            created_at=now,
            updated_at=now,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _create


@pytest_asyncio.fixture
async def app(database) -> FastAPI:
    return create_app()


def _client(app: FastAPI, token: str | None = None) -> AsyncClient:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous HTTP client."""
    async with _client(app) as ac:
        yield ac


@pytest_asyncio.fixture
async def test_user(user_factory: UserFactory) -> User:
    return await user_factory(name="Ana Cidadã", email="ana@example.com")


@pytest_asyncio.fixture
async def admin_user(user_factory: UserFactory) -> User:
    return await user_factory(name="Admin", email="admin@example.com", role="admin")


@pytest_asyncio.fixture
async def authed_client(app: FastAPI, test_user: User) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as ``test_user``."""
    async with _client(app, create_access_token(test_user.id)) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(app: FastAPI, admin_user: User) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as ``admin_user``."""
    async with _client(app, create_access_token(admin_user.id)) as ac:
        yield ac


@pytest_asyncio.fixture
async def client_for(app: FastAPI) -> AsyncGenerator[Callable[[User], AsyncClient], None]:
    """Build extra authenticated clients for arbitrary users."""
    clients: list[AsyncClient] = []

    def _make(user: User) -> AsyncClient:
        ac = _client(app, create_access_token(user.id))
        clients.append(ac)
        return ac

    yield _make
    for ac in clients:
        await ac.aclose()
