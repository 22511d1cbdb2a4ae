"""Shared fixtures: a throwaway SQLite database per test and an app client."""
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bang.database import get_db, get_session_factory
from bang.dependencies import get_current_user, get_rate_limiter, get_title_fetcher
from bang.main import app
from bang.models import Base, User
from bang.services.background import background_tasks
from bang.services.rate_limiter import AnonymousRateLimiter


async def fake_fetch_title(url: str) -> str:
    return f"Title of {url}"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bang.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await background_tasks.drain()
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def make_user(session_factory, **fields) -> User:
    fields.setdefault("email", "alice@example.com")
    fields.setdefault("username", "alice")
    fields.setdefault("default_search_provider", "duckduckgo")
    fields.setdefault("timezone", "UTC")
    fields.setdefault("column_preferences", {})
    async with session_factory() as session:
        user = User(**fields)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest_asyncio.fixture
async def user(session_factory):
    return await make_user(session_factory)


@pytest.fixture
def rate_limiter():
    """Limiter with a short delay so over-limit tests stay fast."""
    return AnonymousRateLimiter(delay_increment_ms=10)


def _login_as(user_id):
    async def current_user(db: AsyncSession = Depends(get_db)):
        return await db.get(User, user_id)
    return current_user


@asynccontextmanager
async def app_client(session_factory, rate_limiter, user_id=None):
    """httpx client against the app, with the database and collaborators swapped out.

    Anonymous clients keep the real session-based user lookup.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_title_fetcher] = lambda: fake_fetch_title
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    if user_id is not None:
        app.dependency_overrides[get_current_user] = _login_as(user_id)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anon_client(session_factory, rate_limiter):
    async with app_client(session_factory, rate_limiter) as client:
        yield client


@pytest_asyncio.fixture
async def client(session_factory, rate_limiter, user):
    """Client signed in as `user`."""
    async with app_client(session_factory, rate_limiter, user_id=user.id) as client:
        yield client
