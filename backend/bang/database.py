"""Database engine and sessions for the search service.

Request handlers get a session per request through ``get_db``; the
resolution engine runs its store queries and command writes on it.
Fire-and-forget work (bookmark inserts, title patches, usage counters) and
the reminder worker outlive the request, so they open their own sessions
from ``async_session``, handed to them via ``get_session_factory``.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from bang.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """FastAPI dependency returning the factory used by fire-and-forget tasks."""
    return async_session
