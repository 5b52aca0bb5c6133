"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine is built from Settings by create_app() and stored on app.state;
get_db() pulls the session factory from there, so nothing here is global.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from starlette.requests import Request

from profilehub.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL.

    Learn: PostgreSQL gets a real connection pool (min 5, max 20).
    SQLite (aiosqlite) is accepted for local runs and tests; an in-memory
    database must share a single connection or every session would see
    an empty schema.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        kwargs = {}
        if ":memory:" in url or url == "sqlite+aiosqlite://":
            kwargs["poolclass"] = StaticPool
        return create_async_engine(url, echo=settings.debug, **kwargs)

    return create_async_engine(
        url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=15,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory — each request gets its own session."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
