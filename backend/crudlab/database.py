"""
CrudLab Backend — Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
How:   One engine per process with connection pooling; a session per request
       that commits on success and rolls back on error.

Connection Pooling Strategy:
    pool_size=20, max_overflow=10: at most 30 PostgreSQL connections
    pool_pre_ping: validates connections before use (catches stale connections)
    pool_recycle=3600: recycles connections every hour

    SQLite URLs (tests, local experiments) skip the pool arguments; the
    SQLite dialect picks its own pool class.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import DateTime, Uuid
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from crudlab.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# expire_on_commit=False: response models read attributes after the commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Shares one metadata object, which Alembic reads for autogenerate.
    """
    pass


class DocumentMixin:
    """
    Columns every collection carries: a UUID primary key and the
    created_at / updated_at pair.

    Ids are generated in Python so a flushed row has its id before commit,
    and the same model works on PostgreSQL and SQLite.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Commits when the handler returns, rolls back and re-raises when it
    raises, and always closes the session to return the connection to the
    pool.

    Example usage in a route:
        @router.get("/todos")
        async def list_todos(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Closes every pooled connection. Called on application shutdown."""
    await engine.dispose()
