"""
Solo Parent Backend: Database Handle
=====================================

What:  The Database handle (engine + session factory), the query helper
       built on it, the declarative Base and the FastAPI session dependency.
How:   A Database is constructed explicitly in the application lifespan,
       stored on `app.state.db` and disposed on shutdown. Nothing in this
       module opens a connection at import time.

Connection Pooling:
    pool_size=10, max_overflow=0:  a bounded pool of ten connections
    pool_timeout=10:               acquisition gives up after ten seconds
    pool_pre_ping:                 stale connections are replaced before use
    pool_recycle=3600:             connections are recycled hourly

    SQLite URLs (tests, local experiments) use a StaticPool so an in-memory
    database is shared by every session of the handle.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, AsyncIterator, List, Optional

from fastapi import Request
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from soloparent.config import Settings
from soloparent.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


@dataclass(frozen=True)
class MutationResult:
    """Outcome of an INSERT / UPDATE / DELETE through the query helper."""

    rowcount: int
    inserted_id: Optional[int] = None


class Database:
    """
    Explicitly constructed database client.

    Lifecycle:
        db = Database.from_settings(settings)   # engine + pool created
        async with db.session() as session: ... # unit of work
        await db.dispose()                      # pool closed

    The query helper methods (`fetch_all`, `fetch_one`, `execute`) each run a
    single statement in their own short session: acquire, execute, commit,
    release. Failures surface as DatabaseError; the connection is released
    in every case.
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 0,
        pool_timeout: int = 10,
        pre_ping: bool = True,
        echo: bool = False,
    ):
        self.url = url
        if url.startswith("sqlite"):
            self.engine: AsyncEngine = create_async_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=echo,
            )
        else:
            self.engine = create_async_engine(
                url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_pre_ping=pre_ping,
                pool_recycle=3600,
                echo=echo,
            )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    # ── Unit of Work ──────────────────────────────────────────────────────
    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session; commit on success, roll back and re-raise on error,
        always close.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    # ── Query Helper ──────────────────────────────────────────────────────
    async def fetch_all(self, statement: Any) -> List[Any]:
        """Run a SELECT and return every row."""
        try:
            async with self.session() as session:
                result = await session.execute(statement)
                return list(result.all())
        except SQLAlchemyError as e:
            logger.error("Query failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def fetch_one(self, statement: Any) -> Optional[Any]:
        """Run a SELECT and return the first row, or None."""
        try:
            async with self.session() as session:
                result = await session.execute(statement)
                return result.first()
        except SQLAlchemyError as e:
            logger.error("Query failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def execute(self, statement: Any) -> MutationResult:
        """Run a mutation and report affected rows and the inserted id."""
        try:
            async with self.session() as session:
                result = await session.execute(statement)
                inserted_id = None
                if result.is_insert and result.inserted_primary_key:
                    inserted_id = result.inserted_primary_key[0]
                return MutationResult(rowcount=result.rowcount, inserted_id=inserted_id)
        except SQLAlchemyError as e:
            logger.error("Statement failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def ping(self) -> bool:
        """SELECT 1 against the pool; False when the database is unreachable."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def create_schema(self) -> None:
        """Create every mapped table (tests and local SQLite only)."""
        import soloparent.models  # noqa: F401  registers every table on Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides one session per request.

    Uses the Database handle stored on `app.state.db` by the lifespan.
    Commits when the handler returns, rolls back when it raises, and always
    returns the connection to the pool.
    """
    db: Database = request.app.state.db
    async with db.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def utc_now() -> datetime:
    """Naive UTC timestamp, matching DATETIME columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def row_to_dict(row: Any) -> dict:
    """Mapped attributes of an ORM instance, keyed by attribute name."""
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}
