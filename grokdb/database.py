"""Database engine and the shared store handle.

All statements go through a single connection. ``Store.transaction`` is the
only way in: it takes the store lock for the whole unit of work, commits on
success and rolls back on any failure.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from sqlalchemy import event, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from grokdb.config import settings, utcnow
from grokdb.errors import QueryError
from grokdb.models import Base

logger = logging.getLogger(__name__)


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Create an engine pinned to one connection with foreign keys enforced."""
    url = make_url(database_url or settings.database_url)
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_async_engine(
        url,
        echo=settings.debug if echo is None else echo,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    return engine


class Store:
    """Mutually exclusive handle on the relational store.

    Every component receives a ``Store`` rather than reaching for a global.
    ``clock`` supplies the timestamps written by review operations and by
    the flush hooks in ``grokdb.models.hooks``.
    """

    def __init__(self, engine: AsyncEngine, clock: Callable[[], datetime] = utcnow) -> None:
        self.engine = engine
        self.clock = clock
        self._sessions = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False, info={"clock": clock}
        )
        self._lock = asyncio.Lock()

    @classmethod
    def from_url(cls, database_url: str | None = None, clock: Callable[[], datetime] = utcnow) -> "Store":
        return cls(make_engine(database_url), clock=clock)

    async def create_all(self) -> None:
        """Create every table that doesn't exist yet."""
        async with self._lock:
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except SQLAlchemyError as exc:
                raise QueryError.from_sqlalchemy(exc) from exc

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Run one locked unit of work against the store.

        SQLAlchemy failures surface as ``QueryError``; anything else raised
        inside the block still rolls the transaction back and propagates.
        """
        async with self._lock:
            async with self._sessions() as session:
                try:
                    async with session.begin():
                        yield session
                except SQLAlchemyError as exc:
                    logger.error("Store transaction failed: %s", exc)
                    raise QueryError.from_sqlalchemy(exc) from exc
