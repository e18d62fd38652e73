import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import declarative_base

from devevent.core.config import settings
from devevent.core.errors import StorageUnavailable
from devevent.core.logging import logger

Base = declarative_base()


class DatabaseConnector:
    """
    Lazily-established, process-wide storage connection.

    The first caller starts connecting; callers arriving while that attempt is
    in flight await the same task instead of opening their own. A failed
    attempt clears the memo so the next caller retries.
    """

    def __init__(self, url: str, **engine_options):
        self.url = url
        self._engine_options = engine_options
        self._engine: Optional[AsyncEngine] = None
        self._pending: Optional[asyncio.Task] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    def _build_engine(self) -> AsyncEngine:
        options = dict(self._engine_options)
        if self.url.startswith("postgresql"):
            options.setdefault("pool_size", 20)
            options.setdefault("max_overflow", 10)
            options.setdefault("pool_recycle", 3600)
        return create_async_engine(self.url, echo=False, pool_pre_ping=True, **options)

    async def _establish(self) -> AsyncEngine:
        import devevent.db.models  # noqa: F401  registers tables on Base.metadata
        engine = self._build_engine()
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except BaseException:
            await engine.dispose()
            raise
        return engine

    @property
    def connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> AsyncEngine:
        """
        Return the shared engine, establishing it on first use.

        Raises:
            StorageUnavailable: If the connection attempt fails
        """
        if self._engine is not None:
            return self._engine

        if self._pending is None:
            logger.info("Connecting to storage backend")
            self._pending = asyncio.ensure_future(self._establish())
        pending = self._pending

        try:
            # shield so one cancelled caller does not abort the shared attempt
            engine = await asyncio.shield(pending)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._pending is pending:
                self._pending = None
            logger.error(f"Storage connection failed: {e}")
            raise StorageUnavailable(e) from e

        if self._engine is None:
            self._engine = engine
            self._sessionmaker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
            logger.info("Storage connection established")
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        await self.connect()
        async with self._sessionmaker() as session:
            yield session

    async def dispose(self) -> None:
        """Release pooled connections and forget the engine."""
        engine, self._engine = self._engine, None
        self._pending = None
        self._sessionmaker = None
        if engine is not None:
            await engine.dispose()
            logger.info("Storage connection closed")


connector = DatabaseConnector(settings.DATABASE_URL)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. A lost connection drops the shared engine so the
    next request reconnects; the failing request is not retried.
    """
    async with connector.session() as session:
        try:
            yield session
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Storage connection lost: {e}")
            await connector.dispose()
            raise StorageUnavailable(e) from e


async def get_optional_session() -> AsyncGenerator[Optional[AsyncSession], None]:
    """Session for best-effort reads; yields None when storage is unreachable."""
    try:
        await connector.connect()
    except StorageUnavailable:
        yield None
        return
    async with connector.session() as session:
        yield session
