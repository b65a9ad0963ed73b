"""Connection resource management and the SQLAlchemy adapter."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncTransaction,
    create_async_engine,
)

from savepipe.config import Settings, get_settings
from savepipe.domain.entities import QueryResult
from savepipe.domain.errors import NotInitializedError
from savepipe.domain.protocols import ConnectionSource, TransactionalConnection
from savepipe.infrastructure.telemetry import get_logger

logger = get_logger(__name__)

# Resource every new Transaction is built from
_resource: TransactionalConnection | ConnectionSource | None = None

# Engine created by init_db, if any
_engine: AsyncEngine | None = None


class SqlAlchemyConnection:
    """Adapts a SQLAlchemy ``AsyncConnection`` to the transactional protocol."""

    def __init__(self, connection: AsyncConnection):
        self.connection = connection
        self._transaction: AsyncTransaction | None = None

    def _quote(self, name: str) -> str:
        return self.connection.dialect.identifier_preparer.quote(name)

    async def begin(self) -> None:
        self._transaction = self.connection.begin()
        await self._transaction.start()

    async def savepoint(self, name: str) -> None:
        await self.connection.execute(text(f"SAVEPOINT {self._quote(name)}"))

    async def rollback(self, name: str) -> None:
        transaction, self._transaction = self._transaction, None
        if transaction is None and not self.connection.in_transaction():
            # Already discarded by a failed commit
            return
        try:
            await self.connection.execute(text(f"ROLLBACK TO SAVEPOINT {self._quote(name)}"))
        finally:
            # Nothing is left to keep once the pipeline rolled back
            await self._discard(transaction)

    async def commit(self) -> None:
        transaction, self._transaction = self._transaction, None
        try:
            if transaction is None:
                await self.connection.commit()
            else:
                await transaction.commit()
        except Exception:
            try:
                await self._discard(transaction)
            except Exception:
                logger.warning("Could not discard transaction after failed commit", exc_info=True)
            raise

    async def _discard(self, transaction: AsyncTransaction | None) -> None:
        """Leave the connection outside any transaction."""
        if transaction is not None and transaction.is_active:
            await transaction.rollback()
        elif self.connection.in_transaction():
            await self.connection.rollback()

    async def query(self, sql: str, params: Mapping[str, Any] | None = None) -> QueryResult:
        result = await self.connection.execute(text(sql), dict(params or {}))
        if not result.returns_rows:
            return QueryResult(rows=[], row_count=result.rowcount)
        return QueryResult.from_rows([dict(row) for row in result.mappings().all()])


class SqlAlchemyConnectionSource:
    """Checks out one pooled connection per pipeline run."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator[SqlAlchemyConnection, None]:
        async with self.engine.connect() as connection:
            yield SqlAlchemyConnection(connection)


def init(resource: TransactionalConnection | ConnectionSource) -> None:
    """Install the connection resource used by every pipeline run started from now on."""
    global _resource
    _resource = resource
    logger.info(
        "Connection resource installed",
        extra={"resource": type(resource).__name__},
    )


def get_resource() -> TransactionalConnection | ConnectionSource:
    """Return the installed resource or fail if init() was never called."""
    if _resource is None:
        raise NotInitializedError()
    return _resource


@asynccontextmanager
async def acquire(
    resource: TransactionalConnection | ConnectionSource,
) -> AsyncGenerator[TransactionalConnection, None]:
    """Yield a connection for one run; sources hand out a dedicated one."""
    if isinstance(resource, ConnectionSource):
        async with resource.connect() as connection:
            yield connection
    else:
        yield resource


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine

    if _engine is None:
        if settings is None:
            settings = get_settings()

        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
            echo=settings.debug,
        )
        logger.info("Database engine created", extra={"service": "db"})

    return _engine


async def init_db(settings: Settings | None = None) -> None:
    """Create the engine and install it as the pipeline resource (call on startup)."""
    init(SqlAlchemyConnectionSource(get_engine(settings)))


async def close_db() -> None:
    """Dispose the engine created by init_db (call on shutdown)."""
    global _engine, _resource

    if _engine is not None:
        await _engine.dispose()
        if isinstance(_resource, SqlAlchemyConnectionSource) and _resource.engine is _engine:
            _resource = None
        _engine = None
        logger.info("Database connections closed", extra={"service": "db"})
