# greengrove/database/database.py
import asyncio
import asyncpg
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar
from ..config import Config
from ..errors import StorageFault
from .catalog_store import PostgresCatalogStore
from .ledger_store import PostgresLedgerStore

T = TypeVar("T")

STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class Session:
    """Catalog and ledger stores sharing one transaction"""

    def __init__(self, catalog, ledger):
        self.catalog = catalog
        self.ledger = ledger


class BaseDatabase:
    """Store backend interface; subclasses provide session() and transaction()"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def connect(self):
        pass

    async def close(self):
        pass

    async def ping(self) -> bool:
        raise NotImplementedError

    def session(self):
        raise NotImplementedError

    def transaction(self):
        raise NotImplementedError

    async def run_transaction(self, work: Callable[[Session], Awaitable[T]],
                              timeout: Optional[float] = None) -> T:
        """Run work(tx) in one transaction; roll back on any error or on timeout"""
        timeout = timeout or Config.TRANSACTION_TIMEOUT

        async def _run():
            async with self.transaction() as tx:
                return await work(tx)

        try:
            return await asyncio.wait_for(_run(), timeout)
        except asyncio.TimeoutError as e:
            self.logger.error(f"Transaction rolled back after {timeout}s timeout")
            raise StorageFault("Transaction timed out", cause=e) from e


class Database(BaseDatabase):
    """PostgreSQL backend on an asyncpg pool"""

    def __init__(self, dsn: Optional[str] = None):
        super().__init__()
        self.dsn = dsn or Config.DATABASE_URL
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Open the pool and apply pending migrations"""
        if not self.dsn:
            raise ValueError("No DATABASE_URL set in environment")
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=Config.DB_POOL_MIN,
                max_size=Config.DB_POOL_MAX
            )

            await self._run_migrations()

            self.logger.info("Connected to database")
        except Exception as e:
            self.logger.error(f"Database connection failed: {e}")
            raise

    async def close(self):
        """Close the pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("Database connection closed")

    async def ping(self) -> bool:
        try:
            async with self.session() as session:
                return await session.catalog.conn.fetchval("SELECT 1") == 1
        except StorageFault:
            return False

    def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise StorageFault("Database is not connected")
        return self.pool

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Session]:
        """Stores on a pooled connection in autocommit mode"""
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                yield Session(PostgresCatalogStore(conn), PostgresLedgerStore(conn))
        except STORAGE_ERRORS as e:
            self.logger.error(f"Query failed: {e}", exc_info=True)
            raise StorageFault(cause=e) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Session]:
        """Stores on one connection inside BEGIN ... COMMIT; errors roll back"""
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    yield Session(PostgresCatalogStore(conn), PostgresLedgerStore(conn))
        except STORAGE_ERRORS as e:
            self.logger.error(f"Transaction rolled back: {e}", exc_info=True)
            raise StorageFault(cause=e) from e

    async def _run_migrations(self):
        """Apply migrations/*.sql files not yet recorded in the migrations table"""
        try:
            migrations_path = Path(__file__).parent / "migrations"

            async with self.pool.acquire() as conn:
                await conn.execute("""
                    CREATE TABLE IF NOT EXISTS migrations (
                        id SERIAL PRIMARY KEY,
                        name VARCHAR(255) NOT NULL,
                        applied_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                for migration_file in sorted(migrations_path.glob("*.sql")):
                    migration_name = migration_file.name

                    is_applied = await conn.fetchval(
                        "SELECT COUNT(*) FROM migrations WHERE name = $1",
                        migration_name
                    )

                    if not is_applied:
                        async with conn.transaction():
                            await conn.execute(migration_file.read_text())
                            await conn.execute(
                                "INSERT INTO migrations (name) VALUES ($1)",
                                migration_name
                            )

                        self.logger.info(f"Migration {migration_name} applied")

        except Exception as e:
            self.logger.error(f"Migrations failed: {e}")
            raise
