import aiosqlite
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, AsyncIterator, Union

from wakeful.config import get_db_path
from wakeful.database.helpers import STORE_ERRORS, StoreUnavailable

logger = logging.getLogger(__name__)


class DatabaseCore:
    """Async SQLite database with persistent connection and async lock.

    Uses a single persistent connection with an async lock to serialize
    access (SQLite limitation). The connection is lazily opened on first
    use, the schema is created at the same time, and the connection is
    reused until explicitly closed.

    One instance per database path; instances are injected into the
    engine and coordinators rather than shared as a module global.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        self._db_path = Path(db_path) if db_path is not None else get_db_path()
        self._conn: Optional[aiosqlite.Connection] = None
        self._conn_lock: Optional[asyncio.Lock] = None

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def _ensure_connection(self) -> aiosqlite.Connection:
        """Ensure we have an open connection with the schema in place."""
        if self._conn is None:
            conn = None
            try:
                conn = await aiosqlite.connect(str(self._db_path))
                conn.row_factory = aiosqlite.Row
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA busy_timeout=5000")
                await self._init_schema(conn)
                await conn.commit()
            except STORE_ERRORS as e:
                if conn is not None:
                    await conn.close()
                raise StoreUnavailable(f"Cannot open database at {self._db_path}: {e}") from e
            self._conn = conn
        return self._conn

    async def _get_lock(self) -> asyncio.Lock:
        """Get or create the async lock for connection serialization."""
        if self._conn_lock is None:
            self._conn_lock = asyncio.Lock()
        return self._conn_lock

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Get a database connection with serialized access."""
        lock = await self._get_lock()
        async with lock:
            conn = await self._ensure_connection()
            yield conn

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Serialized connection whose statements commit together or not at all."""
        async with self._get_connection() as conn:
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    async def close(self) -> None:
        """Close the persistent connection."""
        if self._conn is not None:
            try:
                await self._conn.close()
            except STORE_ERRORS as e:
                logger.warning(f"Error closing database connection: {e}")
            finally:
                self._conn = None

    async def _init_schema(self, conn: aiosqlite.Connection) -> None:
        await conn.executescript("""
            CREATE TABLE IF NOT EXISTS notification_requests (
                id INTEGER PRIMARY KEY,
                data TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS alarms_fired (
                id INTEGER PRIMARY KEY,
                fired_at INTEGER NOT NULL
            );
        """)
