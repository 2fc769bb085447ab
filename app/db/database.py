"""
Database connection management - SQLite via aiosqlite
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence
import logging

import aiosqlite

from app.config import settings

logger = logging.getLogger(__name__)


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS employees (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        position TEXT NOT NULL,
        salary REAL NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
)


@dataclass
class ExecuteResult:
    """Mutation metadata returned by a write statement"""
    rowcount: int
    lastrowid: Optional[int] = None


class Database:
    """SQLite async connection manager using aiosqlite.

    Every operation opens its own connection and runs in a single
    transaction, so no transaction ever spans two tool calls.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or settings.DATABASE_PATH
        self.connected = False

    async def connect(self):
        """Create tables and verify the database is reachable"""
        async with self.acquire() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
        self.connected = True
        logger.info(f"✅ SQLite database ready at {self.path}")

    async def disconnect(self):
        """Mark the database as closed (connections are per-operation)"""
        self.connected = False
        logger.info("✅ SQLite database closed")

    async def ping(self) -> bool:
        """Health check - run a trivial query"""
        try:
            async with self.acquire() as conn:
                await conn.execute("SELECT 1")
            return True
        except Exception:
            return False

    @asynccontextmanager
    async def acquire(self, read_only: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection; commits on success, rolls back on exception."""
        async with aiosqlite.connect(self.path) as conn:
            conn.row_factory = aiosqlite.Row
            if read_only:
                await conn.execute("PRAGMA query_only = ON")
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                logger.exception("Database operation failed, transaction rolled back.")
                raise

    async def fetch_all(
        self,
        sql: str,
        params: Sequence[Any] = (),
        read_only: bool = False,
    ) -> List[Dict[str, Any]]:
        """Run a query and return its rows as dicts"""
        async with self.acquire(read_only=read_only) as conn:
            async with conn.execute(sql, params) as cursor:
                rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecuteResult:
        """Run a single write statement and return affected rows / inserted id"""
        async with self.acquire() as conn:
            cursor = await conn.execute(sql, params)
            result = ExecuteResult(rowcount=cursor.rowcount, lastrowid=cursor.lastrowid)
            await cursor.close()
        return result

    async def get_schema(self) -> str:
        """
        Describe every user table as one line of column name/type pairs.

        Example:
            Table employees: id (INTEGER), name (TEXT), position (TEXT), ...
        """
        async with self.acquire(read_only=True) as conn:
            async with conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ) as cursor:
                tables = [row["name"] for row in await cursor.fetchall()]

            lines = []
            for table in tables:
                async with conn.execute(f'PRAGMA table_info("{table}")') as cursor:
                    columns = await cursor.fetchall()
                cols = ", ".join(f"{col['name']} ({col['type']})" for col in columns)
                lines.append(f"Table {table}: {cols}")

        return "\n".join(lines)


# Global database instance
db = Database()


async def get_db() -> Database:
    """Return the global database, connecting on first use"""
    if not db.connected:
        await db.connect()
    return db
