# persists the auth client's session between runs in a small sqlite file
import asyncio
import os.path
from contextlib import asynccontextmanager
from typing import Optional

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)


class SqliteSessionStorage:
    """
    Key/value storage handed to the auth client (get_item/set_item/remove_item).

    The table is created on first use.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def _init_db(self, conn: aiosqlite.Connection) -> None:
        _logger.info(f"Initializing session storage at {self.path}...")
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        await conn.commit()

    @asynccontextmanager
    async def connect(self):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = await aiosqlite.connect(self.path)

        if not self._initialized:
            async with self._init_lock:
                if not self._initialized:
                    await self._init_db(conn)
                    self._initialized = True
        try:
            yield conn
        finally:
            await conn.close()

    async def get_item(self, key: str) -> Optional[str]:
        async with self.connect() as conn:
            cur = await conn.execute("SELECT value FROM kv_store WHERE key = ?;", (key,))
            row = await cur.fetchone()
            await cur.close()
        return row[0] if row else None

    async def set_item(self, key: str, value: str) -> None:
        async with self.connect() as conn:
            await conn.execute(
                """
                INSERT INTO kv_store(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value;
                """,
                (key, value),
            )
            await conn.commit()

    async def remove_item(self, key: str) -> None:
        async with self.connect() as conn:
            await conn.execute("DELETE FROM kv_store WHERE key = ?;", (key,))
            await conn.commit()
