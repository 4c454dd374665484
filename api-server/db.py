from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence

import asyncpg
from asyncpg import Pool

from config import Settings


class Database:
    """Asyncpg pool manager and the positional-parameter query primitive."""

    def __init__(
        self,
        dsn: str | None = None,
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: float = 30.0,
    ) -> None:
        self._dsn = dsn or ""
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._pool: Optional[Pool] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            dsn=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            command_timeout=settings.command_timeout,
        )

    async def connect(self) -> None:
        if self._pool is not None:
            return
        if not self._dsn:
            raise RuntimeError("DATABASE_URL is required")

        async def _init_connection(conn: asyncpg.Connection) -> None:
            await conn.set_type_codec(
                "json",
                schema="pg_catalog",
                encoder=json.dumps,
                decoder=json.loads,
            )
            await conn.set_type_codec(
                "jsonb",
                schema="pg_catalog",
                encoder=json.dumps,
                decoder=json.loads,
            )

        self._pool = await asyncpg.create_pool(
            dsn=self._dsn,
            min_size=self._min_size,
            max_size=self._max_size,
            command_timeout=self._command_timeout,
            init=_init_connection,
        )

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None

    @property
    def pool(self) -> Pool:
        if self._pool is None:
            raise RuntimeError("Database pool is not initialized")
        return self._pool

    async def query(self, sql: str, values: Sequence[Any] = ()) -> list[asyncpg.Record]:
        """Runs `sql` with `values` bound to `$1..$n` and returns every row."""
        return await self.pool.fetch(sql, *values)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Connection"]:
        """Yields a query handle whose statements commit or roll back together."""
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield Connection(conn)


class Connection:
    """The `query` primitive bound to one acquired connection."""

    def __init__(self, conn: asyncpg.Connection) -> None:
        self._conn = conn

    async def query(self, sql: str, values: Sequence[Any] = ()) -> list[asyncpg.Record]:
        return await self._conn.fetch(sql, *values)


__all__ = ["Database", "Connection"]
