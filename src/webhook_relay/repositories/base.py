"""Shared asyncpg helpers for repositories."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable

import asyncpg  # type: ignore[import-untyped]

from webhook_relay.core.exceptions import DuplicateError, StorageError

_DRIVER_ERRORS = (
    asyncpg.exceptions.PostgresError,
    asyncpg.exceptions.InterfaceError,
    OSError,
)


class BaseRepository:
    """Thin wrapper over asyncpg pool operations.

    Unique violations surface as :class:`DuplicateError` carrying the
    constraint name; every other driver failure becomes :class:`StorageError`.
    """

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except asyncpg.exceptions.UniqueViolationError as exc:
            raise DuplicateError(exc.constraint_name or "unique") from exc
        except _DRIVER_ERRORS as exc:
            raise StorageError() from exc

    async def _fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        async with self._connection() as conn:
            return await conn.fetchrow(query, *args)

    async def _fetch(self, query: str, *args: Any) -> Iterable[asyncpg.Record]:
        async with self._connection() as conn:
            return await conn.fetch(query, *args)

    async def _execute(self, query: str, *args: Any) -> str:
        async with self._connection() as conn:
            return await conn.execute(query, *args)
