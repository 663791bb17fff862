from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Optional, Sequence

import aiosqlite

from personal_os.domain.common.errors import StorageError


class Database:
    """
    Async SQLite helper:
    - opens a new connection per operation (simple + safe)
    - sets row_factory to aiosqlite.Row
    - enables WAL + foreign keys
    - wraps write failures in StorageError
    """

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(self._path) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys=ON;")
            yield db

    async def executescript(self, sql: str) -> None:
        try:
            async with self._connect() as db:
                await db.execute("PRAGMA journal_mode=WAL;")
                await db.executescript(sql)
                await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Schema update failed: {e}") from e

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one write; returns the number of affected rows."""
        try:
            async with self._connect() as db:
                cur = await db.execute(sql, params)
                await db.commit()
                return cur.rowcount
        except aiosqlite.Error as e:
            raise StorageError(f"Write failed: {e}") from e

    async def executemany(self, sql: str, seq_of_params: Iterable[Sequence[Any]]) -> None:
        """All rows in one transaction: on error nothing is committed."""
        try:
            async with self._connect() as db:
                await db.executemany(sql, seq_of_params)
                await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Batch write failed: {e}") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Connection for several statements committed together, rolled back on any error."""
        try:
            async with self._connect() as db:
                try:
                    yield db
                except BaseException:
                    await db.rollback()
                    raise
                await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Transaction failed: {e}") from e

    async def fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[aiosqlite.Row]:
        async with self._connect() as db:
            cur = await db.execute(sql, params)
            return await cur.fetchone()

    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[aiosqlite.Row]:
        async with self._connect() as db:
            cur = await db.execute(sql, params)
            return list(await cur.fetchall())
