from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from iot_measurements.core.errors import (
    ConnectionTimeout,
    PoolExhausted,
    QueryFailed,
    StoreUnavailable,
)
from iot_measurements.repositories.base import StatementResult, Transaction
from iot_measurements.repositories.schema import metadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _run(
    conn: AsyncConnection, statement: str, parameters: Mapping[str, Any] | None
) -> StatementResult:
    try:
        result = await conn.execute(text(statement), dict(parameters or {}))
    except sa_exc.SQLAlchemyError as e:
        logger.error("Statement failed: %s", type(e).__name__)
        raise QueryFailed() from e

    if result.returns_rows:
        rows = [dict(row) for row in result.mappings().all()]
        return StatementResult(rows=rows, rowcount=len(rows))

    inserted_id = None
    if statement.lstrip()[:6].upper() == "INSERT":
        inserted_id = result.lastrowid
    return StatementResult(rowcount=result.rowcount, inserted_id=inserted_id)


class SqlTransaction:
    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def execute(
        self, statement: str, parameters: Mapping[str, Any] | None = None
    ) -> StatementResult:
        return await _run(self._conn, statement, parameters)

    async def commit(self) -> None:
        try:
            await self._conn.commit()
        except sa_exc.SQLAlchemyError as e:
            raise QueryFailed() from e

    async def rollback(self) -> None:
        try:
            await self._conn.rollback()
        except sa_exc.SQLAlchemyError as e:
            raise QueryFailed() from e


class SqlMeasurementRepository:
    """Runs parameterized statements on a pooled async SQLAlchemy engine.

    ``max_pending`` caps how many callers may wait for a connection on top of
    ``pool_size`` busy ones; ``None`` leaves the wait queue unbounded.
    """

    def __init__(
        self,
        *,
        engine: AsyncEngine,
        pool_size: int = 10,
        max_pending: int | None = None,
    ) -> None:
        self._engine = engine
        self._capacity = None if max_pending is None else pool_size + max_pending
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        if self._capacity is not None and self._in_flight >= self._capacity:
            raise PoolExhausted()
        self._in_flight += 1
        try:
            try:
                conn = await self._engine.connect()
            except sa_exc.TimeoutError as e:
                logger.warning("Timed out waiting for a pooled connection")
                raise ConnectionTimeout() from e
            except (sa_exc.SQLAlchemyError, OSError) as e:
                logger.error("Cannot connect to database: %s", type(e).__name__)
                raise StoreUnavailable() from e
            try:
                yield conn
            finally:
                await conn.close()
        finally:
            self._in_flight -= 1

    async def ping(self) -> None:
        await self.execute("SELECT 1")

    async def execute(
        self, statement: str, parameters: Mapping[str, Any] | None = None
    ) -> StatementResult:
        async with self._connection() as conn:
            result = await _run(conn, statement, parameters)
            try:
                await conn.commit()
            except sa_exc.SQLAlchemyError as e:
                raise QueryFailed() from e
            return result

    async def with_transaction(self, work: Callable[[Transaction], Awaitable[T]]) -> T:
        async with self._connection() as conn:
            try:
                await conn.begin()
            except sa_exc.SQLAlchemyError as e:
                raise QueryFailed() from e
            # Work left uncommitted is discarded when the connection is released.
            return await work(SqlTransaction(conn))

    async def create_schema(self) -> None:
        async with self._connection() as conn:
            try:
                await conn.run_sync(metadata.create_all)
                await conn.commit()
            except sa_exc.SQLAlchemyError as e:
                raise QueryFailed() from e
        logger.info("Measurement schema ready")

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("Database pool closed")
