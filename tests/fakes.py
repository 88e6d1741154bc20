from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from iot_measurements.repositories.base import StatementResult, Transaction

T = TypeVar("T")


@dataclass
class RecordingRepository:
    """Remembers every statement and answers with canned results."""

    results: list[StatementResult] = field(default_factory=list)
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    closed: bool = False

    async def ping(self) -> None:
        await self.execute("SELECT 1")

    async def execute(
        self, statement: str, parameters: Mapping[str, Any] | None = None
    ) -> StatementResult:
        self.calls.append((statement, dict(parameters or {})))
        if self.results:
            return self.results.pop(0)
        return StatementResult()

    async def with_transaction(self, work: Callable[[Transaction], Awaitable[T]]) -> T:
        raise NotImplementedError

    async def close(self) -> None:
        self.closed = True


@dataclass
class FailingRepository:
    error: Exception

    async def ping(self) -> None:
        raise self.error

    async def execute(
        self, statement: str, parameters: Mapping[str, Any] | None = None
    ) -> StatementResult:
        raise self.error

    async def with_transaction(self, work: Callable[[Transaction], Awaitable[T]]) -> T:
        raise self.error

    async def close(self) -> None:
        return None
