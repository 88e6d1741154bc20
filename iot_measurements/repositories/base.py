from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class StatementResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0
    inserted_id: int | None = None


class Transaction(Protocol):
    async def execute(
        self, statement: str, parameters: Mapping[str, Any] | None = None
    ) -> StatementResult: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class MeasurementRepository(Protocol):
    async def ping(self) -> None: ...

    async def execute(
        self, statement: str, parameters: Mapping[str, Any] | None = None
    ) -> StatementResult: ...

    async def with_transaction(self, work: Callable[[Transaction], Awaitable[T]]) -> T: ...

    async def close(self) -> None: ...
