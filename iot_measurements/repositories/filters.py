from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from iot_measurements.core.timestamps import normalize_iso_instant
from iot_measurements.models.measurement import (
    MAX_LIMIT,
    MIN_LIMIT,
    FilterCriteria,
    MeasurementType,
)

ORDER_BY = "timestamp DESC, id DESC"


def parse_limit(raw: Any) -> int | None:
    """Integer in [1, 1000], or ``None`` when absent or unusable."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if not raw.is_integer():
            return None
        raw = int(raw)
    if isinstance(raw, str):
        try:
            raw = int(raw.strip())
        except ValueError:
            return None
    if not isinstance(raw, int):
        return None
    if raw < MIN_LIMIT or raw > MAX_LIMIT:
        return None
    return raw


def _placeholder(index: int) -> str:
    return f":p{index}"


@dataclass(frozen=True)
class QueryFilter:
    predicate: str
    parameters: list[Any] = field(default_factory=list)
    limit: int | None = None
    order_by: str = ORDER_BY

    def bind_params(self) -> dict[str, Any]:
        return {f"p{i}": value for i, value in enumerate(self.parameters)}

    def render(self, select_list: str, table: str) -> str:
        sql = f"SELECT {select_list} FROM {table}"
        if self.predicate:
            sql += f" WHERE {self.predicate}"
        sql += f" ORDER BY {self.order_by}"
        if self.limit is not None:
            sql += f" LIMIT {_placeholder(len(self.parameters) - 1)}"
        return sql


class QueryFilterBuilder:
    """Turns optional filter criteria into a WHERE fragment plus bound values.

    Caller values only ever travel as bound parameters. Unknown measurement
    types and out-of-range limits are dropped rather than rejected. A date
    bound that is present always adds its clause: ISO-8601 input is normalized
    to the stored UTC form, anything else is bound as the text it arrived as.
    """

    def build(self, criteria: FilterCriteria | None = None) -> QueryFilter:
        criteria = criteria or FilterCriteria()
        clauses: list[str] = []
        parameters: list[Any] = []

        def add(column_test: str, value: Any) -> None:
            clauses.append(f"{column_test} {_placeholder(len(parameters))}")
            parameters.append(value)

        if criteria.device_id is not None:
            add("device_id =", criteria.device_id)

        if criteria.type is not None:
            measurement_type = MeasurementType.parse(criteria.type)
            if measurement_type is not None:
                add("type =", measurement_type.value)

        date_from = _instant_or_raw(criteria.date_from)
        if date_from is not None:
            add("timestamp >=", date_from)

        date_to = _instant_or_raw(criteria.date_to)
        if date_to is not None:
            add("timestamp <=", date_to)

        predicate = " AND ".join(clauses)

        limit = parse_limit(criteria.limit)
        if limit is not None:
            parameters.append(limit)

        return QueryFilter(predicate=predicate, parameters=parameters, limit=limit)


def _instant_or_raw(value: datetime | str | None) -> str | None:
    if value is None or value == "":
        return None
    try:
        return normalize_iso_instant(value)
    except (AttributeError, TypeError, ValueError):
        return str(value).strip()
