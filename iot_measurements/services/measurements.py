from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta
from typing import Any

from iot_measurements.core.errors import (
    InvalidLimit,
    InvalidRetention,
    MeasurementValidationError,
    StorageError,
    StoreUnavailable,
)
from iot_measurements.core.timestamps import to_iso_instant, utc_now
from iot_measurements.models.measurement import (
    MAX_LIMIT,
    MIN_LIMIT,
    FilterCriteria,
    MeasurementRecord,
    MeasurementStatistics,
    MeasurementType,
    PurgeResult,
)
from iot_measurements.repositories.base import MeasurementRepository
from iot_measurements.repositories.filters import QueryFilterBuilder
from iot_measurements.repositories.schema import SELECT_COLUMNS, TABLE_NAME
from iot_measurements.services.validation import MeasurementValidator

logger = logging.getLogger(__name__)

INSERT_MEASUREMENT = (
    f"INSERT INTO {TABLE_NAME} (device_id, type, value, timestamp) "
    "VALUES (:device_id, :type, :value, :timestamp)"
)

SELECT_STATISTICS = f"""
SELECT
    COUNT(*) AS total,
    COUNT(DISTINCT device_id) AS devices,
    AVG(CASE WHEN type = :temperature THEN value END) AS avg_temperature,
    AVG(CASE WHEN type = :gas THEN value END) AS avg_gas,
    MAX(timestamp) AS last_timestamp
FROM {TABLE_NAME}
"""

DELETE_OLDER_THAN = f"DELETE FROM {TABLE_NAME} WHERE timestamp < :cutoff"


def format_record(row: Mapping[str, Any]) -> MeasurementRecord:
    value = float(row["value"])
    measurement_type = MeasurementType.parse(row["type"])
    unit = measurement_type.unit if measurement_type else None
    # Adding 0.0 turns a rounded -0.0 into 0.0.
    display = f"{round(value, 2) + 0.0:g}"
    if unit:
        display = f"{display} {unit}"
    return MeasurementRecord(
        id=int(row["id"]),
        device_id=int(row["device_id"]),
        type=str(row["type"]),
        value=value,
        timestamp=str(row["timestamp"]),
        unit=unit,
        display=display,
    )


def _round_or_none(value: Any) -> float | None:
    if value is None:
        return None
    return round(float(value), 2)


class MeasurementService:
    def __init__(
        self,
        repo: MeasurementRepository,
        *,
        validator: MeasurementValidator | None = None,
        filter_builder: QueryFilterBuilder | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo = repo
        self._validator = validator or MeasurementValidator()
        self._filters = filter_builder or QueryFilterBuilder()
        self._clock = clock

    async def ingest(self, raw: Mapping[str, Any] | None) -> MeasurementRecord:
        try:
            measurement = self._validator.validate(raw, now=self._clock())
        except MeasurementValidationError as e:
            logger.info("Rejected measurement: %s", e.message, extra={"kind": e.kind})
            raise

        try:
            result = await self._repo.execute(
                INSERT_MEASUREMENT,
                {
                    "device_id": measurement.device_id,
                    "type": measurement.type.value,
                    "value": measurement.value,
                    "timestamp": measurement.timestamp,
                },
            )
        except StorageError as e:
            logger.error("Could not store measurement", extra={"kind": e.kind})
            raise

        record = format_record(
            {
                "id": result.inserted_id,
                "device_id": measurement.device_id,
                "type": measurement.type.value,
                "value": measurement.value,
                "timestamp": measurement.timestamp,
            }
        )
        logger.info(
            "Stored measurement",
            extra={"measurement_id": record.id, "measurement_type": record.type},
        )
        return record

    async def query(self, criteria: FilterCriteria | None = None) -> list[MeasurementRecord]:
        query_filter = self._filters.build(criteria)
        statement = query_filter.render(SELECT_COLUMNS, TABLE_NAME)
        try:
            result = await self._repo.execute(statement, query_filter.bind_params())
        except StorageError as e:
            logger.error("Measurement query failed", extra={"kind": e.kind})
            raise
        logger.debug("Measurement query", extra={"rows": len(result.rows)})
        return [format_record(row) for row in result.rows]

    async def recent(self, n: int = 50) -> list[MeasurementRecord]:
        if isinstance(n, bool) or not isinstance(n, int) or not MIN_LIMIT <= n <= MAX_LIMIT:
            raise InvalidLimit()
        return await self.query(FilterCriteria(limit=n))

    async def latest(self) -> MeasurementRecord | None:
        rows = await self.recent(1)
        return rows[0] if rows else None

    async def statistics(self) -> MeasurementStatistics:
        try:
            result = await self._repo.execute(
                SELECT_STATISTICS,
                {"temperature": MeasurementType.TEMPERATURE.value, "gas": MeasurementType.GAS.value},
            )
        except StorageError as e:
            logger.error("Statistics query failed", extra={"kind": e.kind})
            raise

        row = result.rows[0] if result.rows else {}
        last_timestamp = row.get("last_timestamp")
        return MeasurementStatistics(
            count=int(row.get("total") or 0),
            devices=int(row.get("devices") or 0),
            avg_temperature=_round_or_none(row.get("avg_temperature")),
            avg_gas=_round_or_none(row.get("avg_gas")),
            last_timestamp=str(last_timestamp) if last_timestamp is not None else None,
        )

    async def purge(self, age_days: int = 30) -> PurgeResult:
        if isinstance(age_days, bool) or not isinstance(age_days, int) or age_days < 0:
            raise InvalidRetention()

        cutoff = to_iso_instant(self._clock() - timedelta(days=age_days))
        try:
            result = await self._repo.execute(DELETE_OLDER_THAN, {"cutoff": cutoff})
        except StorageError as e:
            logger.error("Retention cleanup failed", extra={"kind": e.kind, "cutoff": cutoff})
            raise

        removed = max(result.rowcount, 0)
        logger.info("Retention cleanup", extra={"removed": removed, "cutoff": cutoff})
        return PurgeResult(removed=removed, cutoff=cutoff)

    async def check_store_health(self) -> None:
        try:
            await self._repo.ping()
        except StoreUnavailable:
            raise
        except StorageError as e:
            raise StoreUnavailable() from e
