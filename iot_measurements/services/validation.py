from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from iot_measurements.core.errors import (
    InvalidTimestamp,
    InvalidType,
    MissingPayload,
    MissingType,
    MissingValue,
    NonNumericValue,
    ValueOutOfRange,
)
from iot_measurements.core.timestamps import normalize_iso_instant, to_iso_instant, utc_now
from iot_measurements.models.measurement import (
    ACCEPTED_TYPES,
    DEFAULT_DEVICE_ID,
    MAX_VALUE,
    MIN_VALUE,
    MeasurementType,
    NormalizedMeasurement,
)


def _first_present(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _out_of_range() -> ValueOutOfRange:
    return ValueOutOfRange(
        f"Value is out of the allowed range ({MIN_VALUE:g} to {MAX_VALUE:g})"
    )


def coerce_value(raw: Any) -> float:
    if isinstance(raw, bool):
        raise NonNumericValue()
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError as e:
            raise _out_of_range() from e
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except (ValueError, OverflowError) as e:
            raise NonNumericValue() from e
    else:
        raise NonNumericValue()
    if not math.isfinite(value):
        raise NonNumericValue()
    return value


class MeasurementValidator:
    """Checks a raw ingestion payload and returns its normalized form.

    The payload uses the device wire names (``tipo``, ``valor``,
    ``timestamp``); ``type`` and ``value`` are accepted as well.
    """

    def validate(
        self, raw: Mapping[str, Any] | None, *, now: datetime | None = None
    ) -> NormalizedMeasurement:
        if raw is None or not isinstance(raw, Mapping):
            raise MissingPayload()

        raw_type = _first_present(raw, "tipo", "type")
        if raw_type is None or raw_type == "":
            raise MissingType()

        raw_value = _first_present(raw, "valor", "value")
        if raw_value is None:
            raise MissingValue()

        measurement_type = MeasurementType.parse(raw_type)
        if measurement_type is None:
            raise InvalidType(
                f"Invalid measurement type. Must be one of: {', '.join(ACCEPTED_TYPES)}"
            )

        value = coerce_value(raw_value)
        if value < MIN_VALUE or value > MAX_VALUE:
            raise _out_of_range()

        return NormalizedMeasurement(
            device_id=DEFAULT_DEVICE_ID,
            type=measurement_type,
            value=value,
            timestamp=self._timestamp(raw.get("timestamp"), now),
        )

    @staticmethod
    def _timestamp(raw: Any, now: datetime | None) -> str:
        if raw is None or raw == "":
            return to_iso_instant(now or utc_now())
        if not isinstance(raw, (str, datetime)):
            raise InvalidTimestamp()
        try:
            return normalize_iso_instant(raw)
        except ValueError as e:
            raise InvalidTimestamp() from e
