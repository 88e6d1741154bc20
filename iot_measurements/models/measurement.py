from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

DEFAULT_DEVICE_ID = 1

MIN_VALUE = -1000.0
MAX_VALUE = 10000.0

MIN_LIMIT = 1
MAX_LIMIT = 1000


class MeasurementType(str, Enum):
    TEMPERATURE = "temperatura"
    GAS = "gas"

    @property
    def unit(self) -> str:
        return _UNITS[self]

    @classmethod
    def parse(cls, raw: object) -> MeasurementType | None:
        """Trimmed, case-insensitive lookup; ``None`` for anything unknown."""
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


_UNITS = {
    MeasurementType.TEMPERATURE: "°C",
    MeasurementType.GAS: "ppm",
}

ACCEPTED_TYPES = tuple(t.value for t in MeasurementType)


@dataclass(frozen=True)
class NormalizedMeasurement:
    device_id: int
    type: MeasurementType
    value: float
    timestamp: str

    def as_payload(self) -> dict[str, object]:
        return {
            "tipo": self.type.value,
            "valor": self.value,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class MeasurementRecord:
    id: int
    device_id: int
    type: str
    value: float
    timestamp: str
    unit: str | None
    display: str


@dataclass(frozen=True)
class FilterCriteria:
    device_id: int | None = None
    type: str | None = None
    date_from: datetime | str | None = None
    date_to: datetime | str | None = None
    limit: int | str | None = None


@dataclass(frozen=True)
class MeasurementStatistics:
    count: int
    devices: int
    avg_temperature: float | None
    avg_gas: float | None
    last_timestamp: str | None


@dataclass(frozen=True)
class PurgeResult:
    removed: int
    cutoff: str
