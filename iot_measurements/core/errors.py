"""Failure kinds raised by the measurement core.

Every error carries a stable ``kind`` identifier and a message that is safe to
show to API clients. Store diagnostics travel only as the chained
``__cause__``.
"""

from __future__ import annotations


class MeasurementError(Exception):
    kind = "measurement_error"
    default_message = "Measurement operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MeasurementValidationError(MeasurementError):
    """The caller sent a reading that cannot be stored."""

    kind = "validation_error"
    default_message = "Invalid measurement"


class MissingPayload(MeasurementValidationError):
    kind = "missing_payload"
    default_message = "Measurement data is required"


class MissingType(MeasurementValidationError):
    kind = "missing_type"
    default_message = "Field 'tipo' is required"


class MissingValue(MeasurementValidationError):
    kind = "missing_value"
    default_message = "Field 'valor' is required"


class InvalidType(MeasurementValidationError):
    kind = "invalid_type"
    default_message = "Invalid measurement type"


class NonNumericValue(MeasurementValidationError):
    kind = "non_numeric_value"
    default_message = "Field 'valor' must be a finite number"


class ValueOutOfRange(MeasurementValidationError):
    kind = "value_out_of_range"
    default_message = "Field 'valor' is out of range"


class InvalidTimestamp(MeasurementValidationError):
    kind = "invalid_timestamp"
    default_message = "Field 'timestamp' must be an ISO-8601 instant"


class InvalidLimit(MeasurementError):
    kind = "invalid_limit"
    default_message = "Limit must be an integer between 1 and 1000"


class InvalidRetention(MeasurementError):
    kind = "invalid_retention"
    default_message = "Retention age must be a non-negative whole number of days"


class StorageError(MeasurementError):
    """The store could not serve the request; the input itself may be fine."""

    kind = "storage_error"
    default_message = "Measurement store unavailable"


class ConnectionTimeout(StorageError):
    kind = "connection_timeout"
    default_message = "Timed out waiting for a database connection"


class PoolExhausted(StorageError):
    kind = "pool_exhausted"
    default_message = "Too many requests waiting for a database connection"


class QueryFailed(StorageError):
    kind = "query_failed"
    default_message = "Database query failed"


class StoreUnavailable(StorageError):
    kind = "store_unavailable"
    default_message = "Cannot connect to the database"
