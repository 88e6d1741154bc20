from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def to_iso_instant(dt: datetime) -> str:
    """Fixed-width UTC text, e.g. ``2026-10-16T12:00:00.000Z``.

    Stored timestamps are compared as text, so every value must share this
    exact shape for string order to match time order.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_instant(value: str | datetime) -> datetime:
    """Aware UTC datetime; naive input is taken as UTC.

    Raises ``ValueError`` for text that is not ISO-8601 and for instants that
    fall outside the representable range once shifted to UTC.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"instant out of range: {value!r}") from e


def normalize_iso_instant(value: str | datetime) -> str:
    return to_iso_instant(parse_iso_instant(value))
