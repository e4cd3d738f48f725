"""Helpers for reading and writing persisted JSON records."""

from datetime import datetime


def put_optional(record: dict[str, object], key: str, value: object) -> None:
    """Set ``key`` only when ``value`` is present."""
    if value is not None:
        record[key] = value


def optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def optional_int(value: object) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def optional_float(value: object) -> float | None:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return float(value)
    return None


def parse_date(value: object) -> datetime:
    """Parse an ISO-8601 timestamp as written by any version of the store."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        # Older records carry a trailing "Z" instead of an offset.
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    raise ValueError("Record is missing a valid date")
