"""Timestamp helpers shared by the token protocol and the record store."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_utc(value: datetime) -> str:
    """
    Format a datetime the way browsers do with Date.toISOString(),
    e.g. '2026-10-18T09:30:00.000Z'.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_datetime(value) -> datetime:
    """
    Parse an ISO-8601 string (a trailing 'Z' is accepted) into a datetime.

    Raises:
        ValueError: value is not an ISO-8601 timestamp
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, rounding halves up; 0 when whole is 0."""
    if not whole:
        return 0
    return int(part * 100 / whole + 0.5)


def naive_utc(value: datetime) -> datetime:
    """Session dates are stored and compared as naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
