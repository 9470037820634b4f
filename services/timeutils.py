"""Timestamp helpers. Everything is stored as naive UTC in the database."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ms_to_naive_utc(ms: Any) -> datetime:
    """ms (epoch) -> naive UTC datetime

    Out-of-range values (huge numbers, inf, nan) raise ValueError like any
    other bad input.
    """
    try:
        return datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"Invalid timestamp: {ms!r}") from exc


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 string, a date, or epoch milliseconds into naive UTC.

    Strings without an offset are taken to already be UTC.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("Expected a timestamp")
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return ms_to_naive_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Expected a timestamp")

    text = value.strip()
    if text.lstrip("-").isdigit():
        return ms_to_naive_utc(text)
    try:
        parsed = date_parser.isoparse(text)
    except (ValueError, TypeError, OverflowError):
        try:
            parsed = date_parser.parse(text)
        except (ValueError, TypeError, OverflowError) as exc:
            raise ValueError(f"Invalid timestamp: {value!r}") from exc
    return to_naive_utc(parsed)


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    """naive UTC datetime -> '2025-01-06T09:00:00Z'"""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")
