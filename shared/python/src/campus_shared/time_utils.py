"""
time_utils.py — Timestamp parsing and normalization.

Date-typed attribute values arrive in many shapes from callers:
- ISO date or datetime strings: "2024-01-15", "2024-01-15T09:30:00Z"
- Loose strings: "Jan 15 2024", "15 January 2024 10:00"
- date / datetime objects, naive or timezone-aware

Everything is stored as a naive UTC datetime (DuckDB TIMESTAMP).

Usage:
    from campus_shared.time_utils import parse_datetime, utc_now

    parse_datetime("2024-01-15")               # datetime(2024, 1, 15, 0, 0)
    parse_datetime("2024-01-15T09:30:00+02:00")  # datetime(2024, 1, 15, 7, 30)
    parse_datetime(date(2024, 1, 15))          # datetime(2024, 1, 15, 0, 0)
    parse_datetime("not a date")               # None
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone

from dateutil import parser as date_parser


def to_naive_utc(dt: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive datetimes are returned as-is."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(raw: str | date | datetime | None) -> datetime | None:
    """
    Parse a date-like value into a naive UTC datetime.

    Dates map to midnight. Strings go through dateutil; ISO 8601 is tried
    first so "2024-02-03" is never read day-first.

    Returns None if the value cannot be parsed.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return to_naive_utc(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min)
    if not isinstance(raw, str):
        return None

    s = raw.strip()
    if not s:
        return None

    try:
        return to_naive_utc(date_parser.isoparse(s))
    except ValueError:
        pass
    try:
        return to_naive_utc(date_parser.parse(s))
    except (ValueError, OverflowError):
        return None
