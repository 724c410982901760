"""Shared utilities for the news aggregation service."""
import re
from datetime import date, datetime, time, timedelta, timezone

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form stored in the database)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_duration(value: str) -> timedelta:
    """Parse durations such as "7d", "12h", "30m" or "3600" (seconds)."""
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def parse_date_bound(value: str | None, *, upper: bool = False) -> datetime | None:
    """Parse an ISO 8601 date or datetime query value into naive UTC.

    A date-only upper bound ("2024-01-31") covers the whole day, so the range
    stays inclusive on both ends.
    """
    if value is None or not value.strip():
        return None
    raw = value.strip()
    if len(raw) == 10:
        day = date.fromisoformat(raw)
        return datetime.combine(day, time.max if upper else time.min)
    return to_naive_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; store them stripped and lower-cased."""
    return email.strip().lower()


def unique_strings(values: list[str] | None) -> list[str]:
    """Collapse a list of strings into a sorted set, dropping blanks and duplicates."""
    if not values:
        return []
    return sorted({v.strip() for v in values if v and v.strip()})
