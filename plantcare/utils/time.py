"""Utility functions for time handling and wall-clock alignment."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Return current local time as an aware datetime."""
    return datetime.now().astimezone()


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def floor_minute(dt: datetime) -> datetime:
    return dt.replace(second=0, microsecond=0)


def floor_hour(dt: datetime) -> datetime:
    return dt.replace(minute=0, second=0, microsecond=0)


def minute_label(now: datetime) -> int:
    """Minute-of-hour a minute tick fired at *now* stands for."""
    return (now + timedelta(seconds=30)).minute


def hour_label(now: datetime) -> int:
    """Hour-of-day an hourly tick fired at *now* stands for."""
    return (now + timedelta(minutes=30)).hour


def next_minute_boundary(now: datetime) -> datetime:
    return floor_minute(now + timedelta(seconds=90))


def next_hour_boundary(now: datetime) -> datetime:
    return floor_hour(now + timedelta(minutes=90))


def epoch_day(now: datetime) -> int:
    """Whole days since the Unix epoch."""
    return int(now.timestamp()) // 86400
