"""Date helpers for event dates and log timestamps."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone

_ISO_DAY = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)


def parse_strict_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` exactly; no overflow, no trailing characters."""
    match = _ISO_DAY.fullmatch(value or "")
    if match is None:
        raise ValueError(f"Invalid date {value!r}")
    year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)


def days_before(day: date, days: int) -> str:
    return (day - timedelta(days=days)).isoformat()


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


def generate_run_id() -> str:
    now = datetime.now(tz=timezone.utc)
    return now.strftime("run-%Y%m%dT%H%M%S%fZ")
