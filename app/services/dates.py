from __future__ import annotations

import re
from datetime import date, datetime, timedelta

_ONE_DAY = timedelta(days=1)
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def previous_day(day: date) -> date:
    return day - _ONE_DAY


def next_day(day: date) -> date:
    return day + _ONE_DAY


def neighbour_days(day: date) -> tuple[date, date]:
    """Return (day - 1, day + 1) across month and year boundaries."""
    return previous_day(day), next_day(day)


def days_until(target: date, *, as_of: date) -> int:
    return (target - as_of).days


def parse_iso_date(value: object) -> date:
    """Accept only calendar dates written as YYYY-MM-DD."""
    if isinstance(value, datetime):
        raise ValueError("expected a date without a time component")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or _ISO_DATE.fullmatch(value) is None:
        raise ValueError("date must be formatted as YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"invalid calendar date: {value}") from exc
