"""
Calendar-date helpers for due dates and event dates.

Due dates are civil dates in the shop's own calendar. They are built from
explicit year/month/day components and never pass through a UTC parse, so a
garment due on 2024-03-15 stays due on 2024-03-15 whatever the server
timezone is.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from seamstress.config import settings
from seamstress.services.errors import ParseError

_DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
_TIMESTAMP_DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})[T ]\d{2}:\d{2}')
_TIME_RE = re.compile(r'^(\d{1,2}):(\d{2})(?::(\d{2}))?$')


def _build_date(year: str, month: str, day: str, raw: str) -> date:
    try:
        return date(int(year), int(month), int(day))
    except ValueError as exc:
        raise ParseError(f'Invalid calendar date: {raw!r}') from exc


def parse_civil_date(value: str) -> date:
    if not isinstance(value, str):
        raise ParseError(f'Expected a YYYY-MM-DD string, got {type(value).__name__}')
    raw = value.strip()
    match = _DATE_RE.match(raw)
    if not match:
        raise ParseError(f'Invalid date format: {value!r} (expected YYYY-MM-DD)')
    return _build_date(*match.groups(), raw=raw)


def parse_optional_civil_date(value: str | None) -> date | None:
    if value is None or not value.strip():
        return None
    return parse_civil_date(value)


def coerce_civil_date(value: date | datetime | str | None) -> date | None:
    """
    Normalize a stored due date to a civil date.

    Timestamps keep their own wall-clock date; an aware datetime is not
    converted to UTC or to the shop zone first.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        match = _DATE_RE.match(raw) or _TIMESTAMP_DATE_RE.match(raw)
        if not match:
            raise ParseError(f'Invalid date value: {value!r}')
        return _build_date(*match.groups(), raw=raw)
    raise ParseError(f'Unsupported date value type: {type(value).__name__}')


def parse_civil_datetime(date_str: str, time_str: str) -> datetime:
    day = parse_civil_date(date_str)
    match = _TIME_RE.match((time_str or '').strip())
    if not match:
        raise ParseError(f'Invalid time format: {time_str!r} (expected HH:MM)')
    hours, minutes, seconds = match.groups()
    try:
        clock = time(int(hours), int(minutes), int(seconds or 0))
    except ValueError as exc:
        raise ParseError(f'Invalid time of day: {time_str!r}') from exc
    return datetime.combine(day, clock)


def format_civil_date(value: date) -> str:
    return f'{value.year:04d}-{value.month:02d}-{value.day:02d}'


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(start: date | datetime, end: date | datetime) -> int:
    return (_as_date(end) - _as_date(start)).days


def today(tz: str | None = None) -> date:
    zone_name = tz if tz is not None else settings.shop_timezone
    if not zone_name:
        return date.today()
    try:
        zone = ZoneInfo(zone_name)
    except ZoneInfoNotFoundError as exc:
        raise ParseError(f'Unknown shop timezone: {zone_name!r}') from exc
    return datetime.now(tz=zone).date()
