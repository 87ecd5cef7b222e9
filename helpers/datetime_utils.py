"""Shared utilities for parsing and formatting reminder times."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional


STAMP_FORMAT = "%Y-%m-%d"


def date_stamp(day: date | datetime) -> str:
    """Calendar-day stamp used inside alert identifiers (``YYYY-MM-DD``)."""

    if isinstance(day, datetime):
        day = day.date()
    return day.strftime(STAMP_FORMAT)


def format_time_of_day(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_date_input(value: str | None) -> Optional[date]:
    """Parse ISO ``YYYY-MM-DD`` or ``DD.MM.YYYY`` into a ``date``."""

    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in (STAMP_FORMAT, "%d.%m.%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_time_input(value: str | None, *, now: Optional[datetime] = None) -> Optional[time]:
    """Parse ``HH:MM``, ``HHMM`` or relative ``now+30`` into a time of day."""

    if not value:
        return None
    text = value.strip().lower()
    if not text:
        return None

    if text.startswith("now"):
        parts = text.split("+", 1)
        minutes = _parse_int(parts[1]) if len(parts) == 2 else 0
        base = (now or datetime.now()).replace(second=0, microsecond=0)
        base = base + timedelta(minutes=max(minutes or 0, 0))
        return time(base.hour, base.minute)

    for fmt in ("%H:%M", "%H.%M", "%I:%M %p", "%I:%M%p"):
        try:
            parsed = datetime.strptime(text.upper() if "m" in text else text, fmt)
            return time(parsed.hour, parsed.minute)
        except ValueError:
            continue

    # 930 -> 09:30, 2215 -> 22:15
    if len(text) in {3, 4} and text.isdigit():
        hours = _parse_int(text[:-2])
        minutes = _parse_int(text[-2:])
        if hours is not None and minutes is not None and 0 <= hours <= 23 and 0 <= minutes <= 59:
            return time(hours, minutes)

    return None


def parse_local_datetime(date_value: str | None, time_value: str | None) -> Optional[datetime]:
    """Combine date and time inputs into an aware local datetime."""

    day = parse_date_input(date_value)
    at = parse_time_input(time_value)
    if day is None or at is None:
        return None
    return datetime.combine(day, at).astimezone()


__all__ = [
    "STAMP_FORMAT",
    "date_stamp",
    "format_time_of_day",
    "parse_date_input",
    "parse_local_datetime",
    "parse_time_input",
]
