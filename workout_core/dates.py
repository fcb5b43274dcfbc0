# workout_core/dates.py
# =============================================================================
# Calendar helpers for the weekly grid and the monthly view.
# Weeks start on Sunday.
# =============================================================================

from __future__ import annotations

import calendar
import datetime as dt
import re
from datetime import date, datetime, timedelta
from typing import List, Union

from pydantic import BaseModel

from .errors import ValidationError
from .models import WEEKDAYS

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[str, date]


class CalendarDay(BaseModel):
    date: dt.date
    day: int
    current_month: bool
    day_name: str


def parse_date_key(value: DateLike) -> date:
    """Accept a ``date`` or a ``YYYY-MM-DD`` string; reject anything else."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValidationError(f"date must be YYYY-MM-DD format, got {value!r}")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{value} is not a valid calendar date")


def date_key(value: DateLike) -> str:
    return parse_date_key(value).isoformat()


def weekday_name(value: DateLike) -> str:
    d = parse_date_key(value)
    return WEEKDAYS[(d.weekday() + 1) % 7]


def start_of_week(value: DateLike) -> date:
    d = parse_date_key(value)
    return d - timedelta(days=(d.weekday() + 1) % 7)


def end_of_week(value: DateLike) -> date:
    return start_of_week(value) + timedelta(days=6)


def days_of_week(value: DateLike) -> List[date]:
    start = start_of_week(value)
    return [start + timedelta(days=i) for i in range(7)]


def days_between(a: DateLike, b: DateLike) -> int:
    return abs((parse_date_key(b) - parse_date_key(a)).days)


def month_grid(year: int, month: int) -> List[CalendarDay]:
    """Whole weeks covering ``month``, padded with days from adjacent months."""
    first = date(year, month, 1)
    lead = (first.weekday() + 1) % 7
    days_in_month = calendar.monthrange(year, month)[1]
    total = -(-(lead + days_in_month) // 7) * 7
    start = first - timedelta(days=lead)
    cells = []
    for i in range(total):
        d = start + timedelta(days=i)
        cells.append(
            CalendarDay(
                date=d,
                day=d.day,
                current_month=d.month == month and d.year == year,
                day_name=WEEKDAYS[(d.weekday() + 1) % 7],
            )
        )
    return cells


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return f"{hours} hr"
    return f"{hours} hr {rest} min"
