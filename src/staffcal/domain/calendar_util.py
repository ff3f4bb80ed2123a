"""Calendar arithmetic for schedule resolution.

All helpers here are pure functions of their arguments. Weeks run Sunday
through Saturday and weekdays are numbered 0=Sunday..6=Saturday, matching
the numbering used by recurring rules. The ISO-style week number is only
used for every-other-week cadence parity, never for display.
"""

from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

DateLike = Union[date, datetime, str]

SUNDAY = 0
SATURDAY = 6
WEEKEND_DAYS = frozenset({SUNDAY, SATURDAY})

DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


def as_date(value: DateLike) -> date:
    """Normalize a date, datetime or date string to a ``date``.

    Strings may be plain ``YYYY-MM-DD`` keys or full ISO timestamps
    (``2024-02-07T08:00:00Z``); only the calendar-date part is kept.

    Raises:
        ValueError: If a string cannot be parsed as a date.
        TypeError: If the value is not a date, datetime or string.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10 and text[10] in "T ":
            text = text[:10]
        return date.fromisoformat(text)
    raise TypeError(f"Cannot interpret {type(value).__name__} as a date")


def day_of_week(d: date) -> int:
    """Weekday number with 0=Sunday..6=Saturday."""
    return (d.weekday() + 1) % 7


def is_weekend(d: date) -> bool:
    """True for Saturdays and Sundays."""
    return day_of_week(d) in WEEKEND_DAYS


def iso_week_number(d: date) -> int:
    """Week number under the Thursday-anchored ISO 8601 convention.

    The date is shifted to the Thursday of its Monday-based week, then
    weeks are counted from January 1st of that Thursday's year. Dates in
    the last days of December can therefore land in week 1 of the next
    year, and early January dates in week 52 or 53 of the previous one.
    """
    thursday = d + timedelta(days=3 - d.weekday())
    year_start = date(thursday.year, 1, 1)
    return (thursday - year_start).days // 7 + 1


def start_of_week(d: date) -> date:
    """The Sunday on or before ``d``."""
    return d - timedelta(days=day_of_week(d))


def end_of_week(d: date) -> date:
    """The Saturday on or after ``d``."""
    return start_of_week(d) + timedelta(days=6)


def start_of_month(d: date) -> date:
    """First day of the month containing ``d``."""
    return d.replace(day=1)


def end_of_month(d: date) -> date:
    """Last day of the month containing ``d``."""
    return d.replace(day=monthrange(d.year, d.month)[1])


def days_in_month(d: date) -> int:
    """Number of days in the month containing ``d``."""
    return monthrange(d.year, d.month)[1]


def leading_blank_days(d: date) -> int:
    """Grid cells before the 1st of ``d``'s month in a Sunday-first week."""
    return day_of_week(start_of_month(d))


def to_date_key(d: DateLike) -> str:
    """``YYYY-MM-DD`` key used to look up day schedule documents."""
    return as_date(d).isoformat()


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def week_dates(any_date: date) -> list[date]:
    """The seven dates (Sunday..Saturday) of the week containing ``any_date``."""
    return list(iter_dates(start_of_week(any_date), end_of_week(any_date)))


def month_dates(any_date: date) -> list[date]:
    """Every date of the month containing ``any_date``."""
    return list(iter_dates(start_of_month(any_date), end_of_month(any_date)))


def holiday_name(d: date) -> Optional[str]:
    """Name of the company holiday falling on ``d``, if any."""
    weekday = day_of_week(d)

    if d.month == 1 and d.day == 1:
        return "New Year's Day"
    if d.month == 7 and d.day == 4:
        return "Independence Day"
    if d.month == 12 and d.day == 25:
        return "Christmas Day"
    # Last Monday of May
    if d.month == 5 and weekday == 1 and d.day > 24:
        return "Memorial Day"
    # First Monday of September
    if d.month == 9 and weekday == 1 and d.day <= 7:
        return "Labor Day"
    # Fourth Thursday of November
    if d.month == 11 and weekday == 4 and 22 <= d.day <= 28:
        return "Thanksgiving"

    return None
