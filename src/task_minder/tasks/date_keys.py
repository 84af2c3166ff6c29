# src/task_minder/tasks/date_keys.py

"""
Date keys and calendar helpers.

A date key is the canonical "MM/dd/yyyy" string (zero-padded month and day)
used to shard tasks per day. Keys are opaque calendar-local strings: no
timezone math is done anywhere.
"""

from __future__ import annotations

import calendar
from datetime import datetime

DATE_KEY_FORMAT = "%m/%d/%Y"
DUE_TIME_FORMAT = "%H:%M"

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def zero_pad(value: int | str) -> str:
    """'5' -> '05', '10' -> '10'."""
    return str(value).strip().rjust(2, "0")


def clock_pattern(n: int) -> str:
    return "%02d" % n


def format_date_key(month_index: int, day: int | str, year: int) -> str:
    return f"{zero_pad(month_index + 1)}/{zero_pad(day)}/{year}"


def format_due_time(hour: int, minute: int) -> str:
    return f"{clock_pattern(hour)}:{clock_pattern(minute)}"


def millis_to_date_key(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000).strftime(DATE_KEY_FORMAT)


def date_key_to_millis(date_key: str) -> int:
    """Local midnight of `date_key`. Raises ValueError on malformed input."""
    dt = datetime.strptime(date_key.strip(), DATE_KEY_FORMAT)
    return int(dt.timestamp() * 1000)


def date_time_to_millis(date_key: str, due_time: str) -> int:
    """Combine a date key and an 'HH:mm' time. Raises ValueError on malformed input."""
    dt = datetime.strptime(
        f"{date_key.strip()} {due_time.strip()}", f"{DATE_KEY_FORMAT} {DUE_TIME_FORMAT}"
    )
    return int(dt.timestamp() * 1000)


def days_in_month(year: int, month_index: int) -> int:
    return calendar.monthrange(year, month_index + 1)[1]


def weekdays_and_days(year: int, month_index: int) -> list[tuple[str, str]]:
    """
    One (short weekday name, zero-padded day) pair per day of the month,
    ascending. Weekday names follow the current LC_TIME locale.
    """
    month = month_index + 1
    out: list[tuple[str, str]] = []
    for day in range(1, days_in_month(year, month_index) + 1):
        weekday = calendar.weekday(year, month, day)
        out.append((calendar.day_abbr[weekday], zero_pad(day)))
    return out
