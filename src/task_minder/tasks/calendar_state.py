# src/task_minder/tasks/calendar_state.py

from __future__ import annotations

"""
Calendar selection: the (year, month, day) cursor of the tasks screen.

The selection only holds state. Whoever needs to react to it (the task list
session publishing date keys) registers a listener; the selection does not
know who is listening.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from .date_keys import MONTH_NAMES, format_date_key, weekdays_and_days, zero_pad

logger = logging.getLogger(__name__)

SelectionListener = Callable[["CalendarSelection"], None]

MIN_YEAR = 1900
MAX_YEAR = 2100


@dataclass
class CalendarSelection:
    selected_year: int
    selected_month_index: int
    # Raw value as selected; padded only when used as key/display.
    selected_day_in_month: str
    weekdays_and_days_in_month: list[tuple[str, str]] = field(default_factory=list)

    _listeners: list[SelectionListener] = field(default_factory=list, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._update_days_in_month()

    @classmethod
    def today(cls, today: date | None = None) -> CalendarSelection:
        d = today or date.today()
        return cls(
            selected_year=d.year,
            selected_month_index=d.month - 1,
            selected_day_in_month=str(d.day),
        )

    # ---- derived ----

    @property
    def date_key(self) -> str:
        return format_date_key(
            self.selected_month_index, self.selected_day_in_month, self.selected_year
        )

    @property
    def day_label(self) -> str:
        return zero_pad(self.selected_day_in_month)

    @property
    def selected_month(self) -> str:
        return MONTH_NAMES[self.selected_month_index]

    # ---- observers ----

    def add_listener(self, listener: SelectionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SelectionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ---- mutations ----

    def set_year(self, year: int) -> None:
        # [MIN_YEAR, MAX_YEAR] is a UI constraint; not enforced here.
        self.selected_year = int(year)
        self._update_days_in_month()
        self._notify()

    def next_month(self) -> None:
        # No rollover into the next year.
        if self.selected_month_index < 11:
            self.selected_month_index += 1
            self._update_days_in_month()
            self._notify()

    def previous_month(self) -> None:
        if self.selected_month_index > 0:
            self.selected_month_index -= 1
            self._update_days_in_month()
            self._notify()

    def select(self, d: date) -> None:
        """Jump to a calendar date (the "today" shortcut)."""
        self.selected_year = d.year
        self.selected_month_index = d.month - 1
        self.selected_day_in_month = str(d.day)
        self._update_days_in_month()
        self._notify()

    def set_day_in_month(self, day: str) -> None:
        # No bounds check: "31" in February simply matches no tasks.
        self.selected_day_in_month = str(day)
        self._notify()

    def _update_days_in_month(self) -> None:
        self.weekdays_and_days_in_month = weekdays_and_days(
            self.selected_year, self.selected_month_index
        )
        logger.debug(
            "Calendar %s %s: %d days",
            self.selected_month,
            self.selected_year,
            len(self.weekdays_and_days_in_month),
        )
