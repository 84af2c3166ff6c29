# tests/test_calendar_state.py

from __future__ import annotations

from datetime import date

from task_minder.tasks.calendar_state import CalendarSelection


def _selection() -> tuple[CalendarSelection, list[str]]:
    sel = CalendarSelection.today(date(2024, 2, 10))
    seen: list[str] = []
    sel.add_listener(lambda s: seen.append(s.date_key))
    return sel, seen


def test_today_initializes_selection_and_day_list() -> None:
    sel = CalendarSelection.today(date(2024, 2, 10))

    assert sel.date_key == "02/10/2024"
    assert sel.selected_month == "February"
    assert sel.day_label == "10"
    assert len(sel.weekdays_and_days_in_month) == 29


def test_set_day_stores_raw_value_and_pads_key() -> None:
    sel, seen = _selection()

    sel.set_day_in_month("5")

    assert sel.selected_day_in_month == "5"
    assert sel.date_key == "02/05/2024"
    assert seen == ["02/05/2024"]


def test_month_navigation_stops_at_year_bounds() -> None:
    sel = CalendarSelection.today(date(2024, 12, 1))
    seen: list[str] = []
    sel.add_listener(lambda s: seen.append(s.date_key))

    sel.next_month()
    assert sel.selected_month_index == 11
    assert seen == []

    jan = CalendarSelection.today(date(2024, 1, 1))
    jan.add_listener(lambda s: seen.append(s.date_key))
    jan.previous_month()
    assert jan.selected_month_index == 0
    assert seen == []


def test_month_change_recomputes_days_without_clamping_the_day() -> None:
    sel = CalendarSelection.today(date(2024, 1, 31))
    sel.next_month()

    assert sel.selected_month == "February"
    assert len(sel.weekdays_and_days_in_month) == 29
    # The day is kept as is; "02/31/2024" simply matches no tasks.
    assert sel.date_key == "02/31/2024"

    sel.previous_month()
    assert sel.date_key == "01/31/2024"
    assert len(sel.weekdays_and_days_in_month) == 31


def test_set_year_recomputes_and_notifies() -> None:
    sel, seen = _selection()

    sel.set_year(2023)

    assert len(sel.weekdays_and_days_in_month) == 28
    assert seen == ["02/10/2023"]


def test_removed_listener_is_not_called() -> None:
    sel = CalendarSelection.today(date(2024, 2, 10))
    seen: list[str] = []

    def listener(s: CalendarSelection) -> None:
        seen.append(s.date_key)

    sel.add_listener(listener)
    sel.remove_listener(listener)
    sel.set_day_in_month("11")

    assert seen == []


def test_select_jumps_to_date_and_notifies_once() -> None:
    sel, seen = _selection()

    sel.select(date(2025, 12, 24))

    assert sel.date_key == "12/24/2025"
    assert sel.selected_month == "December"
    assert len(sel.weekdays_and_days_in_month) == 31
    assert seen == ["12/24/2025"]
