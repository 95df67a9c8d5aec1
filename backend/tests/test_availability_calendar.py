from datetime import date

import pytest

from app.services.availability_calendar import (
    DateSelection,
    DayStatus,
    MonthCalendar,
    build_month_calendar,
    normalize_days_off,
    parse_month,
    resolve_day_status,
)


def test_precedence_booked_over_blocked_over_dayoff():
    assert resolve_day_status(is_dayoff=True, is_blocked=True, booking_count=1) == DayStatus.BOOKED
    assert resolve_day_status(is_dayoff=True, is_blocked=True, booking_count=0) == DayStatus.BLOCKED
    assert resolve_day_status(is_dayoff=True, is_blocked=False, booking_count=0) == DayStatus.DAYOFF
    assert resolve_day_status(is_dayoff=False, is_blocked=False, booking_count=0) == DayStatus.AVAILABLE


def test_sunday_off_blocked_tenth_booked_fifteenth():
    # March 2025 starts on a Saturday; the 2nd is a Sunday.
    cal = build_month_calendar(
        2025,
        3,
        days_off={"Sun": True},
        blocked_dates=[date(2025, 3, 10)],
        booking_dates=[date(2025, 3, 15)],
    )
    assert cal.status_of("2025-03-02") == DayStatus.DAYOFF
    assert cal.status_of("2025-03-10") == DayStatus.BLOCKED
    assert cal.status_of("2025-03-15") == DayStatus.BOOKED
    assert cal.status_of("2025-03-11") == DayStatus.AVAILABLE
    assert len(cal.days) == 31


def test_booking_on_blocked_dayoff_is_still_booked():
    # 2025-03-09 is a Sunday
    cal = build_month_calendar(
        2025,
        3,
        days_off={"Sunday": True},
        blocked_dates=[date(2025, 3, 9)],
        booking_dates=[date(2025, 3, 9), date(2025, 3, 9)],
    )
    day = cal.day(date(2025, 3, 9))
    assert day.status == DayStatus.BOOKED
    assert day.booking_count == 2
    assert day.selectable


def test_no_settings_means_every_day_available():
    cal = build_month_calendar(2025, 2)
    assert len(cal.days) == 28
    assert all(d.status == DayStatus.AVAILABLE for d in cal.days)
    assert cal.counts == {"available": 28, "booked": 0, "blocked": 0, "dayoff": 0}


def test_sunday_first_grid_blanks():
    # 2025-03-01 is a Saturday: six blanks before it, 37 cells -> 5 trailing.
    cal = build_month_calendar(2025, 3)
    assert cal.leading_blanks == 6
    assert cal.trailing_blanks == 5
    assert (cal.leading_blanks + len(cal.days) + cal.trailing_blanks) % 7 == 0
    # 2026-02-01 is a Sunday and February 2026 fills four full weeks.
    feb = build_month_calendar(2026, 2)
    assert feb.leading_blanks == 0
    assert feb.trailing_blanks == 0


def test_inputs_outside_month_are_ignored():
    cal = build_month_calendar(
        2025,
        3,
        blocked_dates=[date(2025, 4, 1)],
        booking_dates=[date(2025, 2, 28)],
    )
    assert cal.counts["blocked"] == 0
    assert cal.counts["booked"] == 0


def test_normalize_days_off_accepts_full_and_lowercase_names():
    assert normalize_days_off({"sunday": True, "Mon": 1, "bogus": True}) == {
        "Mon": True,
        "Tue": False,
        "Wed": False,
        "Thu": False,
        "Fri": False,
        "Sat": False,
        "Sun": True,
    }
    with pytest.raises(ValueError):
        normalize_days_off({"Funday": True}, strict=True)


@pytest.mark.parametrize("value", ["2025-13", "2025", "March", "", "2025-00"])
def test_parse_month_rejects_bad_values(value):
    with pytest.raises(ValueError):
        parse_month(value)


def test_parse_month():
    assert parse_month("2025-03") == (2025, 3)


def test_selection_only_accepts_selectable_days():
    cal = build_month_calendar(
        2025,
        3,
        days_off={"Sun": True},
        blocked_dates=[date(2025, 3, 10)],
        booking_dates=[date(2025, 3, 15)],
    )
    selection = DateSelection()
    assert selection.toggle("2025-03-10", cal) is False  # blocked
    assert selection.toggle("2025-03-02", cal) is False  # day off
    assert selection.toggle("2025-04-01", cal) is False  # other month
    assert len(selection) == 0

    assert selection.toggle("2025-03-20", cal) is True
    assert selection.toggle("2025-03-15", cal) is True  # booked stays selectable
    assert selection.toggle("2025-03-05", cal) is True
    assert selection.iso_dates() == ["2025-03-05", "2025-03-15", "2025-03-20"]

    assert selection.toggle("2025-03-15", cal) is True
    assert "2025-03-15" not in selection
    assert selection.dates() == [date(2025, 3, 5), date(2025, 3, 20)]

    selection.clear()
    assert selection.dates() == []


def test_month_calendar_round_trips_through_dict():
    cal = build_month_calendar(2025, 3, days_off={"Sat": True}, booking_dates=[date(2025, 3, 4)])
    restored = MonthCalendar.from_dict(cal.to_dict())
    assert restored.to_dict() == cal.to_dict()
