"""
Tests for resolving the availability window that applies to a date.
"""

from __future__ import annotations

from datetime import date, time

import pytest

from clinic_scheduler.application.utils.availability import resolve_window
from clinic_scheduler.domain.entities.availability import AvailabilityStatus, AvailabilityWindow, DayOfWeek

MONDAY = date(2024, 5, 6)
FRIDAY = date(2024, 5, 10)
SUNDAY = date(2024, 5, 12)


def test_day_of_week_from_date():
    assert DayOfWeek.of(MONDAY) == DayOfWeek.MONDAY
    assert DayOfWeek.of(FRIDAY) == DayOfWeek.FRIDAY
    assert DayOfWeek.of(SUNDAY) == DayOfWeek.SUNDAY


def test_day_of_week_parse_is_case_insensitive():
    assert DayOfWeek.parse("monday") == DayOfWeek.MONDAY
    assert DayOfWeek.parse(" Friday ") == DayOfWeek.FRIDAY
    with pytest.raises(ValueError):
        DayOfWeek.parse("lunes")


def test_resolves_matching_active_window():
    windows = [
        AvailabilityWindow(DayOfWeek.TUESDAY, time(8, 0), time(12, 0)),
        AvailabilityWindow(DayOfWeek.MONDAY, time(9, 0), time(12, 0)),
    ]
    assert resolve_window(MONDAY, windows) == windows[1]


def test_inactive_window_is_ignored():
    windows = [AvailabilityWindow(DayOfWeek.FRIDAY, time(9, 0), time(13, 0), AvailabilityStatus.INACTIVE)]
    assert resolve_window(FRIDAY, windows) is None


def test_no_window_for_weekday_returns_none():
    windows = [AvailabilityWindow(DayOfWeek.MONDAY, time(9, 0), time(12, 0))]
    assert resolve_window(SUNDAY, windows) is None
    assert resolve_window(SUNDAY, []) is None


def test_first_active_window_wins_when_several_share_a_weekday():
    """Two ACTIVE Monday windows: input order decides."""
    morning = AvailabilityWindow(DayOfWeek.MONDAY, time(9, 0), time(12, 0))
    afternoon = AvailabilityWindow(DayOfWeek.MONDAY, time(14, 0), time(18, 0))
    inactive = AvailabilityWindow(DayOfWeek.MONDAY, time(7, 0), time(8, 0), AvailabilityStatus.INACTIVE)

    assert resolve_window(MONDAY, [morning, afternoon]) == morning
    assert resolve_window(MONDAY, [afternoon, morning]) == afternoon
    assert resolve_window(MONDAY, [inactive, afternoon, morning]) == afternoon
