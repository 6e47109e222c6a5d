from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from clinic_scheduler.domain.entities.availability import (
    AvailabilityStatus,
    AvailabilityWindow,
    DayOfWeek,
)


def resolve_window(day: date, windows: Iterable[AvailabilityWindow]) -> AvailabilityWindow | None:
    """
    Return the first ACTIVE window whose weekday matches ``day``.
    If several ACTIVE windows share the weekday, input order decides.
    None means "no slots for this date", not an error.
    """
    weekday = DayOfWeek.of(day)
    for window in windows:
        if window.day_of_week == weekday and window.status == AvailabilityStatus.ACTIVE:
            return window
    return None
