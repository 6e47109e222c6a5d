from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def of(cls, day: date) -> "DayOfWeek":
        # date.weekday(): Monday == 0, independent of locale
        return _WEEK[day.weekday()]

    @classmethod
    def parse(cls, label: str) -> "DayOfWeek":
        try:
            return cls(label.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown day of week: {label!r}")


_WEEK = tuple(DayOfWeek)


class AvailabilityStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


@dataclass(frozen=True)
class AvailabilityWindow:
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    status: AvailabilityStatus = AvailabilityStatus.ACTIVE


@dataclass(frozen=True)
class BookedInterval:
    start_time: time
    end_time: time


@dataclass(frozen=True)
class TimeSlot:
    start_time: time
    end_time: time
    available: bool = True
