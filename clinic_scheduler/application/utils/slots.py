from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import time

from clinic_scheduler.application.utils.duration_policy import SLOT_GRANULARITY_MINUTES
from clinic_scheduler.domain.entities.availability import AvailabilityWindow, BookedInterval, TimeSlot


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    return time(hour=minutes // 60, minute=minutes % 60)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    # Half-open intervals: touching endpoints do not overlap.
    return start_a < end_b and end_a > start_b


def generate_candidates(
    window: AvailabilityWindow,
    duration_minutes: int,
    step_minutes: int = SLOT_GRANULARITY_MINUTES,
) -> list[TimeSlot]:
    """
    Every ``step_minutes`` start inside ``window`` that still fits ``duration_minutes``.
    Consecutive slots overlap; they are alternative starts, not a partition.
    """
    if duration_minutes <= 0:
        raise ValueError(f"Duration must be positive, got {duration_minutes}.")

    window_start = to_minutes(window.start_time)
    window_end = to_minutes(window.end_time)

    slots: list[TimeSlot] = []
    current = window_start
    while current + duration_minutes <= window_end:
        slots.append(
            TimeSlot(
                start_time=from_minutes(current),
                end_time=from_minutes(current + duration_minutes),
                available=True,
            )
        )
        current += step_minutes
    return slots


def apply_conflicts(candidates: Sequence[TimeSlot], booked: Iterable[BookedInterval]) -> list[TimeSlot]:
    """Mark candidates overlapping any booked interval as unavailable; keep them in the list."""
    booked_ranges = [(to_minutes(b.start_time), to_minutes(b.end_time)) for b in booked]

    result: list[TimeSlot] = []
    for slot in candidates:
        start, end = to_minutes(slot.start_time), to_minutes(slot.end_time)
        conflicted = any(overlaps(start, end, b_start, b_end) for b_start, b_end in booked_ranges)
        result.append(replace(slot, available=slot.available and not conflicted))
    return result


def compute_slots(
    window: AvailabilityWindow,
    duration_minutes: int,
    booked: Iterable[BookedInterval],
) -> list[TimeSlot]:
    return apply_conflicts(generate_candidates(window, duration_minutes), booked)


def bookable_slots(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    return [slot for slot in slots if slot.available]
