from __future__ import annotations

from collections.abc import Iterable

from clinic_scheduler.domain.entities.medical_task import DurationState, MedicalTask

# Slot start times step by this many minutes; durations are rounded up to it so
# that every generated slot boundary stays on the same grid.
SLOT_GRANULARITY_MINUTES = 15

# Fixed slack added to the summed task time to absorb overruns.
DEFAULT_BUFFER_MINUTES = 15


def round_up_to_granularity(minutes: int, granularity: int = SLOT_GRANULARITY_MINUTES) -> int:
    """Round up to the next multiple of ``granularity`` (35 -> 45, 45 -> 45)."""
    if granularity <= 0:
        raise ValueError(f"Granularity must be positive, got {granularity}.")
    return -(-minutes // granularity) * granularity


def compute_duration(base_duration: int, buffer_minutes: int = DEFAULT_BUFFER_MINUTES) -> int:
    """Final appointment duration: base + buffer, rounded up to slot granularity.

    An empty task set still reserves the buffer.
    """
    if base_duration < 0:
        raise ValueError(f"Base duration must be >= 0, got {base_duration}.")
    return round_up_to_granularity(base_duration + buffer_minutes)


def sum_estimated_time(tasks: Iterable[MedicalTask]) -> int:
    return sum(task.estimated_time or 0 for task in tasks)


def compute_duration_state(
    tasks: Iterable[MedicalTask],
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> DurationState:
    base = sum_estimated_time(tasks)
    return DurationState(base_duration=base, duration=compute_duration(base, buffer_minutes))


def duration_breakdown(base_duration: int, buffer_minutes: int = DEFAULT_BUFFER_MINUTES) -> dict[str, int]:
    """Breakdown of the duration calculation, for display."""
    with_buffer = base_duration + buffer_minutes
    final = compute_duration(base_duration, buffer_minutes)
    return {
        "base_duration": base_duration,
        "buffer_minutes": buffer_minutes,
        "duration_with_buffer": with_buffer,
        "rounding_minutes": final - with_buffer,
        "duration": final,
    }
