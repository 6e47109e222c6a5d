"""
Tests for the appointment duration policy.
"""

from __future__ import annotations

import pytest

from clinic_scheduler.application.utils.duration_policy import (
    DEFAULT_BUFFER_MINUTES,
    SLOT_GRANULARITY_MINUTES,
    compute_duration,
    compute_duration_state,
    duration_breakdown,
    round_up_to_granularity,
)
from clinic_scheduler.domain.entities.medical_task import MedicalTask


def test_policy_constants_are_pinned():
    assert SLOT_GRANULARITY_MINUTES == 15
    assert DEFAULT_BUFFER_MINUTES == 15


def test_round_up_to_quarter_hour():
    assert round_up_to_granularity(35) == 45
    assert round_up_to_granularity(92) == 105
    assert round_up_to_granularity(15) == 15
    assert round_up_to_granularity(1) == 15
    assert round_up_to_granularity(0) == 0


def test_two_tasks_with_buffer():
    """20 + 25 minutes of tasks plus the 15 minute buffer is already on the grid."""
    tasks = [
        MedicalTask(description="Anamnesis", estimated_time=20),
        MedicalTask(description="Examen", estimated_time=25),
    ]
    state = compute_duration_state(tasks, buffer_minutes=15)
    assert state.base_duration == 45
    assert state.duration == 60


def test_buffer_and_rounding_combined():
    assert compute_duration(31, 15) == 60  # 46 -> 60
    assert compute_duration(30, 15) == 45


def test_empty_task_set_still_reserves_buffer():
    assert compute_duration(0) == 15
    assert compute_duration_state([]).duration == 15


def test_duration_is_idempotent():
    tasks = [MedicalTask(description="Control", estimated_time=40)]
    first = compute_duration_state(tasks)
    second = compute_duration_state(tasks)
    assert first == second


def test_negative_base_duration_rejected():
    with pytest.raises(ValueError):
        compute_duration(-5)


def test_duration_breakdown():
    breakdown = duration_breakdown(31, 15)
    assert breakdown == {
        "base_duration": 31,
        "buffer_minutes": 15,
        "duration_with_buffer": 46,
        "rounding_minutes": 14,
        "duration": 60,
    }
