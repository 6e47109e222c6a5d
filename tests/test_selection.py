"""
Tests for the selection workflow transitions and their cascading resets.
"""

from __future__ import annotations

from datetime import date, time

import pytest

from clinic_scheduler.application.exceptions import PreconditionViolation, StaleSelection
from clinic_scheduler.application.utils import selection as transitions
from clinic_scheduler.domain.entities.availability import AvailabilityWindow, DayOfWeek, TimeSlot
from clinic_scheduler.domain.entities.clinic import Doctor, Office
from clinic_scheduler.domain.entities.selection_state import SELECTION_ORDER, DoctorFilter, SelectionState

DOCTOR_X = Doctor(id=1, name="Ana", last_name="García", speciality_ids=(1,))
DOCTOR_Y = Doctor(id=2, name="Luis", last_name="Pérez", speciality_ids=(1,))
DAY = date(2024, 5, 6)
OTHER_DAY = date(2024, 5, 13)
SLOT = TimeSlot(time(9, 0), time(9, 30))
WINDOW = AvailabilityWindow(DayOfWeek.MONDAY, time(9, 0), time(12, 0))
OFFICE = Office(id=7, name="Consultorio 101")


def _complete() -> SelectionState:
    state = transitions.set_speciality(SelectionState(), 1)
    state = transitions.with_available_doctors(state, state.doctor_filter, [DOCTOR_X, DOCTOR_Y])
    state = transitions.select_doctor(state, DOCTOR_X)
    state = transitions.with_availability_windows(state, DOCTOR_X.id, [WINDOW])
    state = transitions.set_date(state, DAY)
    state = transitions.with_time_slots(state, DOCTOR_X.id, DAY, [SLOT])
    state = transitions.select_time_slot(state, SLOT)
    state = transitions.with_available_offices(state, SLOT, [OFFICE])
    return transitions.select_office(state, OFFICE.id)


def _downstream_is_clear(state: SelectionState, stage: str) -> bool:
    after = SELECTION_ORDER[SELECTION_ORDER.index(stage) + 1 :]
    return all(getattr(state, name) is None for name in after)


def test_initial_state_is_empty_and_incomplete():
    state = SelectionState()
    assert all(getattr(state, name) is None for name in SELECTION_ORDER)
    assert transitions.is_complete(state) is False


def test_full_walk_is_complete():
    state = _complete()
    assert transitions.is_complete(state) is True
    assert state.speciality_id == 1
    assert state.available_offices == (OFFICE,)


def test_changing_date_clears_slot_and_office():
    state = transitions.set_date(_complete(), OTHER_DAY)
    assert state.doctor == DOCTOR_X
    assert state.date == OTHER_DAY
    assert state.time_slot is None
    assert state.office_id is None
    assert state.time_slots == ()
    assert state.available_offices == ()
    assert state.availability_windows == (WINDOW,)
    assert transitions.is_complete(state) is False


def test_every_transition_clears_everything_downstream():
    cases = [
        ("doctor_filter", lambda s: transitions.set_speciality(s, 2)),
        ("doctor_filter", lambda s: transitions.set_speciality(s, None)),
        ("doctor_filter", lambda s: transitions.search_doctors(s, "pérez")),
        ("doctor", lambda s: transitions.select_doctor(s, DOCTOR_Y)),
        ("date", lambda s: transitions.set_date(s, OTHER_DAY)),
        ("time_slot", lambda s: transitions.select_time_slot(s, SLOT)),
    ]
    for stage, transition in cases:
        state = transition(_complete())
        assert _downstream_is_clear(state, stage), stage


def test_speciality_change_drops_cached_doctors():
    state = transitions.set_speciality(_complete(), 3)
    assert state.doctor_filter == DoctorFilter(speciality_id=3)
    assert state.available_doctors == ()
    assert state.availability_windows == ()


def test_doctor_search_replaces_speciality_filter():
    """Test that a name search replaces the speciality and a blank term clears it."""
    state = transitions.search_doctors(_complete(), "  garcía ")
    assert state.doctor_filter == DoctorFilter(name_term="garcía")
    assert state.speciality_id is None
    assert transitions.search_doctors(state, "   ").doctor_filter is None


def test_snapshots_are_not_mutated():
    snapshot = _complete()
    transitions.set_date(snapshot, OTHER_DAY)
    assert snapshot.time_slot == SLOT
    assert snapshot.office_id == OFFICE.id


def test_out_of_order_transitions_are_rejected():
    with pytest.raises(PreconditionViolation):
        transitions.select_doctor(SelectionState(), DOCTOR_X)
    with pytest.raises(PreconditionViolation):
        transitions.set_date(SelectionState(), DAY)
    with pytest.raises(PreconditionViolation):
        transitions.select_time_slot(SelectionState(), SLOT)
    with pytest.raises(PreconditionViolation):
        transitions.select_office(SelectionState(), OFFICE.id)


def test_unavailable_slot_is_rejected():
    state = transitions.set_date(transitions.select_doctor(transitions.set_speciality(SelectionState(), 1), DOCTOR_X), DAY)
    with pytest.raises(PreconditionViolation):
        transitions.select_time_slot(state, TimeSlot(time(9, 0), time(9, 30), available=False))


def test_results_for_previous_selection_are_stale():
    state = _complete()
    with pytest.raises(StaleSelection):
        transitions.with_time_slots(state, DOCTOR_Y.id, DAY, [SLOT])
    with pytest.raises(StaleSelection):
        transitions.with_time_slots(state, DOCTOR_X.id, OTHER_DAY, [SLOT])
    with pytest.raises(StaleSelection):
        transitions.with_availability_windows(state, DOCTOR_Y.id, [WINDOW])
    with pytest.raises(StaleSelection):
        transitions.with_available_doctors(state, DoctorFilter(speciality_id=9), [DOCTOR_Y])
    with pytest.raises(StaleSelection):
        transitions.with_available_offices(state, TimeSlot(time(10, 0), time(10, 30)), [OFFICE])


def test_refresh_time_slots_drops_selected_slot():
    fresh = TimeSlot(time(9, 0), time(9, 30), available=False)
    state = transitions.refresh_time_slots(_complete(), [fresh])
    assert state.time_slots == (fresh,)
    assert state.time_slot is None
    assert state.office_id is None
    assert state.date == DAY


def test_reset_returns_initial_state():
    assert transitions.reset(_complete()) == SelectionState()
