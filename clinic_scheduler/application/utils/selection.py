"""
Selection workflow transitions.

Every function takes a SelectionState snapshot and returns a new one. Setting a
stage clears every stage after it together with the candidate lists derived from
them, so a field can only be set when all fields before it are set.

Out-of-order calls raise PreconditionViolation. Loading a candidate list for a
selection that is no longer current raises StaleSelection.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from clinic_scheduler.application.exceptions import PreconditionViolation, StaleSelection
from clinic_scheduler.domain.entities.availability import AvailabilityWindow, TimeSlot
from clinic_scheduler.domain.entities.clinic import Doctor, Office
from clinic_scheduler.domain.entities.selection_state import DoctorFilter, SelectionState


def _clear_after_filter(state: SelectionState) -> SelectionState:
    return replace(
        state,
        doctor=None,
        available_doctors=(),
        **_cleared_after_doctor(),
    )


def _cleared_after_doctor() -> dict:
    return {
        "date": None,
        "availability_windows": (),
        **_cleared_after_date(),
    }


def _cleared_after_date() -> dict:
    return {
        "time_slot": None,
        "time_slots": (),
        **_cleared_after_time_slot(),
    }


def _cleared_after_time_slot() -> dict:
    return {"office_id": None, "available_offices": ()}


def set_speciality(state: SelectionState, speciality_id: int | None) -> SelectionState:
    doctor_filter = DoctorFilter(speciality_id=speciality_id) if speciality_id is not None else None
    return _clear_after_filter(replace(state, doctor_filter=doctor_filter))


def search_doctors(state: SelectionState, term: str | None) -> SelectionState:
    normalized = (term or "").strip()
    doctor_filter = DoctorFilter(name_term=normalized) if normalized else None
    return _clear_after_filter(replace(state, doctor_filter=doctor_filter))


def select_doctor(state: SelectionState, doctor: Doctor | None) -> SelectionState:
    if doctor is not None and state.doctor_filter is None:
        raise PreconditionViolation("A speciality or doctor search is required before selecting a doctor.")
    return replace(state, doctor=doctor, **_cleared_after_doctor())


def set_date(state: SelectionState, day: date | None) -> SelectionState:
    if day is not None and state.doctor is None:
        raise PreconditionViolation("A doctor must be selected before choosing a date.")
    return replace(state, date=day, **_cleared_after_date())


def select_time_slot(state: SelectionState, slot: TimeSlot | None) -> SelectionState:
    if slot is not None:
        if state.date is None:
            raise PreconditionViolation("A date must be selected before choosing a time slot.")
        if not slot.available:
            raise PreconditionViolation(f"Time slot {slot.start_time:%H:%M} is not available.")
    return replace(state, time_slot=slot, **_cleared_after_time_slot())


def select_office(state: SelectionState, office_id: int | None) -> SelectionState:
    if office_id is not None and state.time_slot is None:
        raise PreconditionViolation("A time slot must be selected before choosing an office.")
    return replace(state, office_id=office_id)


def reset(_: SelectionState | None = None) -> SelectionState:
    return SelectionState()


def is_complete(state: SelectionState) -> bool:
    return state.is_complete


# --------------------------------------------------------------------------- #
#  Candidate lists. Each loader checks the result still belongs to the
#  current selection before attaching it.
# --------------------------------------------------------------------------- #
def with_available_doctors(
    state: SelectionState,
    for_filter: DoctorFilter | None,
    doctors: Iterable[Doctor],
) -> SelectionState:
    if for_filter is None or state.doctor_filter != for_filter:
        raise StaleSelection("Doctor list belongs to a previous speciality or search.")
    return replace(state, available_doctors=tuple(doctors))


def with_availability_windows(
    state: SelectionState,
    for_doctor_id: int,
    windows: Iterable[AvailabilityWindow],
) -> SelectionState:
    if state.doctor is None or state.doctor.id != for_doctor_id:
        raise StaleSelection(f"Availability belongs to doctor {for_doctor_id}, not the selected one.")
    return replace(state, availability_windows=tuple(windows))


def with_time_slots(
    state: SelectionState,
    for_doctor_id: int,
    for_date: date,
    slots: Iterable[TimeSlot],
) -> SelectionState:
    if state.doctor is None or state.doctor.id != for_doctor_id or state.date != for_date:
        raise StaleSelection(f"Time slots belong to doctor {for_doctor_id} on {for_date}.")
    return replace(state, time_slots=tuple(slots))


def with_available_offices(
    state: SelectionState,
    for_slot: TimeSlot,
    offices: Iterable[Office],
) -> SelectionState:
    if state.time_slot != for_slot:
        raise StaleSelection("Office list belongs to a previous time slot.")
    return replace(state, available_offices=tuple(offices))


def refresh_time_slots(state: SelectionState, slots: Iterable[TimeSlot]) -> SelectionState:
    """Replace the slot list for the current doctor/date, dropping the slot and office picked from the old one."""
    if state.date is None or state.doctor is None:
        raise PreconditionViolation("Time slots can only be refreshed once a doctor and date are selected.")
    return replace(state, time_slots=tuple(slots), **_cleared_after_date())
