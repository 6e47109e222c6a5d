from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, time
from enum import Enum
from typing import Any

from clinic_scheduler.application.exceptions import (
    BookingConflict,
    BookingFailure,
    FetchFailure,
    PreconditionViolation,
    StaleSelection,
)
from clinic_scheduler.application.ports.clinic_api import ClinicApiPort
from clinic_scheduler.application.ports.session_store import SchedulingSessionStorePort
from clinic_scheduler.application.utils import selection as transitions
from clinic_scheduler.application.utils import tasks as task_ops
from clinic_scheduler.application.utils.availability import resolve_window
from clinic_scheduler.application.utils.booking import build_booking_request
from clinic_scheduler.application.utils.duration_policy import DEFAULT_BUFFER_MINUTES
from clinic_scheduler.application.utils.slots import compute_slots
from clinic_scheduler.domain.entities.availability import TimeSlot
from clinic_scheduler.domain.entities.booking import BookingConfirmation
from clinic_scheduler.domain.entities.clinic import Doctor, Office
from clinic_scheduler.domain.entities.medical_task import MedicalTask, TaskSet
from clinic_scheduler.domain.entities.scheduling_session import SchedulingSession
from clinic_scheduler.domain.entities.selection_state import SELECTION_ORDER, SelectionState


class NoSlotsReason(str, Enum):
    NO_APPLICABLE_WINDOW = "no_applicable_window"
    DURATION_EXCEEDS_WINDOW = "duration_exceeds_window"


@dataclass(frozen=True)
class SlotsOutcome:
    slots: tuple[TimeSlot, ...]
    reason: NoSlotsReason | None  # set only when no slot was generated


def describe_slots(selection: SelectionState) -> SlotsOutcome | None:
    """Slot list for the selected date and, when empty, why. None before a date is chosen."""
    if selection.date is None:
        return None
    if selection.time_slots:
        return SlotsOutcome(slots=selection.time_slots, reason=None)
    if resolve_window(selection.date, selection.availability_windows) is None:
        return SlotsOutcome(slots=(), reason=NoSlotsReason.NO_APPLICABLE_WINDOW)
    return SlotsOutcome(slots=(), reason=NoSlotsReason.DURATION_EXCEEDS_WINDOW)


# Commits that lose a race against an unrelated update are re-applied to the
# newer snapshot at most this many times.
MAX_COMMIT_ATTEMPTS = 5


def _no_basis(session: SchedulingSession) -> tuple:
    return ()


def _selection_up_to(stage: str) -> Callable[[SchedulingSession], tuple]:
    names = SELECTION_ORDER[: SELECTION_ORDER.index(stage) + 1]
    return lambda session: tuple(getattr(session.selection, name) for name in names)


class _FetchCache:
    """Clinic API view for one operation; repeated calls with the same arguments are fetched once."""

    def __init__(self, api: ClinicApiPort) -> None:
        self._api = api
        self._results: dict[tuple, Any] = {}

    def __getattr__(self, name: str) -> Callable[..., Any]:
        call = getattr(self._api, name)

        def cached(*args: Any) -> Any:
            key = (name, args)
            if key not in self._results:
                self._results[key] = call(*args)
            return self._results[key]

        return cached


class SchedulingSessionUseCase:
    """
    Drives one scheduling session: selection transitions, the fetches they need,
    the task set and booking submission.

    Every mutating call takes a supersession ticket before fetching and commits
    only if no other call on the same session committed meanwhile. When one did,
    the call is re-applied to the newer snapshot with the results it already
    fetched, unless the newer snapshot changed the selection stage the call sets
    or one upstream of it. In that case the call is stale: its result is dropped
    and the caller gets the current session back.
    """

    def __init__(
        self,
        api: ClinicApiPort,
        store: SchedulingSessionStorePort,
        buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
        strict: bool = True,
    ) -> None:
        self._api = api
        self._store = store
        self._buffer_minutes = buffer_minutes
        self._strict = strict
        self._logger = logging.getLogger(__name__)

    @property
    def buffer_minutes(self) -> int:
        return self._buffer_minutes

    # ------------------------------------------------------------------ #
    #  Session
    # ------------------------------------------------------------------ #
    def get_session(self, session_id: str) -> SchedulingSession:
        return self._initialized(self._store.get_session(session_id))

    def cancel(self, session_id: str) -> SchedulingSession:
        self._store.delete_session(session_id)
        self._logger.info("Scheduling session cancelled", extra={"session_id": session_id})
        return self.get_session(session_id)

    def set_patient(self, session_id: str, patient_history_id: int) -> SchedulingSession:
        return self._update(
            session_id,
            "patient",
            lambda session, api: replace(session, patient_history_id=patient_history_id),
            basis=lambda session: (session.patient_history_id,),
        )

    # ------------------------------------------------------------------ #
    #  Tasks and duration
    # ------------------------------------------------------------------ #
    def set_appointment_type(self, session_id: str, appointment_type_id: int) -> SchedulingSession:
        def build(session: SchedulingSession, api: ClinicApiPort) -> SchedulingSession:
            template_tasks = api.fetch_template_tasks(appointment_type_id)
            task_set = task_ops.replace_template_tasks(session.tasks, template_tasks, self._buffer_minutes)
            return self._with_tasks(replace(session, appointment_type_id=appointment_type_id), task_set, api)

        return self._update(
            session_id,
            "appointment_type",
            build,
            basis=lambda session: (session.appointment_type_id,),
        )

    def add_task(self, session_id: str, task: MedicalTask) -> SchedulingSession:
        return self._update(
            session_id,
            "tasks",
            lambda session, api: self._with_tasks(
                session, task_ops.add_task(session.tasks, task, self._buffer_minutes), api
            ),
        )

    def update_task(self, session_id: str, index: int, task: MedicalTask) -> SchedulingSession:
        return self._update(
            session_id,
            "tasks",
            lambda session, api: self._with_tasks(
                session, task_ops.update_task(session.tasks, index, task, self._buffer_minutes), api
            ),
        )

    def remove_task(
        self,
        session_id: str,
        *,
        index: int | None = None,
        task_id: int | None = None,
    ) -> SchedulingSession:
        return self._update(
            session_id,
            "tasks",
            lambda session, api: self._with_tasks(
                session,
                task_ops.remove_task(
                    session.tasks, index=index, task_id=task_id, buffer_minutes=self._buffer_minutes
                ),
                api,
            ),
        )

    def _with_tasks(self, session: SchedulingSession, task_set: TaskSet, api: ClinicApiPort) -> SchedulingSession:
        selection = session.selection
        duration = task_set.duration_state.duration
        if duration != session.tasks.duration_state.duration and selection.date is not None:
            # slots were generated for the old duration
            selection = transitions.refresh_time_slots(selection, self._compute_slots(selection, duration, api))
        return replace(session, tasks=task_set, selection=selection)

    # ------------------------------------------------------------------ #
    #  Selection workflow
    # ------------------------------------------------------------------ #
    def set_speciality(self, session_id: str, speciality_id: int | None) -> SchedulingSession:
        def build(session: SchedulingSession, api: ClinicApiPort) -> SchedulingSession:
            selection = transitions.set_speciality(session.selection, speciality_id)
            if speciality_id is not None:
                doctors = api.fetch_doctors_by_speciality(speciality_id)
                selection = transitions.with_available_doctors(selection, selection.doctor_filter, doctors)
            return replace(session, selection=selection)

        return self._update(session_id, "speciality", build, basis=_selection_up_to("doctor_filter"))

    def search_doctors(self, session_id: str, term: str | None) -> SchedulingSession:
        def build(session: SchedulingSession, api: ClinicApiPort) -> SchedulingSession:
            selection = transitions.search_doctors(session.selection, term)
            if selection.doctor_filter is not None:
                doctors = api.fetch_doctors_by_name(selection.doctor_filter.name_term or "")
                selection = transitions.with_available_doctors(selection, selection.doctor_filter, doctors)
            return replace(session, selection=selection)

        return self._update(session_id, "doctor_search", build, basis=_selection_up_to("doctor_filter"))

    def select_doctor(self, session_id: str, doctor_id: int) -> SchedulingSession:
        def build(session: SchedulingSession, api: ClinicApiPort) -> SchedulingSession:
            doctor = _lookup_doctor(session.selection, doctor_id)
            selection = transitions.select_doctor(session.selection, doctor)
            windows = api.fetch_availability_windows(doctor.availability_owner_id)
            selection = transitions.with_availability_windows(selection, doctor.id, windows)
            return replace(session, selection=selection)

        return self._update(session_id, "doctor", build, basis=_selection_up_to("doctor"))

    def set_date(self, session_id: str, day: date | None) -> SchedulingSession:
        def build(session: SchedulingSession, api: ClinicApiPort) -> SchedulingSession:
            selection = transitions.set_date(session.selection, day)
            if day is not None:
                slots = self._compute_slots(selection, session.tasks.duration_state.duration, api)
                selection = transitions.with_time_slots(selection, selection.doctor.id, day, slots)
            return replace(session, selection=selection)

        return self._update(session_id, "date", build, basis=_selection_up_to("date"))

    def select_time_slot(self, session_id: str, start_time: time) -> SchedulingSession:
        def build(session: SchedulingSession, api: ClinicApiPort) -> SchedulingSession:
            slot = _lookup_time_slot(session.selection, start_time)
            selection = transitions.select_time_slot(session.selection, slot)
            offices = api.fetch_available_offices(selection.date, slot.start_time, slot.end_time)
            selection = transitions.with_available_offices(selection, slot, offices)
            return replace(session, selection=selection)

        return self._update(session_id, "time_slot", build, basis=_selection_up_to("time_slot"))

    def select_office(self, session_id: str, office_id: int) -> SchedulingSession:
        def build(session: SchedulingSession, api: ClinicApiPort) -> SchedulingSession:
            office = _lookup_office(session.selection, office_id)
            return replace(session, selection=transitions.select_office(session.selection, office.id))

        return self._update(session_id, "office", build, basis=_selection_up_to("office_id"))

    def _compute_slots(self, selection: SelectionState, duration: int, api: ClinicApiPort) -> list[TimeSlot]:
        window = resolve_window(selection.date, selection.availability_windows)
        if window is None:
            self._logger.info(
                "No availability window for date",
                extra={"doctor_id": selection.doctor.id, "date": selection.date.isoformat()},
            )
            return []
        booked = api.fetch_booked_intervals(selection.doctor.availability_owner_id, selection.date)
        return compute_slots(window, duration, booked)

    # ------------------------------------------------------------------ #
    #  Booking
    # ------------------------------------------------------------------ #
    def submit_booking(self, session_id: str) -> BookingConfirmation | None:
        session = self.get_session(session_id)
        try:
            request = build_booking_request(session)
        except PreconditionViolation as e:
            if self._strict:
                raise
            self._logger.warning(
                "Ignoring booking of an incomplete session",
                extra={"session_id": session_id, "reason": str(e)},
            )
            return None

        try:
            to_create = [replace(task, id=None) for task in session.tasks.all_tasks]
            created = self._api.create_medical_tasks(to_create) if to_create else []
        except FetchFailure as e:
            raise BookingFailure(f"Creating the appointment tasks failed: {e}") from e
        request = replace(request, medical_task_ids=tuple(t.id for t in created if t.id is not None))

        # Tasks are created before the appointment so their ids can be attached.
        # The clinic API has no bulk delete, so a failed submission leaves them behind.
        try:
            confirmation = self._api.submit_booking(request)
        except BookingConflict:
            self._log_orphaned_tasks(session_id, request.medical_task_ids)
            self._logger.warning(
                "Booking conflict, refreshing time slots",
                extra={"session_id": session_id, "doctor_id": request.doctor_id, "date": request.date.isoformat()},
            )
            self._refresh_after_conflict(session_id)
            raise
        except BookingFailure:
            self._log_orphaned_tasks(session_id, request.medical_task_ids)
            raise

        try:
            self._api.record_busy_interval(
                session.selection.doctor.availability_owner_id, request.starts_at, request.ends_at
            )
        except FetchFailure as e:
            # the appointment exists; the busy marker is informational
            self._logger.error(
                "Could not record doctor busy interval",
                extra={"session_id": session_id, "doctor_id": request.doctor_id, "error": str(e)},
            )

        self._store.delete_session(session_id)
        ticket, _ = self._store.begin_update(session_id)
        self._store.commit_update(
            session_id,
            ticket,
            replace(self._initialized(SchedulingSession(session_id=session_id)), last_confirmation=confirmation),
        )
        self._logger.info(
            "Appointment booked",
            extra={"session_id": session_id, "doctor_id": request.doctor_id, "date": request.date.isoformat()},
        )
        return confirmation

    def _log_orphaned_tasks(self, session_id: str, task_ids: tuple[int, ...]) -> None:
        if task_ids:
            self._logger.warning(
                "Medical tasks created without an appointment",
                extra={"session_id": session_id, "task_ids": ",".join(str(i) for i in task_ids)},
            )

    def _refresh_after_conflict(self, session_id: str) -> None:
        def build(session: SchedulingSession, api: ClinicApiPort) -> SchedulingSession:
            selection = session.selection
            if selection.date is None:
                return session
            slots = self._compute_slots(selection, session.tasks.duration_state.duration, api)
            return replace(session, selection=transitions.refresh_time_slots(selection, slots))

        try:
            self._update(session_id, "time_slot_refresh", build, basis=_selection_up_to("date"))
        except FetchFailure as e:
            self._logger.error(
                "Could not refresh time slots after a booking conflict",
                extra={"session_id": session_id, "error": str(e)},
            )

    # ------------------------------------------------------------------ #
    #  Helpers
    # ------------------------------------------------------------------ #
    def _initialized(self, session: SchedulingSession) -> SchedulingSession:
        if session.updated_at is None:
            # never stored: the empty task set still reserves the buffer
            return replace(session, tasks=task_ops.empty_task_set(self._buffer_minutes))
        return session

    def _begin(self, session_id: str) -> tuple[int, SchedulingSession]:
        ticket, session = self._store.begin_update(session_id)
        return ticket, self._initialized(session)

    def _update(
        self,
        session_id: str,
        stage: str,
        build: Callable[[SchedulingSession, ClinicApiPort], SchedulingSession],
        basis: Callable[[SchedulingSession], tuple] = _no_basis,
    ) -> SchedulingSession:
        api = _FetchCache(self._api)
        ticket, session = self._begin(session_id)
        expected = basis(session)
        try:
            for _ in range(MAX_COMMIT_ATTEMPTS):
                updated = build(session, api)
                if self._store.commit_update(session_id, ticket, updated):
                    break
                ticket, session = self._begin(session_id)
                if basis(session) != expected:
                    raise StaleSelection(f"{stage} update superseded by a newer request")
                self._logger.debug(
                    "Commit raced an unrelated update, re-applying",
                    extra={"session_id": session_id, "stage": stage},
                )
            else:
                raise StaleSelection(f"{stage} update lost {MAX_COMMIT_ATTEMPTS} commits in a row")
        except PreconditionViolation as e:
            if self._strict:
                raise
            self._logger.warning(
                "Ignoring out-of-order transition",
                extra={"session_id": session_id, "stage": stage, "reason": str(e)},
            )
            return self.get_session(session_id)
        except StaleSelection as e:
            self._logger.info(
                "Discarding stale result",
                extra={"session_id": session_id, "stage": stage, "reason": str(e)},
            )
            return self.get_session(session_id)

        self._logger.debug("Session updated", extra={"session_id": session_id, "stage": stage})
        return self._store.get_session(session_id)


def _lookup_doctor(selection: SelectionState, doctor_id: int) -> Doctor:
    if selection.doctor_filter is None:
        raise PreconditionViolation("A speciality or doctor search is required before selecting a doctor.")
    for doctor in selection.available_doctors:
        if doctor.id == doctor_id:
            return doctor
    raise ValueError(f"Doctor {doctor_id} is not among the available doctors.")


def _lookup_time_slot(selection: SelectionState, start_time: time) -> TimeSlot:
    if selection.date is None:
        raise PreconditionViolation("A date must be selected before choosing a time slot.")
    for slot in selection.time_slots:
        if slot.start_time == start_time:
            return slot
    raise ValueError(f"No time slot starts at {start_time:%H:%M}.")


def _lookup_office(selection: SelectionState, office_id: int) -> Office:
    if selection.time_slot is None:
        raise PreconditionViolation("A time slot must be selected before choosing an office.")
    for office in selection.available_offices:
        if office.id == office_id:
            return office
    raise ValueError(f"Office {office_id} is not available for the selected time slot.")
