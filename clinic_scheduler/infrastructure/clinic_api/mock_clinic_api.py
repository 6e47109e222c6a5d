from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime, time

from clinic_scheduler.application.exceptions import BookingConflict, FetchFailure
from clinic_scheduler.application.ports.clinic_api import ClinicApiPort
from clinic_scheduler.application.utils.slots import overlaps, to_minutes
from clinic_scheduler.domain.entities.availability import (
    AvailabilityStatus,
    AvailabilityWindow,
    BookedInterval,
    DayOfWeek,
)
from clinic_scheduler.domain.entities.booking import BookingConfirmation, BookingRequest
from clinic_scheduler.domain.entities.clinic import Doctor, Office
from clinic_scheduler.domain.entities.medical_task import MedicalTask


DEFAULT_DOCTORS = (
    Doctor(id=1, name="Ana", last_name="García", speciality_ids=(1,), medical_license_number="MP-1001"),
    Doctor(id=2, name="Luis", last_name="Pérez", speciality_ids=(1, 3), medical_license_number="MP-1002"),
    Doctor(id=3, name="Marta", last_name="López", speciality_ids=(2,), medical_license_number="MP-1003"),
)

DEFAULT_WINDOWS = {
    1: (
        AvailabilityWindow(DayOfWeek.MONDAY, time(9, 0), time(12, 0)),
        AvailabilityWindow(DayOfWeek.WEDNESDAY, time(14, 0), time(18, 0)),
        AvailabilityWindow(DayOfWeek.FRIDAY, time(9, 0), time(13, 0), AvailabilityStatus.INACTIVE),
    ),
    2: (
        AvailabilityWindow(DayOfWeek.TUESDAY, time(8, 0), time(12, 0)),
        AvailabilityWindow(DayOfWeek.THURSDAY, time(8, 0), time(12, 0)),
    ),
    3: (AvailabilityWindow(DayOfWeek.MONDAY, time(10, 0), time(16, 0)),),
}

DEFAULT_OFFICES = (
    Office(id=1, name="Consultorio 101", location="Planta baja"),
    Office(id=2, name="Consultorio 102", location="Planta baja"),
    Office(id=3, name="Sala de procedimientos", location="Primer piso"),
)

DEFAULT_TEMPLATE_TASKS = {
    1: (
        MedicalTask(id=101, description="Anamnesis", estimated_time=10, responsible="Médico"),
        MedicalTask(id=102, description="Examen físico", estimated_time=15, responsible="Médico"),
    ),
    2: (
        MedicalTask(id=201, description="Revisión de estudios", estimated_time=20, responsible="Médico"),
        MedicalTask(id=202, description="Evaluación de tratamiento", estimated_time=25, responsible="Médico"),
    ),
}


class MockClinicApi(ClinicApiPort):
    """In-memory clinic API seeded with a few doctors, offices and appointment types."""

    def __init__(
        self,
        doctors: Iterable[Doctor] = DEFAULT_DOCTORS,
        windows: dict[int, Iterable[AvailabilityWindow]] | None = None,
        offices: Iterable[Office] = DEFAULT_OFFICES,
        template_tasks: dict[int, Iterable[MedicalTask]] | None = None,
    ) -> None:
        self._doctors = list(doctors)
        self._windows = {k: list(v) for k, v in (windows if windows is not None else DEFAULT_WINDOWS).items()}
        self._offices = list(offices)
        self._template_tasks = {
            k: list(v) for k, v in (template_tasks if template_tasks is not None else DEFAULT_TEMPLATE_TASKS).items()
        }
        self._appointments: dict[str, BookingRequest] = {}
        self._busy: dict[int, list[tuple[datetime, datetime]]] = {}
        self._tasks: dict[int, MedicalTask] = {}
        self._next_task_id = 1000
        self.failing: set[str] = set()  # operation names that raise FetchFailure
        self.calls: list[tuple[str, tuple]] = []
        self._logger = logging.getLogger(__name__)

    def _enter(self, operation: str, *args: object) -> None:
        self.calls.append((operation, args))
        if operation in self.failing:
            raise FetchFailure(f"Mock clinic API failure in {operation}")

    def fetch_doctors_by_speciality(self, speciality_id: int) -> list[Doctor]:
        self._enter("fetch_doctors_by_speciality", speciality_id)
        return [d for d in self._doctors if speciality_id in d.speciality_ids]

    def fetch_doctors_by_name(self, term: str) -> list[Doctor]:
        self._enter("fetch_doctors_by_name", term)
        needle = term.strip().lower()
        if not needle:
            return []
        return [d for d in self._doctors if needle in d.full_name.lower()]

    def fetch_availability_windows(self, doctor_id: int) -> list[AvailabilityWindow]:
        self._enter("fetch_availability_windows", doctor_id)
        return list(self._windows.get(doctor_id, []))

    def fetch_booked_intervals(self, personal_id: int, day: date) -> list[BookedInterval]:
        self._enter("fetch_booked_intervals", personal_id, day)
        doctor_ids = {d.id for d in self._doctors if d.availability_owner_id == personal_id}
        intervals = {
            (req.starts_at.time(), req.ends_at.time())
            for req in self._appointments.values()
            if req.doctor_id in doctor_ids and req.date == day
        }
        intervals.update(
            (start.time(), end.time()) for start, end in self._busy.get(personal_id, []) if start.date() == day
        )
        return [BookedInterval(start_time=s, end_time=e) for s, e in sorted(intervals)]

    def fetch_available_offices(self, day: date, start_time: time, end_time: time) -> list[Office]:
        self._enter("fetch_available_offices", day, start_time, end_time)
        start, end = to_minutes(start_time), to_minutes(end_time)
        taken = {
            req.office_id
            for req in self._appointments.values()
            if req.date == day
            and overlaps(start, end, to_minutes(req.starts_at.time()), to_minutes(req.ends_at.time()))
        }
        return [o for o in self._offices if o.status == "A" and o.id not in taken]

    def fetch_template_tasks(self, appointment_type_id: int) -> list[MedicalTask]:
        self._enter("fetch_template_tasks", appointment_type_id)
        if appointment_type_id not in self._template_tasks:
            raise FetchFailure(f"Unknown appointment type {appointment_type_id}")
        return list(self._template_tasks[appointment_type_id])

    def create_medical_tasks(self, tasks: list[MedicalTask]) -> list[MedicalTask]:
        self._enter("create_medical_tasks", len(tasks))
        created = []
        for task in tasks:
            self._next_task_id += 1
            stored = replace(task, id=self._next_task_id)
            self._tasks[stored.id] = stored
            created.append(stored)
        return created

    def submit_booking(self, request: BookingRequest) -> BookingConfirmation:
        self._enter("submit_booking", request)
        start, end = to_minutes(request.start_time), to_minutes(request.ends_at.time())
        for existing in self._appointments.values():
            if existing.date != request.date:
                continue
            if existing.doctor_id != request.doctor_id and existing.office_id != request.office_id:
                continue
            if overlaps(start, end, to_minutes(existing.start_time), to_minutes(existing.ends_at.time())):
                raise BookingConflict("The selected time slot was booked by someone else.")

        appointment_id = f"mock_appointment_{len(self._appointments) + 1}"
        self._appointments[appointment_id] = request
        self._logger.info(
            "Mock appointment created",
            extra={
                "appointment_id": appointment_id,
                "doctor_id": request.doctor_id,
                "start": request.starts_at.isoformat(),
                "end": request.ends_at.isoformat(),
            },
        )
        return BookingConfirmation(
            appointment_id=appointment_id,
            doctor_id=request.doctor_id,
            starts_at=request.starts_at,
            ends_at=request.ends_at,
            office_id=request.office_id,
        )

    def record_busy_interval(self, personal_id: int, start: datetime, end: datetime) -> None:
        self._enter("record_busy_interval", personal_id, start, end)
        self._busy.setdefault(personal_id, []).append((start, end))

    def book_directly(self, request: BookingRequest) -> str:
        """Insert an appointment as if another session had booked it."""
        appointment_id = f"external_appointment_{len(self._appointments) + 1}"
        self._appointments[appointment_id] = request
        return appointment_id
