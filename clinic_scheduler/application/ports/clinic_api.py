from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time

from clinic_scheduler.domain.entities.availability import AvailabilityWindow, BookedInterval
from clinic_scheduler.domain.entities.booking import BookingConfirmation, BookingRequest
from clinic_scheduler.domain.entities.clinic import Doctor, Office
from clinic_scheduler.domain.entities.medical_task import MedicalTask


class ClinicApiPort(ABC):
    @abstractmethod
    def fetch_doctors_by_speciality(self, speciality_id: int) -> list[Doctor]:
        """Doctors practising the given speciality."""
        raise NotImplementedError

    @abstractmethod
    def fetch_doctors_by_name(self, term: str) -> list[Doctor]:
        """Doctors whose name matches the search term."""
        raise NotImplementedError

    @abstractmethod
    def fetch_availability_windows(self, doctor_id: int) -> list[AvailabilityWindow]:
        """Declared weekly availability of a doctor."""
        raise NotImplementedError

    @abstractmethod
    def fetch_booked_intervals(self, personal_id: int, day: date) -> list[BookedInterval]:
        """Busy periods of the doctor on ``day``, keyed by the doctor's personal id."""
        raise NotImplementedError

    @abstractmethod
    def fetch_available_offices(self, day: date, start_time: time, end_time: time) -> list[Office]:
        """Offices free for the whole interval."""
        raise NotImplementedError

    @abstractmethod
    def fetch_template_tasks(self, appointment_type_id: int) -> list[MedicalTask]:
        """Template tasks of the base appointment defined for an appointment type."""
        raise NotImplementedError

    @abstractmethod
    def create_medical_tasks(self, tasks: list[MedicalTask]) -> list[MedicalTask]:
        """Create tasks remotely. Returns them with ids assigned."""
        raise NotImplementedError

    @abstractmethod
    def submit_booking(self, request: BookingRequest) -> BookingConfirmation:
        """Create the appointment. Raises BookingConflict if the slot was taken."""
        raise NotImplementedError

    @abstractmethod
    def record_busy_interval(self, personal_id: int, start: datetime, end: datetime) -> None:
        """Mark the doctor as busy for a booked interval; read back by fetch_booked_intervals."""
        raise NotImplementedError
