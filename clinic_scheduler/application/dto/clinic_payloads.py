from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from clinic_scheduler.domain.entities.availability import (
    AvailabilityStatus,
    AvailabilityWindow,
    BookedInterval,
    DayOfWeek,
)
from clinic_scheduler.domain.entities.booking import BookingRequest
from clinic_scheduler.domain.entities.clinic import Doctor, Office
from clinic_scheduler.domain.entities.medical_task import MedicalTask


def parse_time_of_day(value: Any) -> time:
    """Accept 'HH:MM', 'HH:MM:SS' or a full ISO datetime and keep the time of day."""
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0)
    text = str(value).strip()
    if "T" in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).time().replace(second=0, microsecond=0)
    return time.fromisoformat(text).replace(second=0, microsecond=0)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class PersonalDataDTO(_CamelModel):
    id: int | None = None
    name: str = ""
    last_name: str = ""


class DoctorDTO(_CamelModel):
    id: int
    medical_license_number: str | None = None
    speciality_ids: list[int] = Field(default_factory=list)
    personal_data: PersonalDataDTO = Field(default_factory=PersonalDataDTO)

    def to_entity(self) -> Doctor:
        return Doctor(
            id=self.id,
            name=self.personal_data.name,
            last_name=self.personal_data.last_name,
            speciality_ids=tuple(self.speciality_ids),
            medical_license_number=self.medical_license_number,
            personal_id=self.personal_data.id,
        )


class AvailabilityDTO(_CamelModel):
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    status: AvailabilityStatus = AvailabilityStatus.ACTIVE

    @field_validator("day_of_week", mode="before")
    @classmethod
    def _day(cls, value: Any) -> DayOfWeek:
        return value if isinstance(value, DayOfWeek) else DayOfWeek.parse(str(value))

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _time(cls, value: Any) -> time:
        return parse_time_of_day(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> AvailabilityStatus:
        # the API sends either "ACTIVE" or {"id": 1, "name": "ACTIVE"}
        if isinstance(value, dict):
            value = value.get("name")
        if value is None:
            return AvailabilityStatus.ACTIVE
        return AvailabilityStatus(str(value).strip().upper())

    def to_entity(self) -> AvailabilityWindow:
        return AvailabilityWindow(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            status=self.status,
        )


class BusyPeriodDTO(_CamelModel):
    """Dated availability entry marking the doctor as busy, as written after each booking."""

    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def _naive(cls, value: datetime) -> datetime:
        # wall-clock time of the clinic
        return value.replace(tzinfo=None)

    def covers(self, day: date) -> bool:
        day_start = datetime.combine(day, time.min)
        return self.start_time < day_start + timedelta(days=1) and self.end_time > day_start

    def to_interval(self, day: date) -> BookedInterval:
        """The part of the period falling on ``day``."""
        day_start = datetime.combine(day, time.min)
        start = max(self.start_time, day_start)
        end = min(self.end_time, day_start + timedelta(days=1))
        end_time = end.time() if end.date() == day else time(23, 59)
        return BookedInterval(start_time=start.time(), end_time=end_time)


class OfficeDTO(_CamelModel):
    id: int
    name: str
    location: str = ""
    status: str = "A"

    def to_entity(self) -> Office:
        return Office(id=self.id, name=self.name, location=self.location, status=self.status)


class MedicalTaskDTO(_CamelModel):
    id: int | None = None
    description: str
    estimated_time: int = 0
    responsible: str = ""
    status: str = "PENDIENTE"

    @classmethod
    def from_entity(cls, task: MedicalTask) -> "MedicalTaskDTO":
        return cls(
            description=task.description,
            estimated_time=task.estimated_time,
            responsible=task.responsible,
            status=task.status or "PENDIENTE",
        )

    def to_entity(self) -> MedicalTask:
        return MedicalTask(
            id=self.id,
            description=self.description,
            estimated_time=self.estimated_time,
            responsible=self.responsible,
            status=self.status,
        )


class BaseAppointmentDTO(_CamelModel):
    """Template appointment of a type; its tasks are the type's template tasks."""

    id: int
    type_of_medical_appointment_id: int
    medical_task_ids: list[int] = Field(default_factory=list)


class CreateAppointmentDTO(_CamelModel):
    doctor_id: int
    type_of_medical_appointment_id: int
    appointment_date: str  # local 'YYYY-MM-DDTHH:MM:00'
    medical_history_id: int
    medical_office_id: int
    medical_task_ids: list[int] = Field(default_factory=list)

    @classmethod
    def from_request(cls, request: BookingRequest) -> "CreateAppointmentDTO":
        return cls(
            doctor_id=request.doctor_id,
            type_of_medical_appointment_id=request.appointment_type_id,
            appointment_date=request.starts_at.strftime("%Y-%m-%dT%H:%M:00"),
            medical_history_id=request.patient_history_id,
            medical_office_id=request.office_id,
            medical_task_ids=list(request.medical_task_ids),
        )


class AvailableOfficesRequestDTO(_CamelModel):
    date: str  # YYYY-MM-DD
    start_time: str  # 'HH:MM'
    end_time: str  # 'HH:MM'


class BusyAvailabilityDTO(_CamelModel):
    start_time: str  # 'YYYY-MM-DDTHH:MM:SS'
    end_time: str
    personal_ids: list[int]
    status_id: int = 2  # occupied
