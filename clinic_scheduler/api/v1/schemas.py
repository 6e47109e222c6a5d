import datetime as dt

from pydantic import BaseModel, Field

from clinic_scheduler.application.use_cases.scheduling_session import describe_slots
from clinic_scheduler.application.utils.duration_policy import duration_breakdown
from clinic_scheduler.domain.entities.availability import TimeSlot
from clinic_scheduler.domain.entities.clinic import Doctor, Office
from clinic_scheduler.domain.entities.medical_task import MedicalTask
from clinic_scheduler.domain.entities.scheduling_session import SchedulingSession


class PatientRequestSchema(BaseModel):
    patient_history_id: int


class AppointmentTypeRequestSchema(BaseModel):
    appointment_type_id: int


class TaskSchema(BaseModel):
    id: int | None = None
    description: str = Field(min_length=1)
    estimated_time: int = Field(ge=0)
    responsible: str = ""
    status: str = "PENDIENTE"

    def to_entity(self) -> MedicalTask:
        return MedicalTask(
            id=self.id,
            description=self.description,
            estimated_time=self.estimated_time,
            responsible=self.responsible,
            status=self.status,
        )

    @classmethod
    def from_entity(cls, task: MedicalTask) -> "TaskSchema":
        return cls(
            id=task.id,
            description=task.description,
            estimated_time=task.estimated_time,
            responsible=task.responsible,
            status=task.status,
        )


class SpecialityRequestSchema(BaseModel):
    speciality_id: int | None = None


class DoctorSearchRequestSchema(BaseModel):
    term: str = ""


class DoctorRequestSchema(BaseModel):
    doctor_id: int


class DateRequestSchema(BaseModel):
    date: dt.date | None = None


class TimeSlotRequestSchema(BaseModel):
    start_time: dt.time


class OfficeRequestSchema(BaseModel):
    office_id: int


class DoctorSchema(BaseModel):
    id: int
    name: str
    last_name: str
    speciality_ids: list[int] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, doctor: Doctor) -> "DoctorSchema":
        return cls(
            id=doctor.id,
            name=doctor.name,
            last_name=doctor.last_name,
            speciality_ids=list(doctor.speciality_ids),
        )


class OfficeSchema(BaseModel):
    id: int
    name: str
    location: str = ""

    @classmethod
    def from_entity(cls, office: Office) -> "OfficeSchema":
        return cls(id=office.id, name=office.name, location=office.location)


class TimeSlotSchema(BaseModel):
    start_time: str  # HH:MM
    end_time: str
    available: bool

    @classmethod
    def from_entity(cls, slot: TimeSlot) -> "TimeSlotSchema":
        return cls(
            start_time=f"{slot.start_time:%H:%M}",
            end_time=f"{slot.end_time:%H:%M}",
            available=slot.available,
        )


class DurationSchema(BaseModel):
    base_duration: int
    buffer_minutes: int
    rounding_minutes: int
    duration: int


class BookingConfirmationSchema(BaseModel):
    appointment_id: str
    doctor_id: int
    starts_at: dt.datetime
    ends_at: dt.datetime
    office_id: int


class SessionResponseSchema(BaseModel):
    session_id: str
    patient_history_id: int | None = None
    appointment_type_id: int | None = None
    template_tasks: list[TaskSchema] = Field(default_factory=list)
    custom_tasks: list[TaskSchema] = Field(default_factory=list)
    duration: DurationSchema
    speciality_id: int | None = None
    doctor_search_term: str | None = None
    doctor: DoctorSchema | None = None
    date: dt.date | None = None
    time_slot: TimeSlotSchema | None = None
    office_id: int | None = None
    available_doctors: list[DoctorSchema] = Field(default_factory=list)
    time_slots: list[TimeSlotSchema] = Field(default_factory=list)
    no_slots_reason: str | None = None
    available_offices: list[OfficeSchema] = Field(default_factory=list)
    complete: bool = False
    last_confirmation: BookingConfirmationSchema | None = None

    @classmethod
    def from_session(cls, session: SchedulingSession, buffer_minutes: int) -> "SessionResponseSchema":
        selection = session.selection
        doctor_filter = selection.doctor_filter
        outcome = describe_slots(selection)
        confirmation = session.last_confirmation
        breakdown = duration_breakdown(session.tasks.duration_state.base_duration, buffer_minutes)
        return cls(
            session_id=session.session_id,
            patient_history_id=session.patient_history_id,
            appointment_type_id=session.appointment_type_id,
            template_tasks=[TaskSchema.from_entity(t) for t in session.tasks.template_tasks],
            custom_tasks=[TaskSchema.from_entity(t) for t in session.tasks.custom_tasks],
            duration=DurationSchema(
                base_duration=breakdown["base_duration"],
                buffer_minutes=breakdown["buffer_minutes"],
                rounding_minutes=breakdown["rounding_minutes"],
                duration=session.tasks.duration_state.duration,
            ),
            speciality_id=selection.speciality_id,
            doctor_search_term=doctor_filter.name_term if doctor_filter else None,
            doctor=DoctorSchema.from_entity(selection.doctor) if selection.doctor else None,
            date=selection.date,
            time_slot=TimeSlotSchema.from_entity(selection.time_slot) if selection.time_slot else None,
            office_id=selection.office_id,
            available_doctors=[DoctorSchema.from_entity(d) for d in selection.available_doctors],
            time_slots=[TimeSlotSchema.from_entity(s) for s in selection.time_slots],
            no_slots_reason=outcome.reason.value if outcome and outcome.reason else None,
            available_offices=[OfficeSchema.from_entity(o) for o in selection.available_offices],
            complete=selection.is_complete,
            last_confirmation=(
                BookingConfirmationSchema(
                    appointment_id=confirmation.appointment_id,
                    doctor_id=confirmation.doctor_id,
                    starts_at=confirmation.starts_at,
                    ends_at=confirmation.ends_at,
                    office_id=confirmation.office_id,
                )
                if confirmation else None
            ),
        )


class BookingResponseSchema(BaseModel):
    confirmation: BookingConfirmationSchema
    session: SessionResponseSchema
