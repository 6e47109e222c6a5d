from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta


@dataclass(frozen=True)
class BookingRequest:
    doctor_id: int
    date: date
    start_time: time
    office_id: int
    patient_history_id: int
    appointment_type_id: int
    duration_minutes: int
    medical_task_ids: tuple[int, ...] = field(default_factory=tuple)

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class BookingConfirmation:
    appointment_id: str
    doctor_id: int
    starts_at: datetime
    ends_at: datetime
    office_id: int
