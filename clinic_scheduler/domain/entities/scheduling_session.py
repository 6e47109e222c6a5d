from __future__ import annotations

from dataclasses import dataclass

from clinic_scheduler.domain.entities.booking import BookingConfirmation
from clinic_scheduler.domain.entities.medical_task import TaskSet
from clinic_scheduler.domain.entities.selection_state import SelectionState


@dataclass(frozen=True)
class SchedulingSession:
    session_id: str
    selection: SelectionState = SelectionState()
    tasks: TaskSet = TaskSet()
    patient_history_id: int | None = None
    appointment_type_id: int | None = None
    last_confirmation: BookingConfirmation | None = None  # set after a successful booking
    updated_at: float | None = None
