from __future__ import annotations

from clinic_scheduler.application.exceptions import PreconditionViolation
from clinic_scheduler.application.utils.slots import to_minutes
from clinic_scheduler.domain.entities.booking import BookingRequest
from clinic_scheduler.domain.entities.scheduling_session import SchedulingSession


def build_booking_request(session: SchedulingSession, medical_task_ids: tuple[int, ...] = ()) -> BookingRequest:
    """Turn a complete selection into the request submitted to the clinic API."""
    selection = session.selection
    if not selection.is_complete:
        raise PreconditionViolation("Booking requires doctor, date, time slot and office to be selected.")
    if session.patient_history_id is None:
        raise PreconditionViolation("Booking requires a patient.")
    if session.appointment_type_id is None:
        raise PreconditionViolation("Booking requires an appointment type.")

    return BookingRequest(
        doctor_id=selection.doctor.id,
        date=selection.date,
        start_time=selection.time_slot.start_time,
        office_id=selection.office_id,
        patient_history_id=session.patient_history_id,
        appointment_type_id=session.appointment_type_id,
        duration_minutes=to_minutes(selection.time_slot.end_time) - to_minutes(selection.time_slot.start_time),
        medical_task_ids=tuple(medical_task_ids),
    )
