from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException

from clinic_scheduler.api.v1.schemas import (
    AppointmentTypeRequestSchema,
    BookingConfirmationSchema,
    BookingResponseSchema,
    DateRequestSchema,
    DoctorRequestSchema,
    DoctorSearchRequestSchema,
    OfficeRequestSchema,
    PatientRequestSchema,
    SessionResponseSchema,
    SpecialityRequestSchema,
    TaskSchema,
    TimeSlotRequestSchema,
)
from clinic_scheduler.application.exceptions import (
    BookingConflict,
    BookingFailure,
    FetchFailure,
    PreconditionViolation,
)
from clinic_scheduler.application.use_cases.scheduling_session import SchedulingSessionUseCase
from clinic_scheduler.domain.entities.scheduling_session import SchedulingSession
from clinic_scheduler.wiring.dependencies import get_scheduling_use_case

router = APIRouter()


def _execute(uc: SchedulingSessionUseCase, action: Callable[[], SchedulingSession]) -> SessionResponseSchema:
    try:
        session = action()
    except (ValueError, IndexError, PreconditionViolation) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FetchFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    return SessionResponseSchema.from_session(session, uc.buffer_minutes)


@router.get("/sessions/{session_id}", response_model=SessionResponseSchema)
def get_session(session_id: str, uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case)):
    return _execute(uc, lambda: uc.get_session(session_id))


@router.delete("/sessions/{session_id}", response_model=SessionResponseSchema)
def cancel_session(session_id: str, uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case)):
    return _execute(uc, lambda: uc.cancel(session_id))


@router.post("/sessions/{session_id}/patient", response_model=SessionResponseSchema)
def set_patient(
    session_id: str,
    req: PatientRequestSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.set_patient(session_id, req.patient_history_id))


@router.post("/sessions/{session_id}/appointment-type", response_model=SessionResponseSchema)
def set_appointment_type(
    session_id: str,
    req: AppointmentTypeRequestSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.set_appointment_type(session_id, req.appointment_type_id))


@router.post("/sessions/{session_id}/tasks", response_model=SessionResponseSchema)
def add_task(
    session_id: str,
    req: TaskSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.add_task(session_id, req.to_entity()))


@router.put("/sessions/{session_id}/tasks/{index}", response_model=SessionResponseSchema)
def update_task(
    session_id: str,
    index: int,
    req: TaskSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.update_task(session_id, index, req.to_entity()))


@router.delete("/sessions/{session_id}/tasks/{index}", response_model=SessionResponseSchema)
def remove_task(
    session_id: str,
    index: int,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.remove_task(session_id, index=index))


@router.post("/sessions/{session_id}/speciality", response_model=SessionResponseSchema)
def set_speciality(
    session_id: str,
    req: SpecialityRequestSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.set_speciality(session_id, req.speciality_id))


@router.post("/sessions/{session_id}/doctor-search", response_model=SessionResponseSchema)
def search_doctors(
    session_id: str,
    req: DoctorSearchRequestSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.search_doctors(session_id, req.term))


@router.post("/sessions/{session_id}/doctor", response_model=SessionResponseSchema)
def select_doctor(
    session_id: str,
    req: DoctorRequestSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.select_doctor(session_id, req.doctor_id))


@router.post("/sessions/{session_id}/date", response_model=SessionResponseSchema)
def set_date(
    session_id: str,
    req: DateRequestSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.set_date(session_id, req.date))


@router.post("/sessions/{session_id}/time-slot", response_model=SessionResponseSchema)
def select_time_slot(
    session_id: str,
    req: TimeSlotRequestSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.select_time_slot(session_id, req.start_time))


@router.post("/sessions/{session_id}/office", response_model=SessionResponseSchema)
def select_office(
    session_id: str,
    req: OfficeRequestSchema,
    uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case),
):
    return _execute(uc, lambda: uc.select_office(session_id, req.office_id))


@router.post("/sessions/{session_id}/booking", response_model=BookingResponseSchema)
def submit_booking(session_id: str, uc: SchedulingSessionUseCase = Depends(get_scheduling_use_case)):
    try:
        confirmation = uc.submit_booking(session_id)
    except PreconditionViolation as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BookingConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BookingFailure as e:
        raise HTTPException(status_code=502, detail=str(e))

    if confirmation is None:
        raise HTTPException(status_code=400, detail="Selection is incomplete.")

    return BookingResponseSchema(
        confirmation=BookingConfirmationSchema(
            appointment_id=confirmation.appointment_id,
            doctor_id=confirmation.doctor_id,
            starts_at=confirmation.starts_at,
            ends_at=confirmation.ends_at,
            office_id=confirmation.office_id,
        ),
        session=SessionResponseSchema.from_session(uc.get_session(session_id), uc.buffer_minutes),
    )
