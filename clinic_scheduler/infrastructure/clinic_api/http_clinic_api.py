from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from clinic_scheduler.application.dto.clinic_payloads import (
    AvailabilityDTO,
    AvailableOfficesRequestDTO,
    BaseAppointmentDTO,
    BusyAvailabilityDTO,
    BusyPeriodDTO,
    CreateAppointmentDTO,
    DoctorDTO,
    MedicalTaskDTO,
    OfficeDTO,
)
from clinic_scheduler.application.exceptions import BookingConflict, BookingFailure, FetchFailure
from clinic_scheduler.application.ports.clinic_api import ClinicApiPort
from clinic_scheduler.core.config import settings
from clinic_scheduler.domain.entities.availability import AvailabilityWindow, BookedInterval
from clinic_scheduler.domain.entities.booking import BookingConfirmation, BookingRequest
from clinic_scheduler.domain.entities.clinic import Doctor, Office
from clinic_scheduler.domain.entities.medical_task import MedicalTask

DOCTORS_BY_SPECIALITY = "/api/doctors/speciality/{speciality_id}"
DOCTORS_SEARCH = "/api/doctors/search"
PERSONAL_AVAILABILITIES = "/api/availabilities/personal/{personal_id}"
AVAILABILITIES = "/api/availabilities"
MEDICAL_APPOINTMENTS = "/api/medical-appointments"
BASE_APPOINTMENTS = "/api/medical-appointments/base"
MEDICAL_OFFICES_AVAILABLE = "/api/medical-offices/available"
MEDICAL_TASKS = "/api/medical-tasks"
MEDICAL_TASKS_BY_IDS = "/api/medical-tasks/by-ids"


class HttpClinicApi(ClinicApiPort):
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.CLINIC_API_BASE_URL).rstrip("/")
        self._token = token if token is not None else settings.CLINIC_API_TOKEN
        self._client = client or httpx.Client(timeout=timeout or settings.CLINIC_API_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        response = self._client.request(method, url, headers=self._headers(), **kwargs)
        response.raise_for_status()
        return response

    def _fetch(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._send(method, path, **kwargs)
            return response.json() if response.content else None
        except httpx.HTTPStatusError as e:
            self._logger.error(
                "Clinic API request failed",
                extra={"error": f"{e.response.status_code} {method} {path}"},
            )
            raise FetchFailure(f"Clinic API returned {e.response.status_code} for {method} {path}") from e
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Clinic API unreachable", extra={"error": str(e)})
            raise FetchFailure(f"Clinic API request {method} {path} failed: {e}") from e

    def _parse_list(self, dto: type[BaseModel], payload: Any) -> list[Any]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise FetchFailure(f"Expected a list from the clinic API, got {type(payload).__name__}")
        try:
            return [dto.model_validate(item).to_entity() for item in payload]
        except ValidationError as e:
            self._logger.error("Malformed clinic API payload", extra={"error": str(e)})
            raise FetchFailure(f"Malformed {dto.__name__} payload") from e

    def fetch_doctors_by_speciality(self, speciality_id: int) -> list[Doctor]:
        payload = self._fetch("GET", DOCTORS_BY_SPECIALITY.format(speciality_id=speciality_id))
        return self._parse_list(DoctorDTO, payload)

    def fetch_doctors_by_name(self, term: str) -> list[Doctor]:
        if not term.strip():
            return []
        payload = self._fetch("GET", DOCTORS_SEARCH, params={"name": term.strip()})
        return self._parse_list(DoctorDTO, payload)

    def _personal_availabilities(self, personal_id: int) -> list[dict[str, Any]]:
        payload = self._fetch("GET", PERSONAL_AVAILABILITIES.format(personal_id=personal_id))
        if payload is None:
            return []
        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            raise FetchFailure("Expected a list of availabilities from the clinic API")
        return payload

    def fetch_availability_windows(self, doctor_id: int) -> list[AvailabilityWindow]:
        # weekly windows carry a weekday; dated entries are busy markers
        entries = [item for item in self._personal_availabilities(doctor_id) if not _is_dated(item)]
        return self._parse_list(AvailabilityDTO, entries)

    def fetch_booked_intervals(self, personal_id: int, day: date) -> list[BookedInterval]:
        entries = [item for item in self._personal_availabilities(personal_id) if _is_dated(item)]
        try:
            periods = [BusyPeriodDTO.model_validate(item) for item in entries]
        except ValidationError as e:
            self._logger.error("Malformed busy period payload", extra={"error": str(e)})
            raise FetchFailure("Malformed busy period payload") from e
        return [period.to_interval(day) for period in periods if period.covers(day)]

    def fetch_available_offices(self, day: date, start_time: time, end_time: time) -> list[Office]:
        body = AvailableOfficesRequestDTO(
            date=day.isoformat(),
            start_time=f"{start_time:%H:%M}",
            end_time=f"{end_time:%H:%M}",
        )
        payload = self._fetch("POST", MEDICAL_OFFICES_AVAILABLE, json=body.model_dump(by_alias=True))
        return self._parse_list(OfficeDTO, payload)

    def fetch_template_tasks(self, appointment_type_id: int) -> list[MedicalTask]:
        payload = self._fetch("GET", BASE_APPOINTMENTS)
        if not isinstance(payload, list):
            raise FetchFailure("Expected a list of base appointments from the clinic API")
        try:
            base_appointments = [BaseAppointmentDTO.model_validate(item) for item in payload]
        except ValidationError as e:
            raise FetchFailure("Malformed base appointment payload") from e

        base = next(
            (a for a in base_appointments if a.type_of_medical_appointment_id == appointment_type_id),
            None,
        )
        if base is None:
            raise FetchFailure(f"No base appointment for appointment type {appointment_type_id}")
        if not base.medical_task_ids:
            return []

        ids = ",".join(str(task_id) for task_id in base.medical_task_ids)
        payload = self._fetch("GET", MEDICAL_TASKS_BY_IDS, params={"ids": ids})
        return self._parse_list(MedicalTaskDTO, payload)

    def create_medical_tasks(self, tasks: list[MedicalTask]) -> list[MedicalTask]:
        created: list[MedicalTask] = []
        for task in tasks:
            body = MedicalTaskDTO.from_entity(task).model_dump(by_alias=True, exclude={"id"})
            payload = self._fetch("POST", MEDICAL_TASKS, json=body)
            try:
                created.append(MedicalTaskDTO.model_validate(payload).to_entity())
            except ValidationError as e:
                raise FetchFailure("Malformed medical task returned by the clinic API") from e
        self._logger.info("Medical tasks created", extra={"count": len(created)})
        return created

    def submit_booking(self, request: BookingRequest) -> BookingConfirmation:
        body = CreateAppointmentDTO.from_request(request).model_dump(by_alias=True)
        try:
            response = self._send("POST", MEDICAL_APPOINTMENTS, json=body)
            data = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                self._logger.warning(
                    "Booking rejected: slot already taken",
                    extra={"doctor_id": request.doctor_id, "date": request.date.isoformat()},
                )
                raise BookingConflict("The selected time slot was booked by someone else.") from e
            self._logger.error("Error creating appointment", extra={"error": str(e)})
            raise BookingFailure(f"Clinic API returned {e.response.status_code} creating the appointment") from e
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Error creating appointment", extra={"error": str(e)})
            raise BookingFailure(f"Creating the appointment failed: {e}") from e

        appointment_id = data.get("id") if isinstance(data, dict) else None
        if appointment_id is None:
            raise BookingFailure("No appointment id returned from the clinic API")

        self._logger.info(
            "Appointment created",
            extra={"doctor_id": request.doctor_id, "date": request.date.isoformat()},
        )
        return BookingConfirmation(
            appointment_id=str(appointment_id),
            doctor_id=request.doctor_id,
            starts_at=request.starts_at,
            ends_at=request.ends_at,
            office_id=request.office_id,
        )

    def record_busy_interval(self, personal_id: int, start: datetime, end: datetime) -> None:
        body = BusyAvailabilityDTO(
            start_time=start.strftime("%Y-%m-%dT%H:%M:%S"),
            end_time=end.strftime("%Y-%m-%dT%H:%M:%S"),
            personal_ids=[personal_id],
        )
        self._fetch("POST", AVAILABILITIES, json=body.model_dump(by_alias=True))


def _is_dated(item: dict[str, Any]) -> bool:
    return "T" in str(item.get("startTime", ""))
