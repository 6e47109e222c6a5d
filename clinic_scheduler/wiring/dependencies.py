from functools import lru_cache
import logging

from clinic_scheduler.core.config import settings
from clinic_scheduler.application.ports.clinic_api import ClinicApiPort
from clinic_scheduler.application.ports.session_store import SchedulingSessionStorePort
from clinic_scheduler.application.use_cases.scheduling_session import SchedulingSessionUseCase
from clinic_scheduler.infrastructure.clinic_api.http_clinic_api import HttpClinicApi
from clinic_scheduler.infrastructure.clinic_api.mock_clinic_api import MockClinicApi
from clinic_scheduler.infrastructure.store.memory_store import MemorySchedulingSessionStore


@lru_cache
def get_clinic_api() -> ClinicApiPort:
    logger = logging.getLogger(__name__)
    if settings.ENV.lower() in {"dev", "local"} and not settings.CLINIC_API_TOKEN:
        logger.info("Using MockClinicApi (token missing, ENV=%s)", settings.ENV)
        return MockClinicApi()
    logger.info("Using HttpClinicApi at %s", settings.CLINIC_API_BASE_URL)
    return HttpClinicApi()


@lru_cache
def get_session_store() -> SchedulingSessionStorePort:
    return MemorySchedulingSessionStore()


def get_scheduling_use_case() -> SchedulingSessionUseCase:
    return SchedulingSessionUseCase(
        api=get_clinic_api(),
        store=get_session_store(),
        buffer_minutes=settings.APPOINTMENT_BUFFER_MINUTES,
        strict=settings.strict_preconditions,
    )
