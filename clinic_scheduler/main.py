import logging

from fastapi import FastAPI

from clinic_scheduler.api.v1.scheduling import router as scheduling_router
from clinic_scheduler.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("session_id", "stage", "doctor_id", "date", "reason", "task_ids", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Clinic Appointment Scheduler", version="1.0.0")

app.include_router(scheduling_router, prefix="/api/v1/scheduling", tags=["scheduling"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
