from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    CLINIC_API_BASE_URL: str = "http://localhost:8080/g5/siscom"
    CLINIC_API_TOKEN: str | None = None
    CLINIC_API_TIMEOUT_SECONDS: float = 10.0

    # an appointment always reserves at least one minute of slack
    APPOINTMENT_BUFFER_MINUTES: int = Field(default=15, ge=1)
    STRICT_PRECONDITIONS: bool | None = None

    @property
    def strict_preconditions(self) -> bool:
        if self.STRICT_PRECONDITIONS is not None:
            return self.STRICT_PRECONDITIONS
        return self.ENV.lower() in {"dev", "local", "test"}


settings = Settings()
