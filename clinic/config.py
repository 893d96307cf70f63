# clinic/config.py
import os
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _csv(value: str) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    APP_NAME: str = "Clinic Scheduling API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1

    # Database (SQLite for local runs, Postgres in deployment)
    DATABASE_URL: str = "sqlite:///./clinic.db"

    # Bearer tokens are minted by the identity service; this API only verifies them
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS, comma-separated
    ALLOWED_ORIGINS: str = "*"
    ALLOWED_METHODS: str = "GET,POST,PATCH,DELETE,OPTIONS"
    ALLOWED_HEADERS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    GZIP_MIN_SIZE: int = 500  # bytes
    MAX_REQUEST_SIZE: int = 1024 * 1024  # JSON bodies only
    RATE_LIMIT_PER_MINUTE: int = 120
    HEALTH_CHECK_ENABLED: bool = True

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Scheduling rules
    MIN_REASON_LENGTH: int = 10
    MIN_SYMPTOMS_LENGTH: int = 10
    ALLOWED_SLOT_DURATIONS: List[int] = [15, 30, 45, 60]
    DEFAULT_CONSULTATION_FEE: float = 500.0
    DEFAULT_PAYMENT_METHOD: str = "CASH"

    @property
    def allowed_origins_list(self) -> List[str]:
        return _csv(self.ALLOWED_ORIGINS)

    @property
    def allowed_methods_list(self) -> List[str]:
        return _csv(self.ALLOWED_METHODS)

    @property
    def allowed_headers_list(self) -> List[str]:
        return _csv(self.ALLOWED_HEADERS)


@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Older deployments still export CORS_ORIGINS
    if os.environ.get("CORS_ORIGINS"):
        s.ALLOWED_ORIGINS = os.environ["CORS_ORIGINS"]
    return s


settings: Settings = get_settings()
