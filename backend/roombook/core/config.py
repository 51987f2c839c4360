from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    PROJECT_NAME: str = "Meeting Room Booking API"
    API_V1_STR: str = "/api"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./roombook.db"
    DB_POOL_SIZE: int = 10
    DB_POOL_RECYCLE_SECONDS: int = 1800

    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    # Room images are written below UPLOAD_DIR/rooms and served from /uploads
    UPLOAD_DIR: str = "uploads"
    MAX_IMAGE_SIZE: int = 5 * 1024 * 1024

    SECRET_KEY: str = "changeme"
    JWT_ALGORITHM: str = "HS256"
    ADMIN_TOKEN_EXPIRE_MINUTES: int = 60
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD_HASH: Optional[str] = None

    BOOKING_TIMEZONE: str = "Asia/Kolkata"
    BOOKING_PAST_GRACE_MINUTES: int = 5
    DEFAULT_MEETING_TYPE: str = "in-person"
    REQUIRE_VERIFIED_EMAIL: bool = False

    OTP_LENGTH: int = 6
    OTP_TTL_MINUTES: int = 5
    OTP_SEND_RATE_LIMIT: str = "5/minute"
    OTP_CLEANUP_INTERVAL_SECONDS: int = 0
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    MAIL_BACKEND: Literal["graph", "smtp", "console", "disabled"] = "disabled"
    MAIL_SENDER: Optional[str] = None
    MAIL_TIMEOUT_SECONDS: int = 10
    GRAPH_TENANT_ID: Optional[str] = None
    GRAPH_CLIENT_ID: Optional[str] = None
    GRAPH_CLIENT_SECRET: Optional[str] = None
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_SSL: bool = True

    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: List[str] | str) -> List[str]:
        """Allow both comma-separated strings and list inputs."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
