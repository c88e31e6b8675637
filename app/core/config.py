from pydantic_settings import BaseSettings
from typing import List, Optional, Union
from pydantic import field_validator
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Where Are They API"
    BASE_URL: str = "https://www.aretheyhere.com"

    # Database Settings
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "wherearethey"
    DATABASE_URL_OVERRIDE: Optional[str] = None

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis Settings (for Celery task queue and rate limiting)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Logging
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # Email encryption at rest (Fernet keys, newest first, comma-separated)
    ENCRYPTION_KEYS: str = ""

    # Admin access (Authorization: Bearer <token>)
    ADMIN_API_TOKEN: str = ""

    # Anti-spam and geofence limits
    IDENTIFIER_MIN_LENGTH: int = 8
    ALERT_MAX_RADIUS_KM: float = 160.9

    # Fallback timezone for report times when the location has none (open sea)
    DISPLAY_TIMEZONE: str = "UTC"

    # Email sender identity (shared by all providers)
    EMAIL_FROM_ADDRESS: str = "alerts@aretheyhere.com"
    EMAIL_FROM_NAME: str = "AreTheyHere Alerts"

    # Resend (primary)
    RESEND_API_KEY: str = ""

    # SendGrid
    SENDGRID_API_KEY: str = ""

    # Brevo
    BREVO_API_KEY: str = ""

    # AWS SES
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_SES_ENABLED: bool = False

    # SMTP (last resort)
    SMTP_SERVER: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True

    # CORS Settings - can be set as JSON string in .env
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:8000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[List[str], str]) -> List[str]:
        """Parse CORS origins from JSON string or list"""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not valid JSON, split by comma
                return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def encryption_key_list(self) -> List[str]:
        return [key.strip() for key in self.ENCRYPTION_KEYS.split(",") if key.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
