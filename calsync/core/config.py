# calsync/core/config.py
import secrets
from typing import List, Literal, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment settings
    ENVIRONMENT: Literal["development", "testing", "production"] = "development"

    # API settings
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"

    # Server settings
    SERVER_HOST: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:3000"  # Where the OAuth callback lands the user

    # CORS settings
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://localhost:3000",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None  # Path to log file if file logging is enabled

    # Database settings
    SQLALCHEMY_DATABASE_URI: str

    # API Call Timeouts (in seconds)
    DEFAULT_TIMEOUT: int = 30
    GOOGLE_API_TIMEOUT: float = 20

    # Google OAuth
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_CLIENT_SECRETS_JSON: str = ""
    GOOGLE_CALENDAR_CALLBACK_URL: Optional[str] = None
    GOOGLE_CALENDAR_SCOPES: List[str] = ["https://www.googleapis.com/auth/calendar"]
    GOOGLE_TOKEN_URI: str = "https://oauth2.googleapis.com/token"
    OAUTH_STATE_EXPIRE_MINUTES: int = 10

    # Dedicated calendar provisioned on the user's Google account
    DEDICATED_CALENDAR_NAME: str = "Calsync"
    DEDICATED_CALENDAR_DESCRIPTION: str = "Events shared from Calsync"
    DEFAULT_TIMEZONE: str = "America/Los_Angeles"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    @property
    def google_callback_url(self) -> str:
        return (
            self.GOOGLE_CALENDAR_CALLBACK_URL
            or f"{self.SERVER_HOST}{self.API_V1_STR}/calendar/google/callback"
        )


# Create settings instance
settings = Settings()
