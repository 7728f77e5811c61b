"""
Application configuration and environment settings.
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "GroupLedger"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./groupledger.db"
    DB_ECHO: bool = False

    # JWT (tokens are issued by the auth collaborator, verified here)
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # CORS
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:8080"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Ledger
    DEFAULT_CURRENCY: str = "USD"  # Carried on groups and expenses, never converted

    # Notifications
    NOTIFIER_WEBHOOK_URL: str = ""  # Empty -> settlement events are only logged
    NOTIFIER_TIMEOUT: float = 5.0  # Seconds

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
