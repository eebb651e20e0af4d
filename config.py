"""
Application configuration
Read from environment variables (prefix HOTEL_) or a local .env file
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    APP_NAME: str = "Hotel Front Office API"
    LOG_LEVEL: str = "INFO"

    # Property context sent with every reservation
    HOTEL_ID: str = "HTL001"
    HOTEL_CODE: str = "GRANDVIEW"
    CURRENCY: str = "INR"

    # Backend of record; empty URL selects the in-memory backend
    BACKEND_URL: str = ""
    BACKEND_TOKEN: Optional[str] = None
    BACKEND_TIMEOUT_SECONDS: float = 10.0

    # Client-side snapshot of reservations, rate plans and alerts
    SNAPSHOT_PATH: Optional[str] = None

    # Availability
    LOW_INVENTORY_THRESHOLD: int = 2

    # Alert engine
    ALERT_INTERVAL_SECONDS: float = 60.0
    CHECKOUT_CUTOFF_HOUR: int = 12
    ROOM_CLEANING_SLA_MINUTES: int = 90
    ALERT_LIMIT: int = 40

    # JWT
    SECRET_KEY: str = "change-me-front-office-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    model_config = SettingsConfigDict(env_prefix="HOTEL_", env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
