"""
Environment configuration for the booking engine.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from datetime import time
from typing import Any, Dict, Optional
from pathlib import Path
from functools import lru_cache
import json

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

from busdesk.core.constants import DEFAULT_BUS_SERVICES

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Engine settings with environment variable support"""

    APP_NAME: str = "Bus Booking Desk"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Remote store
    REMOTE_STORE_URL: Optional[str] = None
    # None disables the client timeout; a hung call only blocks its own operation
    REMOTE_STORE_TIMEOUT: Optional[float] = None

    # Lifecycle rules
    TIMEZONE: str = "Asia/Colombo"
    EXPIRY_CUTOFF: str = "05:30"

    # Phone handling
    PHONE_MIN_DIGITS: int = 9
    PHONE_MATCH_DIGITS: int = 9

    # Pricing
    BUS_SERVICES: Dict[str, Dict[str, Any]] = Field(
        default_factory=lambda: {name: dict(info) for name, info in DEFAULT_BUS_SERVICES.items()}
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None
    LOG_JSON: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("BUS_SERVICES", mode="before")
    @classmethod
    def parse_bus_services(cls, v: Any) -> Any:
        """Accept the price table as a JSON string"""
        if isinstance(v, str):
            return json.loads(v)
        return v

    @field_validator("EXPIRY_CUTOFF")
    @classmethod
    def validate_expiry_cutoff(cls, v: str) -> str:
        """Cutoff must be a 24-hour HH:MM value"""
        time.fromisoformat(v.strip())
        return v.strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def expiry_cutoff_time(self) -> time:
        return time.fromisoformat(self.EXPIRY_CUTOFF)

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
