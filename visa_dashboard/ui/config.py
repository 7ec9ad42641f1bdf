"""
ui/config.py
------------
Console settings. Kept apart from the backend Settings so the console can
start without the API's secrets or database URL.

TIMEZONE must match the backend's, so that the Today / Month / Year lists
on the All Applications page start where the Analytics page does.
"""

from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from visa_dashboard.services.analytics import now_in


class ConsoleSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    BACKEND_URL: str = "http://127.0.0.1:8000"
    REQUEST_TIMEOUT: float = 30.0
    DEBUG: bool = False
    DEFAULT_AGENCY_NAME: str = "Visa Dashboard"
    TIMEZONE: str = "UTC"

    @field_validator("TIMEZONE")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{v}'") from exc
        return v

    def now(self) -> datetime:
        return now_in(self.TIMEZONE)


@lru_cache()
def get_console_settings() -> ConsoleSettings:
    return ConsoleSettings()
