# consult_scheduler/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = "dev"
    APP_NAME: str = "Consultation Scheduler"

    # DB URL – SQLite local by default
    DATABASE_URL: str = "sqlite:///./app.db"

    LOG_LEVEL: str = "INFO"

    # Scheduling engine defaults
    DEFAULT_SLOT_LENGTH_MINUTES: int = 30
    # Upper bound on instances a single recurring booking may create
    MAX_RECURRENCE_INSTANCES: int = 366

    # Minutes before the session: 1 day, 1 hour, 15 minutes
    REMINDER_INTERVALS_MINUTES: List[int] = [24 * 60, 60, 15]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

_settings: Optional[Settings] = None

def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
