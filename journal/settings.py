from __future__ import annotations

import os
from datetime import timezone, tzinfo
from typing import List
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(..., alias="DATABASE_URL")

    timezone_name: str = Field("UTC", alias="JOURNAL_TIMEZONE")
    export_dir: str | None = Field(None, alias="JOURNAL_EXPORT_DIR")
    data_dir: str | None = Field(None, alias="JOURNAL_DATA_DIR")
    log_level: str = Field("INFO", alias="JOURNAL_LOG_LEVEL")
    default_period_days: int = Field(90, alias="JOURNAL_DEFAULT_PERIOD_DAYS")

    allowed_users_raw: str = Field("", alias="ALLOWED_USERS")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def allowed_users(self) -> List[str]:
        return [user.strip().lower() for user in self.allowed_users_raw.split(",") if user.strip()]

    def tzinfo(self) -> tzinfo:
        try:
            return ZoneInfo(self.timezone_name)
        except Exception:
            return timezone.utc

    def app_data_dir(self) -> str:
        if self.data_dir:
            return self.data_dir
        return os.path.join(os.path.expanduser("~"), ".personal-journal")


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


# For local dev convenience only.
if os.getenv("JOURNAL_DEBUG_SETTINGS"):
    print(get_settings())
