"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """todolist configuration. All values come from ``TODOLIST_*`` environment variables."""

    # Storage
    database_path: Path = Field(default=Path("data/todolist.db"))
    storage_key: str = Field(default="@tasks_v2")
    legacy_storage_key: str = Field(default="tasks")

    # Tasks
    default_category: str = Field(default="General")

    # Reminders
    timezone: str = Field(default="UTC")
    notifications_enabled: bool = Field(default=True)
    notification_channel: str = Field(default="console")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="TODOLIST_",
        env_file=_env_file(),
        env_file_encoding="utf-8",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_storage_keys(self) -> list[str]:
        """Keys to read at load time, current layout first."""
        keys = [self.storage_key]
        legacy = self.legacy_storage_key.strip()
        if legacy and legacy != self.storage_key:
            keys.append(legacy)
        return keys


settings = Settings()
