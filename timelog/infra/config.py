"""
Configuration management using Pydantic Settings.

Architecture Decision: Settings sources instead of a hand-written loader
Values come from, in order of priority: constructor arguments, TIMELOG_*
environment variables, a .env file, settings.yaml and finally the defaults
below. The YAML file is just another pydantic-settings source, so it is
validated like everything else and never overrides the environment.

Reading settings has no side effects on disk; the data directory is only
created when the default SQLite URL is handed out.
"""

import os
from pathlib import Path
from typing import List, Optional

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from timelog.domain.models import UserPreferences

APP_DIR_NAME = "timelog"
WORKSPACE_SETTINGS = Path("config") / "settings.yaml"


def user_dir(kind: str) -> Path:
    """Per-user directory for 'config' or 'data' files"""
    if os.name == "nt":
        return Path(os.getenv("APPDATA", Path.home())) / APP_DIR_NAME
    base = Path.home() / ".config" if kind == "config" else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def settings_files(config_dir: Optional[Path] = None) -> List[Path]:
    """YAML files to read, lowest priority first; missing files are skipped"""
    return [Path(config_dir or user_dir("config")) / "settings.yaml", WORKSPACE_SETTINGS]


class Settings(BaseSettings):
    """
    Process-wide settings.

    settings.yaml uses the field names below, e.g.::

        log_level: DEBUG
        preferences:
          timezone: Europe/Berlin
          start_of_week: SUNDAY
          locale: de_DE
    """
    model_config = SettingsConfigDict(
        env_prefix='TIMELOG_',
        env_file='.env',
        env_file_encoding='utf-8',
        env_nested_delimiter='__',
        extra='ignore',
    )

    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None
    database_url: Optional[str] = None
    log_level: str = "INFO"

    # Default viewer preferences for callers that have none of their own
    preferences: UserPreferences = UserPreferences()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        config_dir = init_settings.init_kwargs.get("config_dir") or os.getenv("TIMELOG_CONFIG_DIR")
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=settings_files(config_dir),
                                                 yaml_file_encoding="utf-8")
        return init_settings, env_settings, dotenv_settings, yaml_settings

    def get_db_url(self) -> str:
        """Configured database URL, or a SQLite file in the data directory"""
        if self.database_url:
            return self.database_url

        data_dir = self.data_dir or user_dir("data")
        data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{data_dir / 'timelog.db'}"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Settings shared by the whole process, read on first use"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
