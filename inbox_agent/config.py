"""
Unified configuration management: constants + environment variables with validation.
"""
from __future__ import annotations

import os
import threading
from typing import Any

import structlog
from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from inbox_agent import constants

logger = structlog.get_logger(__name__)

LOG_FORMATS = ("json", "console")


def _load_constants_config(settings_fields: set[str]) -> dict[str, Any]:
    """Load the constants that correspond to Settings fields.

    All configuration uses uppercase keys (e.g., APP_NAME).
    """
    logger.debug(
        "loading_constants_config",
        environment=os.getenv("ENVIRONMENT", "unknown"),
        constants_env=constants.ENVIRONMENT,
    )
    return {
        key: value
        for key, value in constants.CONSTANTS.items()
        if key in settings_fields
    }


class ConstantsConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads configuration from constants.py."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return super().get_field_value(field, field_name)

    def __call__(self) -> dict[str, Any]:
        return _load_constants_config(set(self.settings_cls.model_fields.keys()))


class Settings(BaseSettings):
    """Application settings with validation and metadata."""

    # App metadata
    APP_NAME: str
    APP_VERSION: str
    SERVICE_NAME: str

    # Server
    HOST: str
    PORT: int

    # Logging
    LOG_LEVEL: str
    LOG_FORMAT: str

    # CORS
    CORS_ALLOW_ORIGINS: list[str]
    CORS_ALLOW_CREDENTIALS: bool

    # LLM
    LLM_MODEL_NAME: str
    LLM_TEMPERATURE: float | None = None
    LLM_MAX_RETRIES: int = Field(ge=0)
    GOOGLE_API_KEY: str | None = Field(default=None, exclude=True)

    # Gmail
    GMAIL_MAX_RESULTS: int = Field(ge=1)
    GMAIL_FETCH_CONCURRENCY: int = Field(ge=1)
    GMAIL_MAX_CONTEXT_MESSAGES: int = Field(ge=1)
    GMAIL_CLIENT_ID: str | None = Field(default=None, exclude=True)
    GMAIL_CLIENT_SECRET: str | None = Field(default=None, exclude=True)
    GMAIL_REFRESH_TOKEN: str | None = Field(default=None, exclude=True)

    # Narrative briefing
    NARRATIVE_LOOKBACK_HOURS: int = Field(ge=1)

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, value: str) -> str:
        if value not in LOG_FORMATS:
            raise ValueError(f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got {value!r}")
        return value

    @computed_field
    @property
    def environment(self) -> str:
        """Current environment (dev, stg, or prd)."""
        return constants.ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=True,
        populate_by_name=True,
        env_file=None,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Constants provide defaults, environment variables override them."""
        return (
            init_settings,
            env_settings,
            ConstantsConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get Settings instance (thread-safe singleton)."""
    global _settings_instance
    if _settings_instance is None:
        with _settings_lock:
            if _settings_instance is None:
                _settings_instance = Settings()
    return _settings_instance
