"""Runtime settings loaded from `.env` and environment variables.

All variables use the ``FORMSTATE_`` prefix, e.g. ``FORMSTATE_LOG_LEVEL=DEBUG``
or ``FORMSTATE_DEFAULT_VALIDATION_MODE=onSubmit``.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from formstate.errors import SettingsError
from formstate.types import ValidationMode


class Settings(BaseSettings):
    """Package settings."""

    model_config = SettingsConfigDict(
        env_prefix="FORMSTATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level, e.g. 'INFO', 'DEBUG'.")
    log_json: bool = Field(default=False, description="Enable JSON formatted logs.")
    log_file: Optional[str] = Field(default=None, description="File path for log output.")
    default_validation_mode: ValidationMode = Field(
        default=ValidationMode.ON_CHANGE,
        description="Validation mode used by forms that do not set one explicitly.",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance.

    Raises:
        SettingsError: If settings cannot be validated.
    """
    try:
        return Settings()
    except ValidationError as exc:
        raise SettingsError(exc=exc) from exc


__all__ = [
    "Settings",
    "get_settings",
]
