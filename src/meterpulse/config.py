"""Runtime configuration loaded from METERPULSE_* environment variables."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from meterpulse.ingestion.timezones import DISPLAY_TIMEZONES


class Settings(BaseSettings):
    """CLI defaults; every value can be overridden by a command option.

    Attributes:
        country_hint: Two-letter country code used when a document has no
            market identifier.
        display_timezone: Key into the display timezone table used for
            hourly and daily grouping.
        http_timeout: Seconds to wait when fetching documents over HTTP.
        log_level: Minimum structlog level to emit.
    """

    model_config = SettingsConfigDict(env_prefix="METERPULSE_", env_file=".env", extra="ignore")

    country_hint: str | None = None
    display_timezone: str = "UTC"
    http_timeout: float = 30.0
    log_level: str = "INFO"

    @field_validator("display_timezone")
    @classmethod
    def display_timezone_must_be_known(cls, v: str) -> str:
        if v not in DISPLAY_TIMEZONES:
            raise ValueError(f"Unknown display timezone: {v}. Valid: {list(DISPLAY_TIMEZONES)}")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_upper(cls, v: str) -> str:
        return v.upper()
