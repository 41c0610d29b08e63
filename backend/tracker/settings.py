"""Tracker sync configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class TrackerSettings(BaseSettings):
    model_config = {"env_prefix": "TRACKER_"}

    # Base URL of the score-tracking API, e.g. "https://tracker.example.com/api"
    api_url: str = Field(min_length=1)
    # Bearer token; may also be passed on the command line
    api_token: str = ""
    database_path: str = Field(default="backend/storage.db", min_length=1)
    log_dir: str = Field(default="backend/logs/tracker", min_length=1)
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    # Pause between consecutive round fetches during backfill
    throttle_delay_ms: int = Field(default=100, ge=0)
    # Players shown in the overall ranking table
    roster: list[str] = []

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("roster", mode="before")
    @classmethod
    def validate_roster(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @property
    def throttle_delay_seconds(self) -> float:
        return self.throttle_delay_ms / 1000

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
