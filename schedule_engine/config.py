"""Engine settings, overridable through ``SCHEDULE_ENGINE_*`` environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .timemodel import WEEKDAYS, WeekDay, time_to_minutes


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SCHEDULE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Standard teaching day, used for faculty without declared availability
    day_start: str = "07:00"
    day_end: str = "19:00"
    teaching_days: list[WeekDay] = Field(default_factory=lambda: list(WEEKDAYS))

    # Slot tiling
    slot_granularity_minutes: int = Field(default=30, ge=5, le=120)
    max_session_minutes: int = Field(default=180, ge=30, le=600)
    max_sessions_per_entry: int = Field(default=3, ge=1, le=7)
    max_slot_options: int = Field(default=60, ge=1)

    # Search budget
    max_trials: int = Field(default=200_000, ge=1)
    max_backtracks: int = Field(default=5_000, ge=0)
    time_limit_seconds: float | None = Field(default=None, gt=0)

    # Optimistic commit
    commit_retries: int = Field(default=3, ge=0)

    log_level: str = "INFO"

    @field_validator("teaching_days", mode="before")
    @classmethod
    def parse_teaching_days(cls, value):
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        return [WeekDay.parse(v) for v in value]

    @model_validator(mode="after")
    def validate_day_bounds(self) -> "EngineSettings":
        """Ensure the teaching day starts before it ends."""
        if time_to_minutes(self.day_start) >= time_to_minutes(self.day_end):
            raise ValueError(
                f"day_start ({self.day_start}) must be before day_end ({self.day_end})"
            )
        return self

    @property
    def day_start_minutes(self) -> int:
        return time_to_minutes(self.day_start)

    @property
    def day_end_minutes(self) -> int:
        return time_to_minutes(self.day_end)


@lru_cache
def get_settings() -> EngineSettings:
    return EngineSettings()
