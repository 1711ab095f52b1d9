from pydantic_settings import BaseSettings
from pydantic import field_validator

from weeklyfocus.core.constants import DEFAULT_GOAL_TITLE, DEFAULT_WEEKLY_TARGET_MINUTES


class Settings(BaseSettings):
    # Local single-writer store; any SQLAlchemy URL works.
    database_url: str = "sqlite+pysqlite:///./weeklyfocus.db"
    # Timezone used to decide where a day (and a week) starts.
    # Examples: "America/New_York", "Asia/Shanghai", or "local" to use system tz.
    timezone: str = "local"

    # Goal created on first start when the store holds no active goal
    default_goal_title: str = DEFAULT_GOAL_TITLE
    default_weekly_target_minutes: int = DEFAULT_WEEKLY_TARGET_MINUTES
    default_week_start_day: int = 1  # 0 = Sunday ... 6 = Saturday

    # Interval of the clock tick that rolls "today" over at midnight
    clock_tick_seconds: float = 1.0

    log_level: str = "INFO"

    @field_validator("timezone", mode="before")
    @classmethod
    def _empty_to_local(cls, v):
        if v in ("", None, "null", "None"):
            return "local"
        if v != "local":
            from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator("default_weekly_target_minutes")
    @classmethod
    def _positive_target(cls, v):
        if v <= 0:
            raise ValueError("default_weekly_target_minutes must be > 0")
        return v

    @field_validator("default_week_start_day")
    @classmethod
    def _valid_weekday(cls, v):
        if not 0 <= v <= 6:
            raise ValueError("default_week_start_day must be 0 (Sunday) .. 6 (Saturday)")
        return v

    class Config:
        env_file = ".env"


settings = Settings()
