"""Application configuration managed via environment variables."""
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "StudyFlow Backend"
    debug: bool = False
    log_level: str = "INFO"
    planner_log_level: str | None = None
    database_url: str = "postgresql+psycopg2://studyflow@localhost:5432/studyflow"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "studyflow"
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    catch_up_job_hour: int = 6
    catch_up_job_minute: int = 0
    reminder_job_interval_minutes: int = 60
    jobs_run_on_startup: bool = False
    notifications_enabled: bool = False
    notifications_provider: str = "noop"
    planner_timezone: str = "UTC"
    milestone_model: str = "gpt-4o-mini"

    @property
    def planner_tz(self) -> ZoneInfo:
        return ZoneInfo(self.planner_timezone)


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
