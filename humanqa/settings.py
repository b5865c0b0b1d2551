"""Environment configuration."""

from datetime import datetime
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from .models import CIRunInfo, PollConfig, RunMetadata

DEFAULT_API_URL = "https://runhuman.com"


class Settings(BaseSettings):
    """API location, credential and timing, read from ``RUNHUMAN_*`` variables."""

    model_config = SettingsConfigDict(env_prefix="RUNHUMAN_", extra="ignore")

    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    poll_interval_seconds: float = Field(default=5.0, gt=0)
    max_attempts: int = Field(default=4, ge=1)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    def poll_config(self) -> PollConfig:
        return PollConfig(
            poll_interval_seconds=self.poll_interval_seconds,
            max_attempts=self.max_attempts,
            retry_base_delay_seconds=self.retry_base_delay_seconds,
            request_timeout_seconds=self.request_timeout_seconds,
        )


class CIContext(BaseSettings):
    """The CI run we are executing in, read from ``GITHUB_*`` variables."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    run_id: Optional[str] = None
    workflow: Optional[str] = None
    event_name: Optional[str] = None
    actor: Optional[str] = None
    repository: Optional[str] = None
    output: Optional[str] = None
    step_summary: Optional[str] = None

    def metadata(self, created_at: Optional[datetime] = None) -> RunMetadata:
        run_info = CIRunInfo(
            run_id=self.run_id,
            workflow_name=self.workflow,
            trigger_event=self.event_name,
            actor=self.actor,
        )
        if created_at is None:
            return RunMetadata(github_action=run_info)
        return RunMetadata(source_created_at=created_at, github_action=run_info)
