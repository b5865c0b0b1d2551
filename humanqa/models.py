"""Data models for job requests, status snapshots and configuration."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class JobStatus(str, Enum):
    """Job lifecycle states reported by the service."""
    PENDING = "pending"
    WAITING = "waiting"
    WORKING = "working"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    ABANDONED = "abandoned"
    REJECTED = "rejected"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    JobStatus.COMPLETED,
    JobStatus.INCOMPLETE,
    JobStatus.ABANDONED,
    JobStatus.REJECTED,
    JobStatus.ERROR,
})


class PollPhase(str, Enum):
    """Orchestrator lifecycle. Everything after POLLING is final for the loop."""
    SUBMITTING = "submitting"
    POLLING = "polling"
    COMPLETED = "completed"
    ERRORED = "errored"
    ABANDONED = "abandoned"
    INCOMPLETE = "incomplete"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"

    @classmethod
    def for_status(cls, status: JobStatus) -> "PollPhase":
        """Map a terminal job status to the final loop phase."""
        if status == JobStatus.ERROR:
            return cls.ERRORED
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        return cls(status.value)


class ScreenPreset(str, Enum):
    """Named screen sizes understood by the service."""
    DESKTOP = "desktop"
    LAPTOP = "laptop"
    TABLET = "tablet"
    MOBILE = "mobile"


class WireModel(BaseModel):
    """Immutable model exchanged with the API using camelCase field names."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        # None means "absent"; explicit values such as False survive
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ScreenDimensions(WireModel):
    """Explicit viewport size."""
    width: int = Field(ge=320, le=3840)
    height: int = Field(ge=240, le=2160)


class CIRunInfo(WireModel):
    """Identifiers of the CI run that triggered the job."""
    action_name: str = "humanqa"
    run_id: Optional[str] = None
    workflow_name: Optional[str] = None
    trigger_event: Optional[str] = None
    actor: Optional[str] = None


class RunMetadata(WireModel):
    """Source tracking attached to every submitted job."""
    source: str = "humanqa"
    source_created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    github_action: CIRunInfo = Field(default_factory=CIRunInfo)


class JobRequest(WireModel):
    """Task submitted to the service. Built once, never mutated."""
    url: str
    description: str
    repo_name: str
    output_schema: Optional[Dict[str, Any]] = None
    target_duration_minutes: Optional[int] = Field(default=None, ge=1, le=60)
    allow_duration_extension: Optional[bool] = None
    # False means "no cap on extensions"
    max_extension_minutes: Optional[Union[StrictInt, Literal[False]]] = Field(
        default=None, union_mode="left_to_right"
    )
    additional_validation_instructions: Optional[str] = None
    can_create_github_issues: Optional[bool] = None
    screen_size: Optional[Union[ScreenPreset, ScreenDimensions]] = None
    metadata: RunMetadata = Field(default_factory=RunMetadata)

    def to_body(self) -> Dict[str, Any]:
        """Serialize to the JSON body of ``POST /api/jobs``."""
        return self.to_wire()


class ExtractedResult(WireModel):
    """Verdict and structured data reported by the tester."""
    success: bool
    explanation: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class JobStatusSnapshot(WireModel):
    """One status fetch. Each fetch supersedes the previous snapshot."""

    model_config = ConfigDict(extra="ignore")

    status: JobStatus
    id: Optional[str] = None
    result: Optional[ExtractedResult] = None
    error: Optional[str] = None
    reason: Optional[str] = None
    cost_usd: Optional[float] = None
    test_duration_seconds: Optional[Union[int, float]] = None
    tester_alias: Optional[str] = None
    tester_avatar_url: Optional[str] = None
    tester_color: Optional[str] = None
    tester_response: Optional[str] = None
    tester_data: Optional[Dict[str, Any]] = None
    target_duration_minutes: Optional[Union[int, float]] = None
    total_extension_minutes: Optional[Union[int, float]] = None
    response_deadline: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_payload(self) -> Dict[str, Any]:
        """Serialize back to the shape of ``GET /api/job/{id}``.

        Only fields the server sent are written, explicit nulls included.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class PollConfig(BaseModel):
    """Orchestration timing. Passed to each orchestrator explicitly."""

    model_config = ConfigDict(frozen=True)

    poll_interval_seconds: float = Field(default=5.0, gt=0)
    buffer_seconds: float = Field(default=300.0, ge=0)  # claiming + API latency
    default_max_wait_seconds: float = Field(default=600.0, gt=0)
    max_attempts: int = Field(default=4, ge=1)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)


class JobOutcome(BaseModel):
    """Final answer of one orchestration run."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    snapshot: JobStatusSnapshot
    timed_out: bool = False
    phase: PollPhase

    @property
    def status(self) -> JobStatus:
        return self.snapshot.status
