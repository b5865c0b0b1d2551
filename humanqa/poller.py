"""Job orchestration: submit once, then poll until a terminal status or timeout.

The polling decision lives in :func:`advance`, a pure step function. The
:class:`JobOrchestrator` only performs the I/O it asks for (fetch, sleep),
so tests can drive the loop with a fake clock and sleeper.
"""

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Tuple, TypeVar, Union
from .deadline import max_wait_seconds
from .models import (
    JobOutcome,
    JobRequest,
    JobStatus,
    JobStatusSnapshot,
    PollConfig,
    PollPhase,
)
from .retry import with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JobTransport(Protocol):
    def submit(self, request: JobRequest) -> str: ...

    def fetch_status(self, job_id: str) -> JobStatusSnapshot: ...


@dataclass(frozen=True)
class PollState:
    """Everything the loop knows about one job between two fetches."""
    job_id: str
    ceiling_seconds: float
    elapsed_seconds: float = 0.0
    phase: PollPhase = PollPhase.POLLING
    snapshot: Optional[JobStatusSnapshot] = None
    polls: int = 0


@dataclass(frozen=True)
class Sleep:
    seconds: float


@dataclass(frozen=True)
class Stop:
    outcome: JobOutcome


Action = Union[Sleep, Stop]


def _ceiling_for(
    config: PollConfig,
    target_minutes: Optional[float],
    extension_minutes: Optional[float],
    response_deadline: Optional[datetime],
    now: Optional[datetime],
) -> float:
    return max_wait_seconds(
        target_minutes,
        extension_minutes,
        response_deadline,
        now=now,
        buffer_seconds=config.buffer_seconds,
        default_seconds=config.default_max_wait_seconds,
    )


def start_polling(
    job_id: str, target_minutes: Optional[float], config: PollConfig
) -> PollState:
    """Initial polling state for a freshly submitted job."""
    return PollState(
        job_id=job_id,
        ceiling_seconds=_ceiling_for(config, target_minutes, 0, None, None),
    )


def advance(
    state: PollState,
    snapshot: JobStatusSnapshot,
    config: PollConfig,
    elapsed: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Tuple[PollState, Action]:
    """Fold one fetched snapshot into the state and decide what to do next.

    ``elapsed`` is the measured time since polling began; when omitted the
    state's own account (the sum of requested sleeps) is used. The ceiling
    only grows: a smaller recomputation is ignored.
    """
    if state.phase != PollPhase.POLLING:
        raise ValueError(f"Job {state.job_id} is already {state.phase.value}")

    if elapsed is None:
        elapsed = state.elapsed_seconds
    ceiling = max(
        state.ceiling_seconds,
        _ceiling_for(
            config,
            snapshot.target_duration_minutes,
            snapshot.total_extension_minutes,
            snapshot.response_deadline,
            now,
        ),
    )
    state = replace(
        state,
        ceiling_seconds=ceiling,
        elapsed_seconds=elapsed,
        snapshot=snapshot,
        polls=state.polls + 1,
    )

    if snapshot.is_terminal:
        phase = PollPhase.for_status(snapshot.status)
        outcome = JobOutcome(job_id=state.job_id, snapshot=snapshot, phase=phase)
        return replace(state, phase=phase), Stop(outcome)

    if elapsed > ceiling:
        outcome = JobOutcome(
            job_id=state.job_id,
            snapshot=snapshot,
            timed_out=True,
            phase=PollPhase.TIMED_OUT,
        )
        return replace(state, phase=PollPhase.TIMED_OUT), Stop(outcome)

    interval = config.poll_interval_seconds
    return replace(state, elapsed_seconds=elapsed + interval), Sleep(interval)


StatusListener = Callable[[JobStatusSnapshot, Optional[JobStatus]], None]


class JobOrchestrator:
    """Runs one job from submission to its final snapshot."""

    def __init__(
        self,
        transport: JobTransport,
        config: Optional[PollConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        now: Optional[Callable[[], datetime]] = None,
        on_status_change: Optional[StatusListener] = None,
    ):
        self.transport = transport
        self.config = config or PollConfig()
        self.sleep = sleep
        self.clock = clock
        self.now = now or (lambda: datetime.now(timezone.utc))
        self.on_status_change = on_status_change
        self.phase = PollPhase.SUBMITTING

    def _with_retry(self, operation: Callable[[], T]) -> T:
        return with_retry(
            operation,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.retry_base_delay_seconds,
            sleep=self.sleep,
        )

    def submit(self, request: JobRequest) -> str:
        """Create the job. Failures propagate to the caller."""
        self.phase = PollPhase.SUBMITTING
        job_id = self._with_retry(lambda: self.transport.submit(request))
        logger.info("Job created: %s", job_id)
        return job_id

    def fetch_status(self, job_id: str) -> JobStatusSnapshot:
        """One status fetch, retried on network errors."""
        return self._with_retry(lambda: self.transport.fetch_status(job_id))

    def wait_for_completion(
        self, job_id: str, target_minutes: Optional[float] = None
    ) -> JobOutcome:
        """Poll ``job_id`` until it reaches a terminal status or times out."""
        self.phase = PollPhase.POLLING
        state = start_polling(job_id, target_minutes, self.config)
        started = self.clock()

        while True:
            elapsed = self.clock() - started
            snapshot = self.fetch_status(job_id)
            previous = state
            state, action = advance(
                state, snapshot, self.config, elapsed=elapsed, now=self.now()
            )

            if state.ceiling_seconds > previous.ceiling_seconds:
                logger.info(
                    "Time extension detected, extending timeout to %d minutes",
                    round(state.ceiling_seconds / 60),
                )

            last_status = previous.snapshot.status if previous.snapshot else None
            if snapshot.status != last_status:
                logger.info(
                    "Job %s status: %s (%ds elapsed)",
                    job_id,
                    snapshot.status.value,
                    round(elapsed),
                )
                if self.on_status_change:
                    self.on_status_change(snapshot, last_status)

            if isinstance(action, Stop):
                self.phase = state.phase
                if action.outcome.timed_out:
                    logger.warning(
                        "Job did not complete within %d minutes",
                        round(state.ceiling_seconds / 60),
                    )
                return action.outcome

            self.sleep(action.seconds)

    def run(self, request: JobRequest) -> JobOutcome:
        """Submit ``request`` and wait for its final outcome."""
        job_id = self.submit(request)
        logger.info("Waiting for human tester...")
        outcome = self.wait_for_completion(job_id, request.target_duration_minutes)

        snapshot = outcome.snapshot
        if outcome.timed_out:
            logger.warning("Job %s timed out (status: %s)", job_id, snapshot.status.value)
        elif snapshot.status == JobStatus.COMPLETED:
            logger.info("Job %s completed successfully", job_id)
        else:
            logger.warning("Job %s ended with status: %s", job_id, snapshot.status.value)
            if snapshot.error:
                logger.warning("Error: %s", snapshot.error)
            if snapshot.reason:
                logger.warning("Reason: %s", snapshot.reason)
        return outcome
