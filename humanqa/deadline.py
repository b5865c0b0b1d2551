"""Maximum wait calculation for a running job."""

from datetime import datetime, timezone
from typing import Optional

BUFFER_SECONDS = 5 * 60
DEFAULT_MAX_WAIT_SECONDS = 10 * 60


def max_wait_seconds(
    target_minutes: Optional[float],
    extension_minutes: Optional[float],
    response_deadline: Optional[datetime],
    now: Optional[datetime] = None,
    buffer_seconds: float = BUFFER_SECONDS,
    default_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
) -> float:
    """Longest time to keep waiting for a job, in seconds.

    A server deadline wins over the target duration; the result never
    drops below ``default_seconds`` for a deadline already in the past.
    """
    if response_deadline is not None:
        if response_deadline.tzinfo is None:
            response_deadline = response_deadline.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        remaining = (response_deadline - now).total_seconds()
        return max(remaining + buffer_seconds, default_seconds)

    if target_minutes is not None:
        total_minutes = target_minutes + (extension_minutes or 0)
        return total_minutes * 60 + buffer_seconds

    return default_seconds
