"""Retry with exponential backoff for transient network failures."""

import logging
import time
from typing import Callable, TypeVar
from .errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_BASE_DELAY = 1.0


def backoff_delay(attempt_index: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """Delay after the given failed attempt (0-based): 1s, 2s, 4s, ..."""
    return base_delay * (2 ** attempt_index)


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying only :class:`TransportError`.

    Any other exception propagates on its first occurrence. When every
    attempt fails the last ``TransportError`` is re-raised unchanged.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(max_attempts):
        try:
            return operation()
        except TransportError as e:
            if attempt + 1 >= max_attempts:
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                "Network error (attempt %d/%d): %s. Retrying in %.1fs...",
                attempt + 1,
                max_attempts,
                e.message,
                delay,
            )
            sleep(delay)

    raise AssertionError("unreachable")
