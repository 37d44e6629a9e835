"""Exponential backoff for rate-limited remote calls."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from app.errors import MaxRetriesExceededError
from app.utils.logging import get_logger

logger = get_logger(__name__)

RATE_LIMIT_STATUS = 429
BASE_DELAY_SECONDS = 1.0
MAX_DELAY_SECONDS = 30.0

T = TypeVar("T")


def get_status_code(error: BaseException) -> int | None:
    """Extract an HTTP status code from a provider exception, if it carries one."""
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether an exception signals HTTP 429 Too Many Requests."""
    return get_status_code(error) == RATE_LIMIT_STATUS


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after the given (1-based) failed attempt."""
    return min(BASE_DELAY_SECONDS * (2**attempt), MAX_DELAY_SECONDS)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run an async operation, retrying only when it is rate limited.

    Args:
        operation: Zero-argument callable producing a fresh awaitable per attempt
        max_retries: Total number of attempts allowed
        sleep: Awaitable delay between attempts

    Returns:
        Whatever the operation returns, unchanged

    Raises:
        MaxRetriesExceededError: If every attempt was rate limited
        Exception: Any non rate-limit failure, on its first occurrence
    """
    for attempt in range(1, max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            if not is_rate_limit_error(e):
                raise

            if attempt == max_retries:
                logger.error(f"Rate limit persisted after {attempt} attempts")
                raise MaxRetriesExceededError(attempt) from e

            delay = backoff_delay(attempt)
            logger.warning(f"Rate limit hit (attempt {attempt}/{max_retries}). Retrying in {delay:.0f} seconds...")
            await sleep(delay)

    raise MaxRetriesExceededError(max_retries)
