"""Retry logic with exponential backoff for provider HTTP calls."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from smail.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

RETRIABLE_STATUS_CODES = {429, 500, 502, 503, 504}

logger = get_logger(__name__)


@dataclass(slots=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 32.0
    jitter: bool = True


def parse_retry_after(response: httpx.Response) -> float | None:
    """Parse a Retry-After header given in seconds."""
    retry_after = response.headers.get("retry-after")
    if not retry_after:
        return None
    try:
        return float(retry_after)
    except ValueError:
        return None


def _log_retry(attempt: int, error: Exception, delay: float) -> None:
    logger.warning(
        "provider_request_retry",
        attempt=attempt + 1,
        delay=round(delay, 2),
        error=str(error),
    )


async def with_retry(
    coro_func: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    on_retry: Callable[[int, Exception, float], None] | None = _log_retry,
) -> T:
    """Execute an async callable with exponential backoff.

    Args:
        coro_func: Async callable to execute (must be callable, not coroutine)
        config: Retry configuration (defaults to RetryConfig())
        on_retry: Optional callback(attempt, exception, delay) called before retry

    Returns:
        Result from successful execution

    Raises:
        The last exception if it is not retriable or retries are exhausted
    """
    if config is None:
        config = RetryConfig()

    delay = config.initial_delay

    for attempt in range(config.max_retries + 1):
        try:
            return await coro_func()
        except Exception as e:
            if not _is_retriable(e) or attempt == config.max_retries:
                raise

            wait_time = _get_retry_delay(e, delay, config)
            if on_retry:
                on_retry(attempt, e, wait_time)

            await asyncio.sleep(wait_time)
            delay = min(delay * 2, config.max_delay)

    raise RuntimeError("Unexpected retry loop exit")


def _is_retriable(e: Exception) -> bool:
    """Timeouts, connect failures and retriable HTTP statuses are retried."""
    if isinstance(e, (asyncio.TimeoutError, httpx.TimeoutException, httpx.ConnectError)):
        return True

    status_code: Any = getattr(e, "status_code", None)
    if isinstance(status_code, int):
        return status_code in RETRIABLE_STATUS_CODES

    return False


def _get_retry_delay(e: Exception, base_delay: float, config: RetryConfig) -> float:
    """Delay before the next attempt, honouring Retry-After when present."""
    response = getattr(e, "response", None)
    if isinstance(response, httpx.Response):
        retry_after = parse_retry_after(response)
        if retry_after:
            return retry_after

    delay = min(base_delay, config.max_delay)
    if config.jitter:
        delay = delay * (0.5 + random.random())
    return delay
