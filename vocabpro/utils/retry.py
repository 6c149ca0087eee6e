"""Retry with fixed backoff for transient upstream failures."""

import asyncio
import re
from typing import Any, Awaitable, Callable, Optional

# Upstream statuses worth retrying
TRANSIENT_STATUS_CODES = (429, 500)

# Status codes only count as whole numbers ("api:5000" is not a 500)
TRANSIENT_MARKER_PATTERN = re.compile(
    r"\b(?:429|500)\b|too many requests|internal server error|timeout|timed out"
)


def is_transient_error(exc: BaseException) -> bool:
    """
    Classify an exception as transient (rate limit, upstream 5xx, timeout).

    The status code is read from a ``status`` attribute when the error carries
    one, otherwise the message is searched for the usual markers.
    """
    if isinstance(exc, asyncio.TimeoutError):
        return True

    status = getattr(exc, "status", None)
    if status is not None:
        return status in TRANSIENT_STATUS_CODES

    message = str(exc).lower()
    return bool(TRANSIENT_MARKER_PATTERN.search(message))


async def with_retry(
    fn: Callable[[], Awaitable[Any]],
    max_attempts: int = 3,
    is_retryable: Callable[[BaseException], bool] = is_transient_error,
    backoff_seconds: float = 3.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
) -> Any:
    """
    Await ``fn()`` up to ``max_attempts`` times.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total number of attempts (>= 1)
        is_retryable: Decides whether a failure deserves another attempt
        backoff_seconds: Fixed wait between attempts
        sleep: Awaitable sleep function (injectable for tests)
        on_retry: Called with (attempt, error) before each backoff

    Returns:
        Result of the first successful attempt

    Raises:
        The last error once attempts are exhausted, or immediately when the
        error is not retryable.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn()
        except Exception as e:
            if attempt >= max_attempts or not is_retryable(e):
                raise
            if on_retry:
                on_retry(attempt, e)
            await sleep(backoff_seconds)
