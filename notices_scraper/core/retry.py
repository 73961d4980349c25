"""
Generic retry wrapper for rate-limited collaborator calls.

Parameterized by an error classifier (is this retryable?) and a delay
schedule. When the schedule runs out the caller gets a distinguishable
QuotaExceededError so a batch can stop early and keep what it has.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
)

from .errors import QuotaExceededError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# short wait, longer wait, very long wait (seconds)
DEFAULT_BACKOFF_SCHEDULE: tuple[float, ...] = (60.0, 120.0, 600.0)

RATE_LIMIT_MARKERS = ("429", "quota", "too many", "rate limit", "resource_exhausted")


def is_rate_limited(exc: BaseException) -> bool:
    """Classify an exception as a rate-limit / quota refusal."""
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    if status == 429:
        return True

    message = str(exc).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def schedule_wait(delays: Sequence[float]) -> Callable[[RetryCallState], float]:
    """tenacity wait callback reading from a fixed schedule."""

    def wait(retry_state: RetryCallState) -> float:
        index = min(retry_state.attempt_number - 1, len(delays) - 1)
        return delays[index]

    return wait


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    *,
    is_retryable: Callable[[BaseException], bool] = is_rate_limited,
    delays: Sequence[float] = DEFAULT_BACKOFF_SCHEDULE,
    label: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """
    Run an async operation, retrying retryable failures on a schedule.

    Args:
        operation: Zero-argument coroutine factory
        is_retryable: Classifier for exceptions worth waiting out
        delays: Seconds to wait before each retry
        label: Name used in logs and in QuotaExceededError
        sleep: Sleep coroutine (injectable for tests)

    Returns:
        The operation's result

    Raises:
        QuotaExceededError: retryable failures outlasted the schedule
        Exception: any non-retryable failure, unchanged
    """

    def log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "retrying_after_rate_limit",
            label=label,
            attempt=retry_state.attempt_number,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(exc),
        )

    attempts = len(delays) + 1
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=schedule_wait(delays) if delays else (lambda _state: 0),
        retry=retry_if_exception(is_retryable),
        before_sleep=log_retry,
        sleep=sleep or asyncio.sleep,
    )

    # any callable returning an awaitable, lambdas included
    try:
        async for attempt in retrying:
            with attempt:
                return await operation()
    except RetryError as e:
        logger.error("quota_exceeded", label=label, attempts=attempts)
        raise QuotaExceededError(label, attempts) from e.last_attempt.exception()
