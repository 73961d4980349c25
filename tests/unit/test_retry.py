"""Tests for the rate-limit retry wrapper."""

import httpx
import pytest

from notices_scraper.core.errors import QuotaExceededError
from notices_scraper.core.retry import (
    DEFAULT_BACKOFF_SCHEDULE,
    is_rate_limited,
    retry_operation,
)


class RateLimited(Exception):
    def __init__(self, message="429 Too Many Requests"):
        super().__init__(message)


class Flaky:
    """Fails with the given exceptions, then returns "ok"."""

    def __init__(self, *failures):
        self.failures = list(failures)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


@pytest.fixture
def recorded_sleep():
    waits = []

    async def sleep(seconds):
        waits.append(seconds)

    return sleep, waits


class TestIsRateLimited:
    """Tests for is_rate_limited classifier."""

    @pytest.mark.parametrize("message", [
        "429 Too Many Requests",
        "Resource has been exhausted (e.g. check quota).",
        "too many requests",
        "RESOURCE_EXHAUSTED",
    ])
    def test_messages(self, message):
        assert is_rate_limited(Exception(message))

    def test_http_status_error(self):
        request = httpx.Request("GET", "https://api.example.com")
        response = httpx.Response(429, request=request)
        error = httpx.HTTPStatusError("rate limited", request=request, response=response)

        assert is_rate_limited(error)

    def test_other_errors(self):
        assert not is_rate_limited(ValueError("bad input"))

    def test_server_error_status(self):
        request = httpx.Request("GET", "https://api.example.com")
        response = httpx.Response(500, request=request)
        error = httpx.HTTPStatusError("server error", request=request, response=response)

        assert not is_rate_limited(error)


class TestRetryOperation:
    """Tests for retry_operation."""

    @pytest.mark.asyncio
    async def test_success_first_try(self, recorded_sleep):
        sleep, waits = recorded_sleep
        operation = Flaky()

        assert await retry_operation(operation, sleep=sleep) == "ok"
        assert operation.calls == 1
        assert waits == []

    @pytest.mark.asyncio
    async def test_waits_follow_schedule(self, recorded_sleep):
        """Test each retry waits the next delay in the schedule."""
        sleep, waits = recorded_sleep
        operation = Flaky(RateLimited(), RateLimited())

        assert await retry_operation(operation, sleep=sleep) == "ok"
        assert operation.calls == 3
        assert waits == list(DEFAULT_BACKOFF_SCHEDULE[:2])

    @pytest.mark.asyncio
    async def test_exhausted_raises_quota_exceeded(self, recorded_sleep):
        """Test the schedule running out raises QuotaExceededError."""
        sleep, waits = recorded_sleep
        operation = Flaky(*[RateLimited() for _ in range(5)])

        with pytest.raises(QuotaExceededError) as exc_info:
            await retry_operation(operation, delays=(1, 2), label="draft", sleep=sleep)

        assert exc_info.value.label == "draft"
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__, RateLimited)
        assert operation.calls == 3
        assert waits == [1, 2]

    @pytest.mark.asyncio
    async def test_non_retryable_reraised(self, recorded_sleep):
        """Test other errors propagate immediately and unchanged."""
        sleep, waits = recorded_sleep
        operation = Flaky(ValueError("bad prompt"))

        with pytest.raises(ValueError, match="bad prompt"):
            await retry_operation(operation, sleep=sleep)

        assert operation.calls == 1
        assert waits == []

    @pytest.mark.asyncio
    async def test_custom_classifier(self, recorded_sleep):
        sleep, waits = recorded_sleep
        operation = Flaky(KeyError("busy"))

        result = await retry_operation(
            operation,
            is_retryable=lambda exc: isinstance(exc, KeyError),
            delays=(5,),
            sleep=sleep,
        )

        assert result == "ok"
        assert waits == [5]

    @pytest.mark.asyncio
    async def test_lambda_returning_coroutine(self, recorded_sleep):
        """Test a plain lambda wrapping a coroutine function is awaited and retried."""
        sleep, waits = recorded_sleep
        calls = []

        async def deliver(record_id):
            calls.append(record_id)
            if len(calls) == 1:
                raise RateLimited()
            return record_id

        result = await retry_operation(lambda: deliver("bizinfo_P1"), delays=(0,), sleep=sleep)

        assert result == "bizinfo_P1"
        assert calls == ["bizinfo_P1", "bizinfo_P1"]

    @pytest.mark.asyncio
    async def test_lambda_exhausted_raises_quota_exceeded(self, recorded_sleep):
        sleep, _ = recorded_sleep
        calls = []

        async def deliver():
            calls.append(1)
            raise RateLimited()

        with pytest.raises(QuotaExceededError):
            await retry_operation(lambda: deliver(), delays=(0, 0), sleep=sleep)

        assert len(calls) == 3
