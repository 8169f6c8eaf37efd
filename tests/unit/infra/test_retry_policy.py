"""Tests for RetryPolicy — bounded exponential retry over upstream calls."""

from unittest.mock import AsyncMock

import pytest

from tokenoracle.config import Settings
from tokenoracle.exceptions import ExternalServiceError, NoActivityError, RateLimitedError
from tokenoracle.infra.http.retry import RetryPolicy


@pytest.fixture()
def policy():
    return RetryPolicy(max_attempts=3, min_wait=0, max_wait=0)


class TestRetryPolicy:
    async def test_success_first_try(self, policy):
        fn = AsyncMock(return_value=42)
        assert await policy.call(fn, "a", b=1) == 42
        fn.assert_awaited_once_with("a", b=1)

    async def test_retries_then_succeeds(self, policy):
        fn = AsyncMock(side_effect=[RateLimitedError("slow down"), ExternalServiceError("502"), "ok"])
        assert await policy.call(fn) == "ok"
        assert fn.await_count == 3

    async def test_reraises_last_error_after_max_attempts(self, policy):
        fn = AsyncMock(side_effect=ExternalServiceError("still down"))
        with pytest.raises(ExternalServiceError, match="still down"):
            await policy.call(fn)
        assert fn.await_count == 3

    async def test_other_errors_not_retried(self, policy):
        fn = AsyncMock(side_effect=NoActivityError("nothing"))
        with pytest.raises(NoActivityError):
            await policy.call(fn)
        assert fn.await_count == 1

    async def test_single_attempt_policy(self):
        fn = AsyncMock(side_effect=ExternalServiceError("down"))
        with pytest.raises(ExternalServiceError):
            await RetryPolicy(max_attempts=1, min_wait=0, max_wait=0).call(fn)
        assert fn.await_count == 1


class TestFromSettings:
    def test_uses_source_settings(self):
        config = Settings(source_max_attempts=5, source_backoff_min_seconds=0.5, source_backoff_max_seconds=4)

        policy = RetryPolicy.from_settings(config)

        assert policy.max_attempts == 5
        assert policy.min_wait == 0.5
        assert policy.max_wait == 4
