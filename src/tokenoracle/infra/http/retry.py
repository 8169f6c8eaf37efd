"""Retry-with-backoff policy shared by every upstream call."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from tokenoracle.config import Settings
from tokenoracle.exceptions import ExternalServiceError, RateLimitedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Only ``retry_on`` exceptions are retried; the same schedule applies to
    transient (rate limit) and other upstream failures. After ``max_attempts``
    the last exception is re-raised unchanged.
    """

    max_attempts: int = 3
    multiplier: float = 1.0
    min_wait: float = 1.0
    max_wait: float = 10.0
    retry_on: tuple[type[BaseException], ...] = (ExternalServiceError,)

    @classmethod
    def from_settings(cls, config: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=config.source_max_attempts,
            min_wait=config.source_backoff_min_seconds,
            max_wait=config.source_backoff_max_seconds,
        )

    async def call(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.multiplier, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=self._log_retry,
            reraise=True,
        )
        return await retrying(fn, *args, **kwargs)

    def _log_retry(self, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        name = getattr(state.fn, "__qualname__", "call")
        if isinstance(exc, RateLimitedError):
            logger.info(
                "%s rate limited (attempt %d/%d), retrying...", name, state.attempt_number, self.max_attempts,
            )
        else:
            logger.warning(
                "%s failed (attempt %d/%d): %s", name, state.attempt_number, self.max_attempts, exc,
            )
