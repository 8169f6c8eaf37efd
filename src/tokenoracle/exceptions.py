"""Exception hierarchy for tokenoracle.

Every error carries a machine-readable ``reason`` code and a generic public
message. API responses expose only those two fields; ``context`` holds the
details that go to the logs.
"""

from typing import Any


class TokenOracleError(Exception):
    """Base exception for all tokenoracle errors."""

    reason = "internal_error"
    public_message = "Internal error"
    status_code = 500

    def __init__(self, message: str = "", context: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.public_message)
        self.context = context or {}


class ExternalServiceError(TokenOracleError):
    """Upstream oracle call failed. Retried by the source adapter's RetryPolicy."""

    reason = "upstream_error"
    public_message = "Price source unavailable"
    status_code = 502


class RateLimitedError(ExternalServiceError):
    """Upstream signalled rate limiting (HTTP 429). Transient.

    Context keys:
        retry_after: int | None — seconds suggested by the upstream
    """

    reason = "rate_limited"


class NoActivityError(TokenOracleError):
    """The token has no recorded on-chain history. Terminal for a backfill job."""

    reason = "no_activity"
    public_message = "No activity found for token"
    status_code = 404


class PriceUnavailableError(TokenOracleError):
    """Every resolution tier failed. Terminal for a price request."""

    reason = "no_price_data"
    public_message = "No price data available"
    status_code = 404


class JobNotFoundError(TokenOracleError):
    reason = "job_not_found"
    public_message = "Backfill job not found"
    status_code = 404


class QueueUnavailableError(TokenOracleError):
    """The job broker rejected or could not receive a backfill task."""

    reason = "enqueue_failed"
    public_message = "Job queue unavailable"
    status_code = 503
