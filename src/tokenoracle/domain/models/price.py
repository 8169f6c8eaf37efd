"""Domain types for price resolution and historical backfill."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from tokenoracle.domain.enums import Network, PriceSourceTag

SECONDS_PER_DAY = 86400


def normalize_token(token: str) -> str:
    """EVM addresses are hex (case-insensitive): store and key them lowercase."""
    return token.strip().lower()


def normalize_network(network: Network | str) -> str:
    return Network(network).value


def cache_key(token: str, network: str, timestamp: int) -> str:
    return f"price:{token}:{network}:{timestamp}"


class PriceSample(BaseModel):
    """A price observation for a token at a Unix timestamp."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    token: str
    network: str
    timestamp: int
    price: Decimal


class PriceQuery(BaseModel):
    """A resolution request. Never persisted."""

    model_config = ConfigDict(frozen=True)

    token: str
    network: str
    timestamp: int

    @classmethod
    def build(cls, token: str, network: Network | str, timestamp: int) -> "PriceQuery":
        return cls(token=normalize_token(token), network=normalize_network(network), timestamp=timestamp)

    @property
    def cache_key(self) -> str:
        return cache_key(self.token, self.network, self.timestamp)


class PriceResult(BaseModel):
    price: Decimal
    source: PriceSourceTag


class NearestSamples(BaseModel):
    """Closest stored samples strictly before and at/after a target timestamp."""

    before: PriceSample | None = None
    after: PriceSample | None = None


class FetchOutcome(BaseModel):
    """Result of fetching and persisting one backfill timestamp."""

    timestamp: int
    price: Decimal | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, timestamp: int, price: Decimal) -> "FetchOutcome":
        return cls(timestamp=timestamp, price=price)

    @classmethod
    def failure(cls, timestamp: int, error: BaseException) -> "FetchOutcome":
        return cls(timestamp=timestamp, error=f"{type(error).__name__}: {error}")


class BatchResult(BaseModel):
    outcomes: list[FetchOutcome]

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed_timestamps(self) -> list[int]:
        return [o.timestamp for o in self.outcomes if not o.ok]


class BackfillResult(BaseModel):
    """Summary of a completed backfill run."""

    token: str
    network: str
    total: int
    succeeded: int
    failed_timestamps: list[int] = []
    progress: int = 0

    @property
    def failed(self) -> int:
        return len(self.failed_timestamps)
