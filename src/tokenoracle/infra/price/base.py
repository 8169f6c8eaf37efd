"""Abstract base for external price oracles."""

from abc import ABC, abstractmethod
from decimal import Decimal


class PriceSource(ABC):
    """Strategy interface for an upstream price oracle."""

    @abstractmethod
    async def fetch_price(self, token: str, network: str, timestamp: int) -> Decimal:
        """USD price of ``token`` at ``timestamp``.

        Raises ExternalServiceError once retries are exhausted.
        """

    @abstractmethod
    async def fetch_earliest_activity(self, token: str, network: str) -> int:
        """Unix timestamp of the token's first on-chain activity.

        Raises NoActivityError if the token has no recorded history.
        """
