"""Alchemy price source — historical prices via the Prices API, first activity via asset transfers."""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from tokenoracle.exceptions import ExternalServiceError, NoActivityError, RateLimitedError
from tokenoracle.infra.http.rate_limited_client import RateLimitedClient
from tokenoracle.infra.http.retry import RetryPolicy
from tokenoracle.infra.price.base import PriceSource

logger = logging.getLogger(__name__)

PRICES_URL = "https://api.g.alchemy.com/prices/v1/{api_key}/tokens/historical"
RPC_URL = "https://{subdomain}.g.alchemy.com/v2/{api_key}"

# Alchemy network slugs
NETWORK_SLUGS: dict[str, str] = {
    "ethereum": "eth-mainnet",
    "polygon": "polygon-mainnet",
}

# Price points are hourly; query one hour either side of the target
PRICE_WINDOW_SECONDS = 3600


def _iso(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_iso(value: str) -> int:
    return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())


class AlchemyPriceSource(PriceSource):
    """Fetch token prices and first-transfer timestamps from Alchemy with bounded retries."""

    def __init__(self, http_client: RateLimitedClient, api_key: str, retry_policy: RetryPolicy | None = None) -> None:
        self._http = http_client
        self._api_key = api_key
        self._retry = retry_policy or RetryPolicy()

    def _slug(self, network: str) -> str:
        slug = NETWORK_SLUGS.get(network)
        if slug is None:
            raise ValueError(f"Unsupported network: {network}")
        return slug

    async def fetch_price(self, token: str, network: str, timestamp: int) -> Decimal:
        return await self._retry.call(self._fetch_price_once, token, network, timestamp)

    async def fetch_earliest_activity(self, token: str, network: str) -> int:
        transfers = await self._retry.call(self._first_transfers, token, network)
        if not transfers:
            raise NoActivityError(
                f"No transfers found for {token} on {network}", context={"token": token, "network": network},
            )

        try:
            return _parse_iso(transfers[0]["metadata"]["blockTimestamp"])
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ExternalServiceError(
                "Transfer metadata missing or malformed blockTimestamp",
                context={"token": token, "network": network},
            ) from exc

    async def _fetch_price_once(self, token: str, network: str, timestamp: int) -> Decimal:
        payload = {
            "network": self._slug(network),
            "address": token,
            "startTime": _iso(timestamp - PRICE_WINDOW_SECONDS),
            "endTime": _iso(timestamp + PRICE_WINDOW_SECONDS),
            "interval": "1h",
        }
        data = await self._post(PRICES_URL.format(api_key=self._api_key), payload)

        points = data.get("data") or []
        if not points:
            raise ExternalServiceError(
                f"No price points for {token} at {timestamp}",
                context={"token": token, "network": network, "timestamp": timestamp},
            )

        try:
            closest = min(points, key=lambda p: abs(_parse_iso(p["timestamp"]) - timestamp))
            return Decimal(str(closest["value"]))
        except (InvalidOperation, KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ExternalServiceError(
                f"Malformed price data for {token} at {timestamp}",
                context={"token": token, "network": network, "timestamp": timestamp},
            ) from exc

    async def _first_transfers(self, token: str, network: str) -> list[dict[str, Any]]:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "alchemy_getAssetTransfers",
            "params": [{
                "fromBlock": "0x0",
                "toBlock": "latest",
                "contractAddresses": [token],
                "category": ["erc20"],
                "order": "asc",
                "maxCount": "0x1",
                "withMetadata": True,
                "excludeZeroValue": False,
            }],
        }
        url = RPC_URL.format(subdomain=self._slug(network), api_key=self._api_key)
        data = await self._post(url, payload)

        if "error" in data:
            error = data["error"]
            msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ExternalServiceError(f"Alchemy RPC error (alchemy_getAssetTransfers): {msg}")

        return (data.get("result") or {}).get("transfers", [])

    async def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Alchemy request failed: {type(exc).__name__}") from exc

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise RateLimitedError(
                "Alchemy rate limit", context={"retry_after": int(retry_after) if retry_after and retry_after.isdigit() else None},
            )
        if response.status_code != 200:
            raise ExternalServiceError(
                f"Alchemy returned {response.status_code}", context={"status_code": response.status_code},
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalServiceError("Alchemy returned malformed JSON") from exc
        if not isinstance(data, dict):
            raise ExternalServiceError("Alchemy returned an unexpected payload")
        return data
