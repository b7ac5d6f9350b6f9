"""
Async CoinGecko price client.

Best-effort upstream source for the price cache. Every failure mode
(network error, timeout, error status, malformed body) surfaces as
UpstreamFetchError so the cache can fall back to synthetic prices.
"""

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp
import orjson
from pydantic import BaseModel, ValidationError

from mev_dashboard.config.constants import (
    COINGECKO_API_URL,
    DEFAULT_UPSTREAM_TIMEOUT,
    ENDPOINT_SIMPLE_PRICE,
    REFERENCE_CURRENCY,
)
from mev_dashboard.core.types import Token


class UpstreamFetchError(Exception):
    """Raised when an upstream price source cannot deliver prices."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class CoinGeckoPrice(BaseModel):
    """Price entry of the /simple/price response."""

    usd: float
    usd_24h_change: float | None = None


@dataclass(slots=True, frozen=True)
class UpstreamPrice:
    """Price delivered by an upstream source."""

    price: float
    change_24h: float


class PriceSource(Protocol):
    """Anything that can fetch prices for a set of tokens."""

    async def fetch_prices(self, tokens: Iterable[Token]) -> dict[str, UpstreamPrice]: ...

    async def close(self) -> None: ...


def parse_price_payload(
    payload: Mapping[str, Any],
    tokens: Iterable[Token],
) -> dict[str, UpstreamPrice]:
    """
    Convert a /simple/price body into prices keyed by token symbol.

    Tokens without an id, missing from the payload, or with a
    non-positive price are left out.

    Args:
        payload: Decoded JSON body keyed by CoinGecko id.
        tokens: Tokens that were requested.

    Returns:
        Prices keyed by token symbol.

    Raises:
        UpstreamFetchError: If an entry does not have the expected shape.
    """
    prices: dict[str, UpstreamPrice] = {}

    for token in tokens:
        if not token.coingecko_id or token.coingecko_id not in payload:
            continue

        try:
            entry = CoinGeckoPrice.model_validate(payload[token.coingecko_id])
        except ValidationError as e:
            raise UpstreamFetchError(f"Malformed price entry for {token.symbol}: {e}") from e

        if entry.usd <= 0:
            continue

        prices[token.symbol] = UpstreamPrice(
            price=entry.usd,
            change_24h=entry.usd_24h_change or 0.0,
        )

    return prices


class CoinGeckoClient:
    """
    Async CoinGecko REST client.

    Features:
    - Single lazily created session
    - orjson for JSON parsing
    - Per-request timeout
    """

    def __init__(
        self,
        base_url: str = COINGECKO_API_URL,
        timeout: float = DEFAULT_UPSTREAM_TIMEOUT,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: API root URL.
            timeout: Total request timeout in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        self._request_count = 0

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )
        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _handle_response(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        """Parse and validate response."""
        # Raw bytes: orjson rejects invalid UTF-8 as a JSONDecodeError
        body = await response.read()

        if response.status >= 400:
            raise UpstreamFetchError(
                f"CoinGecko error {response.status}: {body[:200].decode(errors='replace')}",
                status=response.status,
            )

        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise UpstreamFetchError(f"Invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamFetchError("Unexpected response shape")

        return data

    async def fetch_prices(self, tokens: Iterable[Token]) -> dict[str, UpstreamPrice]:
        """
        Fetch USD prices and 24h change for the given tokens.

        Args:
            tokens: Tokens to price.

        Returns:
            Prices keyed by token symbol.

        Raises:
            UpstreamFetchError: On any network or response error.
        """
        tokens = list(tokens)
        ids = sorted({t.coingecko_id for t in tokens if t.coingecko_id})
        if not ids:
            return {}

        params = {
            "ids": ",".join(ids),
            "vs_currencies": REFERENCE_CURRENCY,
            "include_24hr_change": "true",
        }
        url = f"{self._base_url}{ENDPOINT_SIMPLE_PRICE}"

        session = await self._get_session()
        self._request_count += 1
        try:
            async with session.get(url, params=params) as response:
                payload = await self._handle_response(response)
        except aiohttp.ClientError as e:
            raise UpstreamFetchError(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise UpstreamFetchError("Request timed out") from e

        return parse_price_payload(payload, tokens)

    @property
    def request_count(self) -> int:
        """Number of requests issued."""
        return self._request_count

    async def __aenter__(self) -> "CoinGeckoClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
