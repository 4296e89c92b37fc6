"""
ETH/USD price oracle backed by the CoinGecko simple price API.

Any failure (network, HTTP status, malformed body) resolves to a
configured fallback price so profitability checks never stall on it.
"""

import logging

import aiohttp
import orjson
from pydantic import BaseModel, ValidationError

from flasharb.config.constants import (
    COINGECKO_SIMPLE_PRICE_URL,
    FALLBACK_ETH_PRICE_USD,
    ORACLE_TIMEOUT_SECONDS,
)


logger = logging.getLogger(__name__)


class UsdQuote(BaseModel):
    """Single asset entry of a simple price response."""

    usd: float


class SimplePriceResponse(BaseModel):
    """`/simple/price?ids=ethereum&vs_currencies=usd` response body."""

    ethereum: UsdQuote


class EthPriceOracle:
    """
    Fetches the ETH price in USD.

    Owns one aiohttp session, created lazily and closed with `close()`.
    """

    def __init__(
        self,
        fallback_price: float = FALLBACK_ETH_PRICE_USD,
        url: str = COINGECKO_SIMPLE_PRICE_URL,
        timeout: float = ORACLE_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize the oracle.

        Args:
            fallback_price: Price returned when the API cannot be used.
            url: Simple price endpoint.
            timeout: Total request timeout in seconds.
        """
        self._fallback_price = fallback_price
        self._url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        self._last_price: float | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def fetch_price_usd(self) -> float:
        """
        Fetch the ETH price without falling back.

        Raises:
            aiohttp.ClientError: On network or HTTP errors.
            ValueError: On a malformed response body.
        """
        session = await self._get_session()
        params = {"ids": "ethereum", "vs_currencies": "usd"}

        async with session.get(self._url, params=params) as response:
            response.raise_for_status()
            body = await response.read()

        try:
            data = SimplePriceResponse.model_validate(orjson.loads(body))
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise ValueError(f"Invalid price response: {e}") from e

        return data.ethereum.usd

    async def get_price_usd(self) -> float:
        """
        Get the ETH price, using the fallback on any failure.

        Returns:
            ETH price in USD.
        """
        try:
            price = await self.fetch_price_usd()
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            logger.warning(f"Failed to fetch ETH price, using fallback {self._fallback_price}: {e}")
            return self._fallback_price

        self._last_price = price
        return price

    @property
    def fallback_price(self) -> float:
        """Get fallback price."""
        return self._fallback_price

    @property
    def last_price(self) -> float | None:
        """Get last successfully fetched price."""
        return self._last_price

    async def __aenter__(self) -> "EthPriceOracle":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
