"""
Gas price polling.

Keeps the latest network gas price in gwei, refreshed on an interval.
A failed poll keeps the previous reading and records the error.
"""

import asyncio
import logging

from web3 import AsyncWeb3

from flasharb.config.constants import GAS_PRICE_REFRESH_SECONDS


logger = logging.getLogger(__name__)


class GasPriceMonitor:
    """
    Polls `eth_gasPrice` through an AsyncWeb3 client.

    Exposes the last successful reading; callers decide the fallback.
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        refresh_interval: float = GAS_PRICE_REFRESH_SECONDS,
    ) -> None:
        """
        Initialize gas monitor.

        Args:
            web3: Connected AsyncWeb3 client.
            refresh_interval: Seconds between polls.
        """
        self._web3 = web3
        self._refresh_interval = refresh_interval

        self._gas_price_gwei: float | None = None
        self._last_error: Exception | None = None
        self._running = False
        self._task: asyncio.Task[None] | None = None

    async def refresh(self) -> float | None:
        """
        Fetch the current gas price once.

        Returns:
            Gas price in gwei, or None if the call failed.
        """
        try:
            gas_price_wei = await self._web3.eth.gas_price
        except Exception as e:
            self._last_error = e
            logger.warning(f"Error fetching gas price: {e}")
            return None

        self._gas_price_gwei = float(AsyncWeb3.from_wei(gas_price_wei, "gwei"))
        self._last_error = None
        logger.debug(f"Gas price: {self._gas_price_gwei:.2f} gwei")
        return self._gas_price_gwei

    async def run(self) -> None:
        """Poll until stopped."""
        self._running = True

        while self._running:
            await self.refresh()
            await asyncio.sleep(self._refresh_interval)

    def start(self) -> asyncio.Task[None]:
        """Start polling as a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop polling and wait for the task to finish."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def current_or(self, fallback: float) -> float:
        """Last reading, or `fallback` if there is none."""
        return self._gas_price_gwei if self._gas_price_gwei is not None else fallback

    @property
    def gas_price_gwei(self) -> float | None:
        """Get last gas price reading in gwei."""
        return self._gas_price_gwei

    @property
    def last_error(self) -> Exception | None:
        """Get the error from the last poll, if it failed."""
        return self._last_error

    @property
    def is_running(self) -> bool:
        """Check if monitor is polling."""
        return self._running
