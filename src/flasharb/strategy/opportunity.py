"""
Cross-DEX price gap detection.

Turns a set of quotes for one token pair into at most one
opportunity: buy where it is cheapest, sell where it is dearest.
"""

import logging
from dataclasses import dataclass

from flasharb.config.constants import DEFAULT_TRADE_SIZE_USD, MIN_PRICE_GAP_PCT
from flasharb.core.types import ArbitrageOpportunity, TokenAddresses, TokenPrice
from flasharb.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PriceRow:
    """One DEX quote annotated against the cheapest quote."""

    dex: str
    price: float
    diff_from_min_pct: float
    is_lowest: bool
    is_highest: bool


def price_gap_pct(low: float, high: float) -> float:
    """Percentage by which `high` exceeds `low`."""
    if low <= 0:
        return 0.0
    return (high - low) / low * 100.0


def detect_opportunity(
    pair: str,
    prices: list[TokenPrice],
    token_addresses: TokenAddresses | None = None,
    min_gap_pct: float = MIN_PRICE_GAP_PCT,
    trade_size_usd: float = DEFAULT_TRADE_SIZE_USD,
    timestamp_ms: int | None = None,
) -> ArbitrageOpportunity | None:
    """
    Find the widest gap for a pair across DEX quotes.

    Args:
        pair: Pair label, e.g. "ETH/USDC".
        prices: Quotes from each DEX that answered.
        token_addresses: Addresses to attach for execution.
        min_gap_pct: Gaps at or below this percentage are ignored.
        trade_size_usd: Notional used to convert the gap into USD profit.
        timestamp_ms: Discovery time, defaults to now.

    Returns:
        Opportunity if at least two quotes disagree by more than the minimum.
    """
    valid = [p for p in prices if p.price > 0]
    if len(valid) < 2:
        return None

    ordered = sorted(valid, key=lambda p: p.price)
    cheapest, dearest = ordered[0], ordered[-1]

    gap = price_gap_pct(cheapest.price, dearest.price)
    if gap <= min_gap_pct:
        logger.debug(f"{pair}: gap {gap:.3f}% below threshold")
        return None

    now = timestamp_ms if timestamp_ms is not None else get_timestamp_ms()

    return ArbitrageOpportunity(
        id=f"{now}-{pair}",
        source_dex=cheapest.dex,
        target_dex=dearest.dex,
        token_pair=pair,
        price_gap=gap,
        potential_profit=gap / 100.0 * trade_size_usd,
        timestamp=now,
        token_addresses=token_addresses,
    )


def price_table(prices: list[TokenPrice]) -> list[PriceRow]:
    """
    Annotate each quote with its distance from the cheapest one.

    Returns rows in input order.
    """
    if not prices:
        return []

    low = min(p.price for p in prices)
    high = max(p.price for p in prices)

    return [
        PriceRow(
            dex=p.dex,
            price=p.price,
            diff_from_min_pct=price_gap_pct(low, p.price),
            is_lowest=p.price == low,
            is_highest=p.price == high,
        )
        for p in prices
    ]
