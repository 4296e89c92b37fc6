"""
Mock opportunity generator for simulation mode.

Produces plausible cross-DEX opportunities so the scanner, dashboard
and executor can be exercised without a node provider.
"""

import random
from dataclasses import dataclass, field

from flasharb.config.constants import SIMULATED_DISCOVERY_PROBABILITY
from flasharb.core.types import ArbitrageOpportunity, TokenPair, TokenPrice
from flasharb.utils.time import get_timestamp_ms


MOCK_DEXES = ["Uniswap", "SushiSwap", "Curve", "Balancer", "PancakeSwap", "Trader Joe"]
MOCK_PAIRS = ["ETH/USDC", "WBTC/ETH", "LINK/ETH", "UNI/ETH", "AAVE/ETH", "MKR/ETH"]

# ETH/USDC reference quotes shown on the prices tab
MOCK_TOKEN_PRICES = [
    TokenPrice("Uniswap", 1820.45),
    TokenPrice("SushiSwap", 1825.12),
    TokenPrice("Curve", 1818.79),
    TokenPrice("Balancer", 1823.68),
    TokenPrice("PancakeSwap", 1826.32),
]


def generate_mock_opportunities(
    rng: random.Random | None = None,
    now_ms: int | None = None,
) -> list[ArbitrageOpportunity]:
    """
    Generate 5-8 random opportunities.

    Args:
        rng: Random source (default: module-level random).
        now_ms: Reference time for discovery timestamps.

    Returns:
        Opportunities sorted by potential profit, highest first.
    """
    rng = rng or random.Random()
    now = now_ms if now_ms is not None else get_timestamp_ms()

    opportunities = []
    for i in range(rng.randint(5, 8)):
        source, target = rng.sample(MOCK_DEXES, 2)

        opportunities.append(
            ArbitrageOpportunity(
                id=f"arb-{i + 1}",
                source_dex=source,
                target_dex=target,
                token_pair=rng.choice(MOCK_PAIRS),
                price_gap=round(rng.uniform(0.1, 3.5), 2),
                potential_profit=round(rng.uniform(10.0, 500.0), 2),
                # Discovered within the last hour
                timestamp=now - rng.randrange(3_600_000),
            )
        )

    return sorted(opportunities, key=lambda o: o.potential_profit, reverse=True)


def mock_token_pair() -> TokenPair:
    """ETH/USDC quote table for the prices view."""
    return TokenPair(
        id="ETH/USDC",
        name="ETH/USDC",
        token0="ETH",
        token1="USDC",
        prices=list(MOCK_TOKEN_PRICES),
    )


@dataclass
class MockOpportunitySource:
    """
    Simulated scan source.

    The first scan always yields a batch. Later scans yield a fresh
    batch with `discovery_probability`, and None otherwise.
    """

    discovery_probability: float = SIMULATED_DISCOVERY_PROBABILITY
    rng: random.Random = field(default_factory=random.Random)
    scans: int = 0

    async def scan(self) -> list[ArbitrageOpportunity] | None:
        """Run one simulated scan."""
        first = self.scans == 0
        self.scans += 1

        if not first and self.rng.random() >= self.discovery_probability:
            return None

        return generate_mock_opportunities(self.rng)

    @property
    def latest_pairs(self) -> list[TokenPair]:
        return [mock_token_pair()]
