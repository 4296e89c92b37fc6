"""
Live DEX quote scanning.

Quotes one unit of each base token against a stablecoin through every
configured UniswapV2-style router, then looks for gaps between DEXes.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass

from web3 import AsyncWeb3

from flasharb.config.constants import (
    COMMON_TOKENS,
    DEFAULT_TRADE_SIZE_USD,
    DEX_ROUTERS,
    MIN_PRICE_GAP_PCT,
    QUOTE_TOKEN_DECIMALS,
)
from flasharb.core.types import (
    ArbitrageOpportunity,
    RawAmounts,
    TokenAddresses,
    TokenPair,
    TokenPrice,
)
from flasharb.strategy.opportunity import detect_opportunity


logger = logging.getLogger(__name__)

UNISWAP_V2_ROUTER_ABI = [
    {
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "path", "type": "address[]"},
        ],
        "name": "getAmountsOut",
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
        "stateMutability": "view",
        "type": "function",
    }
]


@dataclass(slots=True, frozen=True)
class PairSpec:
    """Token pair to quote on a chain."""

    symbol: str
    base: str
    quote: str


@dataclass(slots=True, frozen=True)
class Quote:
    """Router answer for one unit of the base token."""

    dex: str
    price: float
    amount_in: int
    amount_out: int


def default_pairs(chain_id: int) -> list[PairSpec]:
    """ETH/USDC and WBTC/USDC where the chain has those tokens."""
    tokens = COMMON_TOKENS.get(chain_id, {})
    quote = tokens.get("USDC")
    if quote is None:
        return []

    pairs = []
    eth = tokens.get("ETH") or tokens.get("WETH")
    if eth:
        pairs.append(PairSpec("ETH/USDC", eth, quote))
    wbtc = tokens.get("WBTC")
    if wbtc:
        pairs.append(PairSpec("WBTC/USDC", wbtc, quote))
    return pairs


class DexScanner:
    """
    Scans UniswapV2-compatible routers for cross-DEX price gaps.

    Implements the OpportunitySource protocol.
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        chain_id: int = 1,
        routers: dict[str, str] | None = None,
        pairs: list[PairSpec] | None = None,
        min_gap_pct: float = MIN_PRICE_GAP_PCT,
        trade_size_usd: float = DEFAULT_TRADE_SIZE_USD,
    ) -> None:
        """
        Initialize scanner.

        Args:
            web3: Connected AsyncWeb3 client.
            chain_id: Chain the client is connected to.
            routers: DEX name -> router address (default: known routers for the chain).
            pairs: Pairs to quote (default: ETH/USDC and WBTC/USDC).
            min_gap_pct: Minimum gap percentage to report.
            trade_size_usd: Notional used for potential profit.
        """
        self._web3 = web3
        self._chain_id = chain_id
        self._routers = routers if routers is not None else dict(DEX_ROUTERS.get(chain_id, {}))
        self._pairs = pairs if pairs is not None else default_pairs(chain_id)
        self._min_gap_pct = min_gap_pct
        self._trade_size_usd = trade_size_usd
        self._latest: dict[str, TokenPair] = {}

    async def get_quote(self, dex: str, router_address: str, pair: PairSpec) -> Quote | None:
        """
        Quote one base token through a router.

        Returns:
            Quote, or None if the call failed.
        """
        try:
            router = self._web3.eth.contract(
                address=AsyncWeb3.to_checksum_address(router_address),
                abi=UNISWAP_V2_ROUTER_ABI,
            )
            amount_in = AsyncWeb3.to_wei(1, "ether")
            path = [
                AsyncWeb3.to_checksum_address(pair.base),
                AsyncWeb3.to_checksum_address(pair.quote),
            ]
            amounts = await router.functions.getAmountsOut(amount_in, path).call()
        except Exception as e:
            logger.warning(f"Failed to get {pair.symbol} price from {dex}: {e}")
            return None

        amount_out = int(amounts[1])
        return Quote(
            dex=dex,
            price=amount_out / 10**QUOTE_TOKEN_DECIMALS,
            amount_in=amount_in,
            amount_out=amount_out,
        )

    async def scan_pair(self, pair: PairSpec) -> ArbitrageOpportunity | None:
        """Quote a pair on every router and detect a gap."""
        results = await asyncio.gather(
            *(self.get_quote(dex, address, pair) for dex, address in self._routers.items())
        )
        quotes = [q for q in results if q is not None]

        prices = [TokenPrice(q.dex, q.price) for q in quotes]
        self._latest[pair.symbol] = TokenPair(
            id=pair.symbol,
            name=pair.symbol,
            token0=pair.base,
            token1=pair.quote,
            prices=prices,
        )

        opportunity = detect_opportunity(
            pair.symbol,
            prices,
            token_addresses=TokenAddresses(pair.base, pair.quote),
            min_gap_pct=self._min_gap_pct,
            trade_size_usd=self._trade_size_usd,
        )
        if opportunity is None:
            return None

        source = next(q for q in quotes if q.dex == opportunity.source_dex)
        return dataclasses.replace(
            opportunity,
            raw_amounts=RawAmounts(str(source.amount_in), str(source.amount_out)),
        )

    async def scan(self) -> list[ArbitrageOpportunity]:
        """
        Scan all pairs for arbitrage opportunities.

        Returns:
            Opportunities sorted by potential profit, highest first.
        """
        if len(self._routers) < 2:
            logger.error(f"Need at least two DEXes on chain {self._chain_id}, have {len(self._routers)}")
            return []

        opportunities = []
        for pair in self._pairs:
            opportunity = await self.scan_pair(pair)
            if opportunity:
                opportunities.append(opportunity)

        if opportunities:
            logger.info(f"Found {len(opportunities)} arbitrage opportunities")
        else:
            logger.info("No arbitrage opportunities found")

        return sorted(opportunities, key=lambda o: o.potential_profit, reverse=True)

    @property
    def latest_pairs(self) -> list[TokenPair]:
        """Quotes gathered by the most recent scan, per pair."""
        return list(self._latest.values())

    @property
    def chain_id(self) -> int:
        return self._chain_id
