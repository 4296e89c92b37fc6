"""
Type definitions for the flash arbitrage scanner.

This module contains the dataclasses, enums and Protocol definitions
shared across the application. Opportunities and profitability results
are frozen: a scan cycle replaces them, it never edits them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


# =============================================================================
# Enums
# =============================================================================


class ExecutionStatus(str, Enum):
    """Lifecycle of a trade execution request."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# Opportunity Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class TokenAddresses:
    """Token pair addresses on chain (base, quote)."""

    token0: str
    token1: str


@dataclass(slots=True, frozen=True)
class RawAmounts:
    """Router quote amounts in token base units, kept as decimal strings."""

    amount_in: str
    amount_out: str


@dataclass(slots=True, frozen=True)
class ArbitrageOpportunity:
    """
    Price gap for one token pair between two DEXes.

    Buy on `source_dex`, sell on `target_dex`. `price_gap` is a
    percentage and `potential_profit` is gross USD before any fees.
    """

    id: str
    source_dex: str
    target_dex: str
    token_pair: str
    price_gap: float
    potential_profit: float
    timestamp: int  # ms since epoch
    token_addresses: TokenAddresses | None = None
    raw_amounts: RawAmounts | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the dashboard API."""
        return {
            "id": self.id,
            "source_dex": self.source_dex,
            "target_dex": self.target_dex,
            "token_pair": self.token_pair,
            "price_gap": self.price_gap,
            "potential_profit": self.potential_profit,
            "timestamp": self.timestamp,
            "token_addresses": (
                {"token0": self.token_addresses.token0, "token1": self.token_addresses.token1}
                if self.token_addresses
                else None
            ),
            "raw_amounts": (
                {"amount_in": self.raw_amounts.amount_in, "amount_out": self.raw_amounts.amount_out}
                if self.raw_amounts
                else None
            ),
        }


@dataclass(slots=True, frozen=True)
class ProfitabilityResult:
    """Outcome of the profitability estimate, all amounts in USD."""

    profitable: bool
    net_profit: float
    gas_cost: float
    flash_loan_fee: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "profitable": self.profitable,
            "net_profit": self.net_profit,
            "gas_cost": self.gas_cost,
            "flash_loan_fee": self.flash_loan_fee,
        }


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class TokenPrice:
    """Quote for a token pair on a single DEX."""

    dex: str
    price: float


@dataclass(slots=True)
class TokenPair:
    """Token pair tracked across DEXes."""

    id: str
    name: str
    token0: str
    token1: str
    prices: list[TokenPrice] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class DexConfig:
    """UniswapV2-style DEX contract addresses."""

    router_address: str
    factory_address: str = ""


@dataclass(slots=True)
class NetworkConfig:
    """Per-chain contract configuration for flash loan execution."""

    chain_id: int
    name: str
    lending_pool_address: str
    flash_loan_receiver_address: str
    supported_dexes: dict[str, DexConfig] = field(default_factory=dict)


# =============================================================================
# Execution Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class SwapRoute:
    """Where the borrowed funds are swapped."""

    source_dex: str
    target_dex: str
    path: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class FlashLoanParams:
    """Arguments for a single-asset flash loan."""

    receiver_contract: str
    token: str
    amount: int  # wei
    route: SwapRoute


@dataclass(slots=True)
class ExecutionResult:
    """Result of an execution request."""

    opportunity_id: str
    status: ExecutionStatus
    tx_hash: str = ""
    simulated: bool = True
    profitability: ProfitabilityResult | None = None
    error_message: str = ""
    started_ms: int = 0
    finished_ms: int = 0

    @property
    def is_success(self) -> bool:
        """Check if execution completed."""
        return self.status == ExecutionStatus.COMPLETED

    @property
    def realized_profit(self) -> float:
        """Estimated net profit credited to a completed execution."""
        if not self.is_success or self.profitability is None:
            return 0.0
        return self.profitability.net_profit

    def to_dict(self) -> dict[str, Any]:
        return {
            "opportunity_id": self.opportunity_id,
            "status": self.status.value,
            "tx_hash": self.tx_hash,
            "simulated": self.simulated,
            "profitability": self.profitability.to_dict() if self.profitability else None,
            "error_message": self.error_message,
            "started_ms": self.started_ms,
            "finished_ms": self.finished_ms,
        }


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class OpportunitySource(Protocol):
    """Anything that can produce a fresh batch of opportunities."""

    async def scan(self) -> list[ArbitrageOpportunity] | None:
        """Run one scan. None means no new batch this cycle."""
        ...

    @property
    def latest_pairs(self) -> list[TokenPair]:
        """Per-DEX quotes behind the latest scan."""
        ...


class PriceOracle(Protocol):
    """Reference asset price in USD."""

    async def get_price_usd(self) -> float:
        """Get the current price, falling back when unavailable."""
        ...


class GasPriceSource(Protocol):
    """Latest gas price reading in gwei."""

    @property
    def gas_price_gwei(self) -> float | None:
        """Last reading, or None if none succeeded yet."""
        ...


class TransactionSubmitter(Protocol):
    """Sends a flash loan transaction and returns its hash."""

    async def submit_flash_loan(
        self,
        lending_pool_address: str,
        params: FlashLoanParams,
        encoded_route: bytes,
        gas_limit: int,
    ) -> str:
        """Submit the transaction and wait for confirmation."""
        ...
