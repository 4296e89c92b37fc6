"""
Flash loan profitability calculation.

Nets the flash loan premium and the USD gas cost of the transaction
out of an opportunity's gross profit. Pure arithmetic: callers are
responsible for supplying fallback gas and asset prices.
"""

from flasharb.config.constants import FLASH_LOAN_FEE_RATE, GAS_LIMIT_ESTIMATE, GWEI_PER_NATIVE
from flasharb.core.types import ArbitrageOpportunity, ProfitabilityResult


def estimate_profitability(
    opportunity: ArbitrageOpportunity,
    gas_price_gwei: float,
    eth_price_usd: float,
    fee_rate: float = FLASH_LOAN_FEE_RATE,
    gas_limit: int = GAS_LIMIT_ESTIMATE,
) -> ProfitabilityResult:
    """
    Estimate whether an opportunity pays for its flash loan and gas.

    Args:
        opportunity: Opportunity with its gross `potential_profit` in USD.
        gas_price_gwei: Current gas price in gwei.
        eth_price_usd: Native asset price in USD.
        fee_rate: Flash loan premium as a fraction.
        gas_limit: Gas units budgeted for the transaction.

    Returns:
        ProfitabilityResult with net profit, gas cost and fee in USD.
    """
    flash_loan_fee = opportunity.potential_profit * fee_rate

    gas_cost_native = (gas_limit * gas_price_gwei) / GWEI_PER_NATIVE
    gas_cost_usd = gas_cost_native * eth_price_usd

    net_profit = opportunity.potential_profit - flash_loan_fee - gas_cost_usd

    return ProfitabilityResult(
        profitable=net_profit > 0,
        net_profit=net_profit,
        gas_cost=gas_cost_usd,
        flash_loan_fee=flash_loan_fee,
    )


class ProfitabilityCalculator:
    """
    Profitability estimator bound to a configured fee rate and gas limit.

    Holds no market state, so one instance can be shared freely.
    """

    __slots__ = ("_fee_rate", "_gas_limit")

    def __init__(
        self,
        fee_rate: float = FLASH_LOAN_FEE_RATE,
        gas_limit: int = GAS_LIMIT_ESTIMATE,
    ) -> None:
        """
        Initialize calculator.

        Args:
            fee_rate: Flash loan premium (e.g., 0.0009 = 0.09%).
            gas_limit: Gas units budgeted per flash loan.
        """
        self._fee_rate = fee_rate
        self._gas_limit = gas_limit

    def estimate(
        self,
        opportunity: ArbitrageOpportunity,
        gas_price_gwei: float,
        eth_price_usd: float,
    ) -> ProfitabilityResult:
        """Estimate profitability with this calculator's parameters."""
        return estimate_profitability(
            opportunity,
            gas_price_gwei,
            eth_price_usd,
            fee_rate=self._fee_rate,
            gas_limit=self._gas_limit,
        )

    def gas_cost_native(self, gas_price_gwei: float) -> float:
        """Gas cost of one flash loan in native units."""
        return (self._gas_limit * gas_price_gwei) / GWEI_PER_NATIVE

    def gas_cost_usd(self, gas_price_gwei: float, eth_price_usd: float) -> float:
        """Gas cost of one flash loan in USD."""
        return self.gas_cost_native(gas_price_gwei) * eth_price_usd

    def break_even_profit(self, gas_price_gwei: float, eth_price_usd: float) -> float:
        """
        Smallest gross profit that nets to zero.

        Solves `p - p * fee_rate - gas = 0` for p.
        """
        return self.gas_cost_usd(gas_price_gwei, eth_price_usd) / (1.0 - self._fee_rate)

    @property
    def fee_rate(self) -> float:
        """Get flash loan fee rate."""
        return self._fee_rate

    @property
    def gas_limit(self) -> int:
        """Get gas limit estimate."""
        return self._gas_limit
