"""
Flash loan arbitrage execution.

Checks profitability at the call boundary (where price and gas
fallbacks are applied) and runs the trade either as a timed simulation
or through an injected transaction submitter.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass

from eth_abi import encode
from web3 import AsyncWeb3

from flasharb.config.constants import (
    DEFAULT_BORROW_AMOUNT,
    FALLBACK_GAS_PRICE_GWEI,
    SIMULATED_EXECUTION_DELAY_SECONDS,
    ZERO_ADDRESS,
)
from flasharb.core.errors import ExecutionError, ProfitabilityCheckError
from flasharb.core.types import (
    ArbitrageOpportunity,
    ExecutionResult,
    ExecutionStatus,
    FlashLoanParams,
    GasPriceSource,
    NetworkConfig,
    PriceOracle,
    ProfitabilityResult,
    SwapRoute,
    TransactionSubmitter,
)
from flasharb.strategy.calculator import ProfitabilityCalculator
from flasharb.utils.formatters import format_currency
from flasharb.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass
class ExecutorConfig:
    """Executor configuration."""

    simulation: bool = True  # No transaction is sent
    simulated_delay_seconds: float = SIMULATED_EXECUTION_DELAY_SECONDS
    fallback_gas_price_gwei: float = FALLBACK_GAS_PRICE_GWEI
    borrow_amount: float = DEFAULT_BORROW_AMOUNT  # whole tokens


def encode_route(route: SwapRoute, routers: dict[str, str]) -> bytes:
    """
    ABI-encode a swap route as `(address, address, address[])`.

    Args:
        route: Route with DEX names and token path.
        routers: DEX name -> router address.

    Raises:
        ExecutionError: If a DEX has no known router.
    """
    try:
        source_router = routers[route.source_dex]
        target_router = routers[route.target_dex]
    except KeyError as e:
        raise ExecutionError(f"No router configured for {e.args[0]}") from e

    return encode(
        ["address", "address", "address[]"],
        [
            AsyncWeb3.to_checksum_address(source_router),
            AsyncWeb3.to_checksum_address(target_router),
            [AsyncWeb3.to_checksum_address(token) for token in route.path],
        ],
    )


class ArbitrageExecutor:
    """
    Executes flash loan arbitrage opportunities.

    Features:
    - Profitability check with oracle and gas fallbacks
    - Refuses opportunities known to be unprofitable
    - Simulation mode with a fake transaction hash
    - Live mode through a TransactionSubmitter
    """

    def __init__(
        self,
        calculator: ProfitabilityCalculator,
        oracle: PriceOracle,
        network: NetworkConfig,
        gas_source: GasPriceSource | None = None,
        submitter: TransactionSubmitter | None = None,
        config: ExecutorConfig | None = None,
    ) -> None:
        """
        Initialize executor.

        Args:
            calculator: Profitability calculator.
            oracle: ETH/USD price source.
            network: Lending pool, receiver and DEX routers for the chain.
            gas_source: Live gas price readings, if available.
            submitter: Sends live transactions; required outside simulation.
            config: Executor configuration.
        """
        self._calculator = calculator
        self._oracle = oracle
        self._network = network
        self._gas_source = gas_source
        self._submitter = submitter
        self._config = config or ExecutorConfig()

        self._checks: dict[str, ProfitabilityResult] = {}
        self._in_flight: set[str] = set()

        # Statistics
        self._total_executions = 0
        self._successful_executions = 0
        self._failed_executions = 0

    def rebind(self, network: NetworkConfig, gas_source: GasPriceSource | None) -> None:
        """Point the executor at another chain after a reconnect."""
        self._network = network
        self._gas_source = gas_source
        self._checks.clear()

    # =========================================================================
    # Profitability
    # =========================================================================

    def resolve_gas_price(self, gas_price_gwei: float | None = None) -> float:
        """
        Gas price to price a trade with.

        Explicit value first, then the live reading, then the fallback.
        """
        if gas_price_gwei:
            return gas_price_gwei
        if self._gas_source is not None and self._gas_source.gas_price_gwei is not None:
            return self._gas_source.gas_price_gwei
        return self._config.fallback_gas_price_gwei

    async def check_profitability(
        self,
        opportunity: ArbitrageOpportunity,
        gas_price_gwei: float | None = None,
    ) -> ProfitabilityResult:
        """
        Estimate profitability using current market readings.

        Args:
            opportunity: Opportunity to evaluate.
            gas_price_gwei: Override for the gas price.

        Returns:
            ProfitabilityResult, also cached for `execute`.

        Raises:
            ProfitabilityCheckError: If the estimate could not be produced.
        """
        try:
            eth_price = await self._oracle.get_price_usd()
            gas_price = self.resolve_gas_price(gas_price_gwei)
            result = self._calculator.estimate(opportunity, gas_price, eth_price)
        except Exception as e:
            logger.error(f"Error calculating profitability for {opportunity.id}: {e}")
            raise ProfitabilityCheckError() from e

        self._checks[opportunity.id] = result

        if result.profitable:
            logger.info(f"Profitable opportunity {opportunity.id}: {format_currency(result.net_profit)}")
        else:
            logger.info(f"Not profitable {opportunity.id}: estimated loss {format_currency(result.net_profit)}")

        return result

    def last_check(self, opportunity_id: str) -> ProfitabilityResult | None:
        """Get the cached profitability of an opportunity."""
        return self._checks.get(opportunity_id)

    def clear_checks(self) -> None:
        """Drop cached checks, e.g. when a new batch replaces the list."""
        self._checks.clear()

    # =========================================================================
    # Execution
    # =========================================================================

    def build_flash_loan_params(self, opportunity: ArbitrageOpportunity) -> FlashLoanParams:
        """
        Build flash loan arguments for an opportunity.

        Borrows `borrow_amount` of token0 and routes it token0 -> token1.
        """
        if opportunity.token_addresses is None:
            raise ExecutionError("Missing token details")

        token0 = opportunity.token_addresses.token0
        token1 = opportunity.token_addresses.token1

        return FlashLoanParams(
            receiver_contract=self._network.flash_loan_receiver_address,
            token=token0,
            amount=AsyncWeb3.to_wei(self._config.borrow_amount, "ether"),
            route=SwapRoute(
                source_dex=opportunity.source_dex,
                target_dex=opportunity.target_dex,
                path=(token0, token1),
            ),
        )

    async def execute(self, opportunity: ArbitrageOpportunity) -> ExecutionResult:
        """
        Execute an arbitrage opportunity.

        Args:
            opportunity: Opportunity to execute.

        Returns:
            ExecutionResult with outcome.

        Raises:
            ExecutionError: If the request is refused before anything runs.
            ProfitabilityCheckError: If no estimate exists and one cannot be made.
        """
        if opportunity.id in self._in_flight:
            raise ExecutionError(f"Opportunity {opportunity.id} is already executing")

        profitability = self._checks.get(opportunity.id)
        if profitability is None:
            profitability = await self.check_profitability(opportunity)

        if not profitability.profitable:
            raise ExecutionError(
                f"Opportunity {opportunity.id} is not profitable "
                f"({format_currency(profitability.net_profit)})"
            )

        self._in_flight.add(opportunity.id)
        self._total_executions += 1
        start_ms = get_timestamp_ms()

        try:
            if self._config.simulation:
                result = await self._execute_simulated(opportunity, profitability, start_ms)
            else:
                result = await self._execute_live(opportunity, profitability, start_ms)
        except ExecutionError:
            self._total_executions -= 1
            raise
        finally:
            self._in_flight.discard(opportunity.id)

        if result.is_success:
            self._successful_executions += 1
        else:
            self._failed_executions += 1

        return result

    async def _execute_simulated(
        self,
        opportunity: ArbitrageOpportunity,
        profitability: ProfitabilityResult,
        start_ms: int,
    ) -> ExecutionResult:
        """Wait out the simulated confirmation and report success."""
        logger.info(f"Simulating execution of {opportunity.id}, no transaction will be sent")

        await asyncio.sleep(self._config.simulated_delay_seconds)

        tx_hash = "0x" + secrets.token_hex(32)
        logger.info(f"Simulation complete for {opportunity.id}: {tx_hash}")

        return ExecutionResult(
            opportunity_id=opportunity.id,
            status=ExecutionStatus.COMPLETED,
            tx_hash=tx_hash,
            simulated=True,
            profitability=profitability,
            started_ms=start_ms,
            finished_ms=get_timestamp_ms(),
        )

    async def _execute_live(
        self,
        opportunity: ArbitrageOpportunity,
        profitability: ProfitabilityResult,
        start_ms: int,
    ) -> ExecutionResult:
        """Submit the flash loan through the configured submitter."""
        if self._network.flash_loan_receiver_address.lower() == ZERO_ADDRESS:
            raise ExecutionError("Flash loan receiver not configured")
        if self._submitter is None:
            raise ExecutionError("Live execution requires a transaction submitter")

        params = self.build_flash_loan_params(opportunity)
        routers = {
            name: dex.router_address for name, dex in self._network.supported_dexes.items()
        }
        encoded_route = encode_route(params.route, routers)

        logger.info(f"Executing flash loan for {opportunity.id} on {self._network.name}")

        try:
            tx_hash = await self._submitter.submit_flash_loan(
                self._network.lending_pool_address,
                params,
                encoded_route,
                self._calculator.gas_limit,
            )
        except Exception as e:
            logger.error(f"Flash loan execution failed for {opportunity.id}: {e}")
            return ExecutionResult(
                opportunity_id=opportunity.id,
                status=ExecutionStatus.FAILED,
                tx_hash="0x0",
                simulated=False,
                profitability=profitability,
                error_message=str(e) or "Could not execute the transaction",
                started_ms=start_ms,
                finished_ms=get_timestamp_ms(),
            )

        logger.info(f"Flash loan executed for {opportunity.id}: {tx_hash}")

        return ExecutionResult(
            opportunity_id=opportunity.id,
            status=ExecutionStatus.COMPLETED,
            tx_hash=tx_hash,
            simulated=False,
            profitability=profitability,
            started_ms=start_ms,
            finished_ms=get_timestamp_ms(),
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def stats(self) -> dict[str, int]:
        """Get execution statistics."""
        return {
            "total": self._total_executions,
            "successful": self._successful_executions,
            "failed": self._failed_executions,
        }

    @property
    def is_simulation(self) -> bool:
        return self._config.simulation

    @property
    def network(self) -> NetworkConfig:
        return self._network
