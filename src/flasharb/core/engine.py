"""
Scan engine orchestrator.

Owns the scanner state the dashboard and CLI read: the current list of
opportunities, scan counters, runtime execution and gas settings and
the selected chain. Runs the periodic scan loop and auto-execution.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from flasharb.config.constants import CHAIN_IDS, SUPPORTED_CHAINS
from flasharb.config.settings import Settings
from flasharb.core.errors import FlashArbError, OpportunityNotFoundError, ProviderError
from flasharb.core.event_bus import EventBus, EventType
from flasharb.core.models import (
    ExecutionSettings,
    ExecutionSettingsUpdate,
    GasSettings,
    GasSettingsUpdate,
)
from flasharb.core.types import (
    ArbitrageOpportunity,
    ExecutionResult,
    ExecutionStatus,
    OpportunitySource,
    ProfitabilityResult,
    TokenPair,
)
from flasharb.execution.executor import ArbitrageExecutor, ExecutorConfig
from flasharb.execution.network import build_network_config
from flasharb.market.dex import DexScanner
from flasharb.market.gas import GasPriceMonitor
from flasharb.market.oracle import EthPriceOracle
from flasharb.market.providers import NodeProvider, ProviderConfigStore, create_web3
from flasharb.simulation.mock import MockOpportunitySource
from flasharb.strategy.calculator import ProfitabilityCalculator
from flasharb.telemetry.metrics import MetricsCollector
from flasharb.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass
class ScanComponents:
    """Chain-bound pieces rebuilt on reconnect."""

    source: OpportunitySource
    gas_monitor: GasPriceMonitor | None = None
    provider_error: str | None = None

    @property
    def is_live(self) -> bool:
        return isinstance(self.source, DexScanner)


ComponentFactory = Callable[[str], ScanComponents]


class ScanEngine:
    """
    Application context for the scanner.

    Manages:
    - Periodic scanning and the current opportunity list
    - Profitability checks and execution requests
    - Auto-execution of the best opportunity
    - Runtime execution / gas settings and chain selection
    """

    def __init__(
        self,
        settings: Settings,
        components: ScanComponents,
        executor: ArbitrageExecutor,
        oracle: EthPriceOracle | None = None,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        component_factory: ComponentFactory | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Application settings.
            components: Opportunity source and gas monitor for the chain.
            executor: Profitability checks and execution.
            oracle: Price oracle to close on shutdown.
            event_bus: Bus for state change events.
            metrics: Metrics collector.
            component_factory: Rebuilds components for a chain on reconnect.
        """
        self._settings = settings
        self._components = components
        self._executor = executor
        self._oracle = oracle
        self._event_bus = event_bus or EventBus()
        self._metrics = metrics or MetricsCollector()
        self._component_factory = component_factory

        self._chain = settings.chain
        self._execution_settings = ExecutionSettings(
            auto_execute=settings.auto_execute,
            min_profit_threshold=settings.min_profit_threshold_usd,
            max_slippage=settings.max_slippage_pct,
        )
        self._gas_settings = GasSettings(
            max_gas_price=settings.max_gas_price_gwei,
            gas_limit=settings.gas_limit_estimate,
        )

        # State
        self._opportunities: list[ArbitrageOpportunity] = []
        self._scanning = False
        self._scan_count = 0
        self._last_scanned: int | None = None
        self._scan_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()

    # =========================================================================
    # Scanning
    # =========================================================================

    async def scan_once(self) -> bool:
        """
        Run one scan cycle.

        Returns:
            True if the opportunity list was replaced.
        """
        self._scan_count += 1

        try:
            batch = await self._components.source.scan()
        except Exception as e:
            logger.error(f"Scan #{self._scan_count} failed: {e}")
            batch = None

        self._last_scanned = get_timestamp_ms()
        self._metrics.record_scan()

        if batch is not None:
            self._opportunities = batch
            self._executor.clear_checks()
            self._metrics.record_opportunities(
                len(batch),
                best_profit=batch[0].potential_profit if batch else 0.0,
            )
            logger.info(f"Scan #{self._scan_count}: {len(batch)} opportunities")
            await self._event_bus.emit(
                EventType.OPPORTUNITIES_UPDATED,
                [o.to_dict() for o in batch],
                source="engine",
            )

        await self._event_bus.emit(
            EventType.SCAN_COMPLETED,
            {"scan_count": self._scan_count, "last_scanned": self._last_scanned},
            source="engine",
        )

        if batch and self._execution_settings.auto_execute:
            self._maybe_auto_execute(batch[0])

        return batch is not None

    async def run(self) -> None:
        """Scan until stopped. The first scan runs immediately."""
        while self._scanning:
            await self.scan_once()
            await asyncio.sleep(self._settings.scan_interval_seconds)

    async def start(self) -> bool:
        """
        Start scanning.

        Returns:
            False if already scanning.
        """
        if self._scanning:
            return False

        self._scanning = True
        if self._components.gas_monitor is not None:
            self._components.gas_monitor.start()
        self._scan_task = asyncio.create_task(self.run())

        logger.info(f"Scanning started on {SUPPORTED_CHAINS[self._chain]}")
        await self._event_bus.emit(EventType.STATUS_CHANGED, self.status(), source="engine")
        return True

    async def stop(self) -> bool:
        """
        Stop scanning and gas polling. The opportunity list is kept.

        Returns:
            False if not scanning.
        """
        if not self._scanning:
            return False

        self._scanning = False
        if self._scan_task is not None:
            self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                pass
            self._scan_task = None
        if self._components.gas_monitor is not None:
            await self._components.gas_monitor.stop()

        logger.info(f"Scanning stopped after {self._scan_count} scans")
        await self._event_bus.emit(EventType.STATUS_CHANGED, self.status(), source="engine")
        return True

    async def close(self) -> None:
        """Stop scanning and release network resources."""
        await self.stop()

        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

        if self._components.gas_monitor is not None:
            await self._components.gas_monitor.stop()
        if self._oracle is not None:
            await self._oracle.close()

    # =========================================================================
    # Opportunities
    # =========================================================================

    def get_opportunity(self, opportunity_id: str) -> ArbitrageOpportunity:
        """
        Look up a listed opportunity.

        Raises:
            OpportunityNotFoundError: If the id is not in the current list.
        """
        for opportunity in self._opportunities:
            if opportunity.id == opportunity_id:
                return opportunity
        raise OpportunityNotFoundError(f"Opportunity {opportunity_id} not found")

    def effective_gas_price(self) -> float:
        """Gas price used for estimates under the current gas settings."""
        monitor = self._components.gas_monitor
        reading = monitor.gas_price_gwei if monitor is not None else None
        return self._gas_settings.effective_gas_price(
            reading, self._settings.fallback_gas_price_gwei
        )

    async def check_profitability(
        self,
        opportunity_id: str,
        gas_price_gwei: float | None = None,
    ) -> ProfitabilityResult:
        """
        Estimate profitability of a listed opportunity.

        Args:
            opportunity_id: Opportunity id.
            gas_price_gwei: Override for the gas price.
        """
        opportunity = self.get_opportunity(opportunity_id)
        gas_price = gas_price_gwei or self.effective_gas_price()

        result = await self._executor.check_profitability(opportunity, gas_price)
        self._metrics.record_profitability(result.profitable)

        await self._event_bus.emit(
            EventType.PROFITABILITY_CHECKED,
            {"opportunity_id": opportunity_id, "result": result.to_dict()},
            source="engine",
        )
        return result

    async def execute(self, opportunity_id: str) -> ExecutionResult:
        """
        Execute a listed opportunity.

        A refusal after `EXECUTION_STARTED` still publishes
        `EXECUTION_COMPLETE` with a failed status before re-raising.

        Raises:
            OpportunityNotFoundError: If the id is not listed.
            ExecutionError: If the executor refuses the request.
        """
        opportunity = self.get_opportunity(opportunity_id)

        if self._executor.last_check(opportunity_id) is None:
            await self.check_profitability(opportunity_id)

        started_ms = get_timestamp_ms()
        await self._event_bus.emit(
            EventType.EXECUTION_STARTED,
            {"opportunity_id": opportunity_id},
            source="engine",
        )

        try:
            result = await self._executor.execute(opportunity)
        except FlashArbError as e:
            refused = ExecutionResult(
                opportunity_id=opportunity_id,
                status=ExecutionStatus.FAILED,
                simulated=self._executor.is_simulation,
                profitability=self._executor.last_check(opportunity_id),
                error_message=str(e),
                started_ms=started_ms,
                finished_ms=get_timestamp_ms(),
            )
            await self._event_bus.emit(
                EventType.EXECUTION_COMPLETE, refused.to_dict(), source="engine"
            )
            raise

        self._metrics.record_execution(result)

        await self._event_bus.emit(EventType.EXECUTION_COMPLETE, result.to_dict(), source="engine")
        return result

    def _maybe_auto_execute(self, best: ArbitrageOpportunity) -> None:
        """Execute the best opportunity in the background if it clears the threshold."""
        if best.potential_profit <= self._execution_settings.min_profit_threshold:
            return

        logger.info(f"Auto-executing {best.id} ({best.token_pair}, ${best.potential_profit:.2f})")
        task = asyncio.create_task(self._auto_execute(best.id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _auto_execute(self, opportunity_id: str) -> None:
        try:
            await self.execute(opportunity_id)
        except FlashArbError as e:
            logger.warning(f"Auto-execution of {opportunity_id} skipped: {e}")

    # =========================================================================
    # Settings
    # =========================================================================

    async def update_execution_settings(self, update: ExecutionSettingsUpdate) -> ExecutionSettings:
        """Apply a partial execution settings update."""
        for name, value in update.model_dump(exclude_none=True).items():
            setattr(self._execution_settings, name, value)

        logger.info(f"Execution settings updated: {self._execution_settings.model_dump()}")
        await self._event_bus.emit(
            EventType.SETTINGS_CHANGED,
            {"execution": self._execution_settings.model_dump()},
            source="engine",
        )
        return self._execution_settings

    async def update_gas_settings(self, update: GasSettingsUpdate) -> GasSettings:
        """Apply a partial gas settings update."""
        for name, value in update.model_dump(exclude_none=True).items():
            setattr(self._gas_settings, name, value)

        logger.info(f"Gas settings updated: {self._gas_settings.model_dump()}")
        await self._event_bus.emit(
            EventType.SETTINGS_CHANGED,
            {"gas": self._gas_settings.model_dump()},
            source="engine",
        )
        return self._gas_settings

    async def select_chain(self, chain: str) -> None:
        """
        Switch to another chain and reconnect.

        Raises:
            ValueError: If the chain is not supported.
        """
        key = chain.lower()
        if key not in SUPPORTED_CHAINS:
            raise ValueError(f"Unsupported chain {chain!r}")
        if key == self._chain:
            return

        self._chain = key
        logger.info(f"Switched to {SUPPORTED_CHAINS[key]}")
        await self.reconnect()

    async def reconnect(self) -> None:
        """
        Rebuild chain-bound components, e.g. after a provider key change.

        Scanning resumes if it was running. The opportunity list is cleared.
        """
        if self._component_factory is None:
            await self._event_bus.emit(EventType.STATUS_CHANGED, self.status(), source="engine")
            return

        was_scanning = await self.stop()
        if self._components.gas_monitor is not None:
            await self._components.gas_monitor.stop()

        self._components = self._component_factory(self._chain)
        self._executor.rebind(
            build_network_config(self._settings, self._chain),
            self._components.gas_monitor,
        )
        self._opportunities = []
        await self._event_bus.emit(EventType.OPPORTUNITIES_UPDATED, [], source="engine")

        if was_scanning:
            await self.start()
        else:
            await self._event_bus.emit(EventType.STATUS_CHANGED, self.status(), source="engine")

    # =========================================================================
    # Properties
    # =========================================================================

    def status(self) -> dict[str, Any]:
        """Snapshot for the status endpoint."""
        return {
            "is_scanning": self._scanning,
            "scan_count": self._scan_count,
            "last_scanned": self._last_scanned,
            "opportunity_count": len(self._opportunities),
            "chain": self._chain,
            "chain_name": SUPPORTED_CHAINS[self._chain],
            "chain_id": CHAIN_IDS[self._chain],
            "live_quotes": self._components.is_live,
            "simulated_execution": self._executor.is_simulation,
            "provider_error": self._components.provider_error,
            "gas_price_gwei": self.effective_gas_price(),
            "auto_execute": self._execution_settings.auto_execute,
        }

    @property
    def opportunities(self) -> list[ArbitrageOpportunity]:
        return list(self._opportunities)

    @property
    def latest_pairs(self) -> list[TokenPair]:
        return self._components.source.latest_pairs

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    @property
    def scan_count(self) -> int:
        return self._scan_count

    @property
    def last_scanned(self) -> int | None:
        return self._last_scanned

    @property
    def chain(self) -> str:
        return self._chain

    @property
    def execution_settings(self) -> ExecutionSettings:
        return self._execution_settings

    @property
    def gas_settings(self) -> GasSettings:
        return self._gas_settings

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def executor(self) -> ArbitrageExecutor:
        return self._executor

    @property
    def settings(self) -> Settings:
        return self._settings


# =============================================================================
# Construction
# =============================================================================


def build_scan_components(
    settings: Settings,
    chain: str,
    store: ProviderConfigStore | None = None,
) -> ScanComponents:
    """
    Build the opportunity source for a chain.

    Simulation settings give the mock source. Otherwise the configured
    provider is used for live quotes; a missing key or unserved chain
    falls back to the mock source and is reported as `provider_error`.
    """
    if settings.simulation:
        return ScanComponents(source=MockOpportunitySource())

    provider = NodeProvider(settings.node_provider)
    store = store or ProviderConfigStore(settings.provider_store_path)
    api_key = store.resolve_key(provider, settings.api_key_for(provider.value))
    chain_id = CHAIN_IDS[chain]

    try:
        web3 = create_web3(provider, api_key or "", chain_id)
    except ProviderError as e:
        logger.error(f"Live quotes unavailable, using simulated opportunities: {e}")
        return ScanComponents(source=MockOpportunitySource(), provider_error=str(e))

    logger.info(f"Connected to {provider.value} for {SUPPORTED_CHAINS[chain]}")
    return ScanComponents(
        source=DexScanner(
            web3,
            chain_id=chain_id,
            min_gap_pct=settings.min_price_gap_pct,
            trade_size_usd=settings.trade_size_usd,
        ),
        gas_monitor=GasPriceMonitor(web3),
    )


def build_engine(settings: Settings, store: ProviderConfigStore | None = None) -> ScanEngine:
    """Wire a ScanEngine from settings."""
    store = store or ProviderConfigStore(settings.provider_store_path)

    def factory(chain: str) -> ScanComponents:
        return build_scan_components(settings, chain, store)

    components = factory(settings.chain)
    oracle = EthPriceOracle(fallback_price=settings.fallback_eth_price_usd)
    calculator = ProfitabilityCalculator(
        fee_rate=settings.flash_loan_fee_rate,
        gas_limit=settings.gas_limit_estimate,
    )
    executor = ArbitrageExecutor(
        calculator=calculator,
        oracle=oracle,
        network=build_network_config(settings),
        gas_source=components.gas_monitor,
        config=ExecutorConfig(
            simulation=settings.simulation,
            simulated_delay_seconds=settings.simulated_execution_delay_seconds,
            fallback_gas_price_gwei=settings.fallback_gas_price_gwei,
        ),
    )

    return ScanEngine(
        settings=settings,
        components=components,
        executor=executor,
        oracle=oracle,
        component_factory=factory,
    )


@asynccontextmanager
async def create_engine(
    settings: Settings,
    store: ProviderConfigStore | None = None,
) -> AsyncIterator[ScanEngine]:
    """
    Create and manage engine lifecycle.

    Usage:
        async with create_engine(settings) as engine:
            await engine.start()
    """
    engine = build_engine(settings, store)

    try:
        yield engine
    finally:
        await engine.close()
