"""
Integration tests for the scan engine.

Tests the scan cycle, auto-execution, settings updates and
reconnects over scripted opportunity sources.
"""

import asyncio
from collections.abc import Callable

import pytest

from flasharb.config.settings import Settings
from flasharb.core.engine import ScanComponents, ScanEngine, build_engine, build_scan_components
from flasharb.core.errors import ExecutionError, OpportunityNotFoundError
from flasharb.core.event_bus import Event, EventType
from flasharb.core.models import ExecutionSettingsUpdate, GasSettingsUpdate
from flasharb.execution.executor import ArbitrageExecutor
from flasharb.market.dex import DexScanner
from flasharb.market.gas import GasPriceMonitor
from flasharb.market.providers import NodeProvider, ProviderConfigStore
from flasharb.simulation.mock import MockOpportunitySource
from tests.mocks.chain import FakeOracle, FakeWeb3, StaticOpportunitySource
from tests.mocks.opportunities import make_opportunity


EngineFactory = Callable[..., ScanEngine]


def record_events(engine: ScanEngine) -> list[Event]:
    events: list[Event] = []

    async def handler(event: Event) -> None:
        events.append(event)

    engine.event_bus.subscribe_all(handler)
    return events


class TestScanCycle:
    """Tests for ScanEngine.scan_once."""

    @pytest.mark.asyncio
    async def test_batch_replaces_list(self, make_engine: EngineFactory) -> None:
        first = [make_opportunity("a", 300.0), make_opportunity("b", 50.0)]
        second = [make_opportunity("c", 120.0)]
        engine = make_engine(StaticOpportunitySource([first, second]))

        assert await engine.scan_once() is True
        assert [o.id for o in engine.opportunities] == ["a", "b"]

        assert await engine.scan_once() is True
        assert [o.id for o in engine.opportunities] == ["c"]
        assert engine.scan_count == 2
        assert engine.last_scanned is not None

    @pytest.mark.asyncio
    async def test_no_batch_keeps_list(self, make_engine: EngineFactory) -> None:
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a")], None]))

        await engine.scan_once()
        assert await engine.scan_once() is False

        assert [o.id for o in engine.opportunities] == ["a"]
        assert engine.scan_count == 2

    @pytest.mark.asyncio
    async def test_source_error_keeps_list(self, make_engine: EngineFactory) -> None:
        engine = make_engine(
            StaticOpportunitySource([[make_opportunity("a")], RuntimeError("rpc down")])
        )

        await engine.scan_once()
        assert await engine.scan_once() is False
        assert len(engine.opportunities) == 1

    @pytest.mark.asyncio
    async def test_events_published(self, make_engine: EngineFactory) -> None:
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a")], None]))
        events = record_events(engine)

        await engine.scan_once()
        await engine.scan_once()

        types = [e.type for e in events]
        assert types == [
            EventType.OPPORTUNITIES_UPDATED,
            EventType.SCAN_COMPLETED,
            EventType.SCAN_COMPLETED,
        ]
        assert events[0].payload[0]["id"] == "a"
        assert events[2].payload["scan_count"] == 2

    @pytest.mark.asyncio
    async def test_new_batch_clears_checks(self, make_engine: EngineFactory) -> None:
        """Mock ids repeat between batches, so old estimates must not leak."""
        engine = make_engine(
            StaticOpportunitySource([[make_opportunity("arb-1", 1000.0)], [make_opportunity("arb-1", 10.0)]])
        )
        await engine.scan_once()
        await engine.check_profitability("arb-1")

        await engine.scan_once()

        assert engine.executor.last_check("arb-1") is None


class TestLifecycle:
    """Tests for start / stop."""

    @pytest.mark.asyncio
    async def test_start_runs_initial_scan(self, make_engine: EngineFactory) -> None:
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a")]]))

        assert await engine.start() is True
        assert await engine.start() is False
        await asyncio.sleep(0.05)

        assert engine.is_scanning is True
        assert engine.scan_count >= 1
        assert len(engine.opportunities) == 1

        assert await engine.stop() is True
        assert await engine.stop() is False
        assert engine.is_scanning is False
        assert len(engine.opportunities) == 1

    @pytest.mark.asyncio
    async def test_loop_keeps_scanning(self, make_engine: EngineFactory) -> None:
        source = StaticOpportunitySource([])
        engine = make_engine(source)

        await engine.start()
        await asyncio.sleep(0.35)
        await engine.stop()

        assert source.scans >= 3

    @pytest.mark.asyncio
    async def test_stop_pauses_gas_polling(
        self,
        settings: Settings,
        make_executor: Callable[..., ArbitrageExecutor],
    ) -> None:
        web3 = FakeWeb3()
        monitor = GasPriceMonitor(web3, refresh_interval=0.01)  # type: ignore[arg-type]
        engine = ScanEngine(
            settings=settings,
            components=ScanComponents(source=StaticOpportunitySource([]), gas_monitor=monitor),
            executor=make_executor(),
        )

        await engine.start()
        await asyncio.sleep(0.05)
        await engine.stop()
        calls = web3.eth.gas_price_calls
        await asyncio.sleep(0.05)

        assert calls >= 1
        assert monitor.is_running is False
        assert web3.eth.gas_price_calls == calls

        await engine.start()
        await asyncio.sleep(0.05)
        assert monitor.is_running is True
        await engine.close()

    @pytest.mark.asyncio
    async def test_close_releases_oracle(
        self,
        settings: Settings,
        make_executor: Callable[..., ArbitrageExecutor],
    ) -> None:
        oracle = FakeOracle()
        engine = ScanEngine(
            settings=settings,
            components=ScanComponents(source=StaticOpportunitySource([])),
            executor=make_executor(oracle=oracle),
            oracle=oracle,  # type: ignore[arg-type]
        )

        await engine.start()
        await engine.close()

        assert oracle.closed is True
        assert engine.is_scanning is False


class TestOpportunityActions:
    """Tests for profitability checks and execution through the engine."""

    @pytest.mark.asyncio
    async def test_unknown_opportunity(self, make_engine: EngineFactory) -> None:
        engine = make_engine()

        with pytest.raises(OpportunityNotFoundError):
            engine.get_opportunity("missing")
        with pytest.raises(OpportunityNotFoundError):
            await engine.check_profitability("missing")

    @pytest.mark.asyncio
    async def test_check_uses_gas_settings(self, make_engine: EngineFactory) -> None:
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a", 1000.0)]]))
        await engine.scan_once()
        await engine.update_gas_settings(GasSettingsUpdate(auto_adjust=False, max_gas_price=60))

        result = await engine.check_profitability("a")

        # 500k gas * 60 gwei = 0.03 ETH = $54
        assert result.gas_cost == pytest.approx(54.0)
        assert engine.metrics.trading_stats.opportunities_profitable == 1

    @pytest.mark.asyncio
    async def test_execute_records_metrics(self, make_engine: EngineFactory) -> None:
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a", 1000.0)]]))
        events = record_events(engine)
        await engine.scan_once()

        result = await engine.execute("a")

        assert result.is_success
        assert engine.metrics.trading_stats.executed_trades == 1
        assert engine.metrics.trading_stats.total_profit == pytest.approx(972.1)
        types = [e.type for e in events]
        assert EventType.PROFITABILITY_CHECKED in types
        assert types.index(EventType.EXECUTION_STARTED) < types.index(EventType.EXECUTION_COMPLETE)

    @pytest.mark.asyncio
    async def test_refusal_completes_execution(self, make_engine: EngineFactory) -> None:
        """A started execution that is refused still gets a terminal event."""
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a", 10.0)]]))
        events = record_events(engine)
        await engine.scan_once()

        with pytest.raises(ExecutionError, match="not profitable"):
            await engine.execute("a")

        types = [e.type for e in events]
        assert types[-2:] == [EventType.EXECUTION_STARTED, EventType.EXECUTION_COMPLETE]
        payload = events[-1].payload
        assert payload["opportunity_id"] == "a"
        assert payload["status"] == "failed"
        assert "not profitable" in payload["error_message"]
        assert payload["profitability"]["profitable"] is False
        assert engine.metrics.trading_stats.executed_trades == 0


class TestAutoExecute:
    """Tests for auto-execution of the best opportunity."""

    @pytest.mark.asyncio
    async def test_executes_above_threshold(self, make_engine: EngineFactory) -> None:
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a", 150.0)]]))
        await engine.update_execution_settings(ExecutionSettingsUpdate(auto_execute=True))

        await engine.scan_once()
        await asyncio.sleep(0.05)

        assert engine.executor.stats["successful"] == 1

    @pytest.mark.asyncio
    async def test_skips_at_or_below_threshold(self, make_engine: EngineFactory) -> None:
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a", 100.0)]]))
        await engine.update_execution_settings(ExecutionSettingsUpdate(auto_execute=True))

        await engine.scan_once()
        await asyncio.sleep(0.05)

        assert engine.executor.stats["total"] == 0

    @pytest.mark.asyncio
    async def test_off_by_default(self, make_engine: EngineFactory) -> None:
        engine = make_engine(StaticOpportunitySource([[make_opportunity("a", 450.0)]]))

        await engine.scan_once()
        await asyncio.sleep(0.05)

        assert engine.executor.stats["total"] == 0

    @pytest.mark.asyncio
    async def test_unprofitable_best_is_skipped(self, make_engine: EngineFactory) -> None:
        """Gas above the gross profit means the refusal is logged, not raised."""
        engine = make_engine(
            StaticOpportunitySource([[make_opportunity("a", 120.0)]]),
            oracle=FakeOracle(5000.0),
        )
        await engine.update_execution_settings(ExecutionSettingsUpdate(auto_execute=True))
        await engine.update_gas_settings(GasSettingsUpdate(auto_adjust=False, max_gas_price=100))

        await engine.scan_once()
        await asyncio.sleep(0.05)

        # 500k gas * 100 gwei * $5000 = $250
        assert engine.executor.last_check("a") is not None
        assert engine.executor.last_check("a").profitable is False
        assert engine.executor.stats["total"] == 0


class TestSettingsAndChains:
    """Tests for runtime settings and chain selection."""

    @pytest.mark.asyncio
    async def test_partial_update(self, make_engine: EngineFactory) -> None:
        engine = make_engine()
        events = record_events(engine)

        updated = await engine.update_execution_settings(
            ExecutionSettingsUpdate(min_profit_threshold=200.0)
        )

        assert updated.min_profit_threshold == 200.0
        assert updated.max_slippage == 1.0
        assert events[-1].type == EventType.SETTINGS_CHANGED

    @pytest.mark.asyncio
    async def test_select_chain(self, make_engine: EngineFactory) -> None:
        engine = make_engine()

        await engine.select_chain("Polygon")

        assert engine.chain == "polygon"
        assert engine.status()["chain_id"] == 137

    @pytest.mark.asyncio
    async def test_select_unknown_chain(self, make_engine: EngineFactory) -> None:
        engine = make_engine()

        with pytest.raises(ValueError):
            await engine.select_chain("solana")

    @pytest.mark.asyncio
    async def test_reconnect_rebuilds_components(self, make_engine: EngineFactory) -> None:
        built: list[str] = []

        def factory(chain: str) -> ScanComponents:
            built.append(chain)
            return ScanComponents(source=StaticOpportunitySource([]))

        engine = make_engine(
            StaticOpportunitySource([[make_opportunity("a")]]),
            component_factory=factory,
        )
        await engine.scan_once()
        await engine.start()

        await engine.select_chain("arbitrum")

        assert built == ["arbitrum"]
        assert engine.is_scanning is True
        assert engine.executor.network.chain_id == 42161
        await engine.close()

    @pytest.mark.asyncio
    async def test_reconnect_publishes_cleared_list(self, make_engine: EngineFactory) -> None:
        engine = make_engine(
            StaticOpportunitySource([[make_opportunity("a")]]),
            component_factory=lambda chain: ScanComponents(source=StaticOpportunitySource([])),
        )
        await engine.scan_once()
        events = record_events(engine)

        await engine.select_chain("polygon")

        assert engine.opportunities == []
        cleared = [e for e in events if e.type == EventType.OPPORTUNITIES_UPDATED]
        assert len(cleared) == 1
        assert cleared[0].payload == []
        assert events[-1].type == EventType.STATUS_CHANGED


class TestConstruction:
    """Tests for building engines from settings."""

    def test_simulation_uses_mock_source(self, settings: Settings) -> None:
        components = build_scan_components(settings, "ethereum")

        assert isinstance(components.source, MockOpportunitySource)
        assert components.gas_monitor is None
        assert components.is_live is False

    def test_live_without_key_falls_back(self, settings: Settings) -> None:
        live = settings.model_copy(update={"simulation": False})

        components = build_scan_components(live, "ethereum")

        assert isinstance(components.source, MockOpportunitySource)
        assert components.provider_error == "Infura API key not found"

    def test_live_with_stored_key(self, settings: Settings) -> None:
        live = settings.model_copy(update={"simulation": False})
        store = ProviderConfigStore(settings.provider_store_path)
        store.save(NodeProvider.INFURA, "key-1")

        components = build_scan_components(live, "ethereum", store)

        assert isinstance(components.source, DexScanner)
        assert components.gas_monitor is not None
        assert components.is_live is True

    @pytest.mark.asyncio
    async def test_build_engine(self, settings: Settings) -> None:
        engine = build_engine(settings)

        status = engine.status()
        assert status["chain"] == "ethereum"
        assert status["live_quotes"] is False
        assert status["simulated_execution"] is True
        assert status["gas_price_gwei"] == 30.0
        await engine.close()
