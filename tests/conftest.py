"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from flasharb.config.settings import Settings
from flasharb.core.engine import ScanComponents, ScanEngine
from flasharb.core.types import (
    ArbitrageOpportunity,
    OpportunitySource,
    TokenAddresses,
    TokenPair,
    TokenPrice,
)
from flasharb.execution.executor import ArbitrageExecutor, ExecutorConfig
from flasharb.execution.network import build_network_config
from flasharb.strategy.calculator import ProfitabilityCalculator
from tests.mocks.chain import FakeOracle, StaticOpportunitySource
from tests.mocks.opportunities import USDC, WETH, make_opportunity


# =============================================================================
# Opportunity Fixtures
# =============================================================================


@pytest.fixture
def opportunity() -> ArbitrageOpportunity:
    """Profitable ETH/USDC opportunity with token addresses."""
    return make_opportunity(token_addresses=TokenAddresses(WETH, USDC))


@pytest.fixture
def small_opportunity() -> ArbitrageOpportunity:
    """Opportunity too small to cover gas."""
    return make_opportunity(id="arb-2", potential_profit=10.0, price_gap=0.2)


@pytest.fixture
def eth_usdc_pair() -> TokenPair:
    """ETH/USDC quotes on three DEXes."""
    return TokenPair(
        id="ETH/USDC",
        name="ETH/USDC",
        token0=WETH,
        token1=USDC,
        prices=[
            TokenPrice("Uniswap", 1800.0),
            TokenPrice("SushiSwap", 1818.0),
            TokenPrice("PancakeSwap", 1809.0),
        ],
    )


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Simulation settings isolated from the environment."""
    return Settings(
        _env_file=None,
        simulation=True,
        scan_interval_seconds=0.1,
        simulated_execution_delay_seconds=0.0,
        provider_store_path=tmp_path / "providers.json",
    )


@pytest.fixture
def calculator() -> ProfitabilityCalculator:
    """Calculator with default fee rate and gas limit."""
    return ProfitabilityCalculator()


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def make_executor(
    settings: Settings,
    calculator: ProfitabilityCalculator,
) -> Callable[..., ArbitrageExecutor]:
    """Factory for executors wired to fakes."""

    def factory(
        oracle: FakeOracle | None = None,
        simulation: bool = True,
        receiver: str | None = None,
        **kwargs: Any,
    ) -> ArbitrageExecutor:
        network = build_network_config(settings)
        if receiver is not None:
            network.flash_loan_receiver_address = receiver
        return ArbitrageExecutor(
            calculator=calculator,
            oracle=oracle or FakeOracle(),
            network=network,
            config=ExecutorConfig(simulation=simulation, simulated_delay_seconds=0.0),
            **kwargs,
        )

    return factory


@pytest.fixture
def make_engine(
    settings: Settings,
    make_executor: Callable[..., ArbitrageExecutor],
) -> Callable[..., ScanEngine]:
    """Factory for engines over a scripted opportunity source."""

    def factory(
        source: OpportunitySource | None = None,
        oracle: FakeOracle | None = None,
        **kwargs: Any,
    ) -> ScanEngine:
        return ScanEngine(
            settings=settings,
            components=ScanComponents(source=source or StaticOpportunitySource([])),
            executor=make_executor(oracle=oracle),
            **kwargs,
        )

    return factory
