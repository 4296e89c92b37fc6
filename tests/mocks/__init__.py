"""Mock implementations for testing."""

from tests.mocks.chain import (
    FakeGasSource,
    FakeOracle,
    FakeSubmitter,
    FakeWeb3,
    StaticOpportunitySource,
)
from tests.mocks.opportunities import RECEIVER, USDC, WETH, make_opportunity


__all__ = [
    "FakeGasSource",
    "FakeOracle",
    "FakeSubmitter",
    "FakeWeb3",
    "RECEIVER",
    "StaticOpportunitySource",
    "USDC",
    "WETH",
    "make_opportunity",
]
