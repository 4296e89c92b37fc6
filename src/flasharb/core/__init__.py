"""Core module containing the scan engine, event bus, errors and type definitions."""

from flasharb.core.errors import (
    ExecutionError,
    FlashArbError,
    OpportunityNotFoundError,
    ProfitabilityCheckError,
    ProviderError,
)
from flasharb.core.event_bus import Event, EventBus, EventType
from flasharb.core.types import (
    ArbitrageOpportunity,
    ExecutionResult,
    ExecutionStatus,
    ProfitabilityResult,
    TokenAddresses,
    TokenPair,
    TokenPrice,
)


__all__ = [
    "ArbitrageOpportunity",
    "Event",
    "EventBus",
    "EventType",
    "ExecutionError",
    "ExecutionResult",
    "ExecutionStatus",
    "FlashArbError",
    "OpportunityNotFoundError",
    "ProfitabilityCheckError",
    "ProfitabilityResult",
    "ProviderError",
    "TokenAddresses",
    "TokenPair",
    "TokenPrice",
]
