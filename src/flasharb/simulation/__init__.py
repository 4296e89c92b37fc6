"""Simulation module for demo mode without a node provider."""

from flasharb.simulation.mock import (
    MockOpportunitySource,
    generate_mock_opportunities,
    mock_token_pair,
)


__all__ = [
    "MockOpportunitySource",
    "generate_mock_opportunities",
    "mock_token_pair",
]
