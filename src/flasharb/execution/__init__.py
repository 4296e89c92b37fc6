"""Execution module for flash loan arbitrage trades."""

from flasharb.execution.executor import ArbitrageExecutor, ExecutorConfig, encode_route
from flasharb.execution.network import build_network_config


__all__ = [
    "ArbitrageExecutor",
    "ExecutorConfig",
    "build_network_config",
    "encode_route",
]
