"""Telemetry module for logging, metrics and CLI reporting."""

from flasharb.telemetry.logger import QueueLogging, setup_logging
from flasharb.telemetry.metrics import MetricsCollector, TradingStats
from flasharb.telemetry.reporter import CLIReporter


__all__ = [
    "CLIReporter",
    "MetricsCollector",
    "QueueLogging",
    "TradingStats",
    "setup_logging",
]
