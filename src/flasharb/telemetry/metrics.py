"""
Metrics collection for the dashboard stats view.

Tracks scan cadence, opportunity counts and execution results in
memory for the lifetime of the process.
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Any

from flasharb.config.constants import SCAN_INTERVAL_WINDOW
from flasharb.core.types import ExecutionResult


@dataclass
class TradingStats:
    """Trading performance statistics."""

    opportunities_found: int = 0
    opportunities_profitable: int = 0
    executions_successful: int = 0
    executions_failed: int = 0
    total_profit: float = 0.0
    best_profit: float = 0.0

    @property
    def executed_trades(self) -> int:
        return self.executions_successful

    @property
    def average_profit(self) -> float:
        """Average estimated net profit per completed trade."""
        if self.executions_successful == 0:
            return 0.0
        return self.total_profit / self.executions_successful

    @property
    def execution_success_rate(self) -> float:
        total = self.executions_successful + self.executions_failed
        return self.executions_successful / total if total > 0 else 0.0


class MetricsCollector:
    """
    Collects scanner and execution metrics.

    Features:
    - Rolling window of scan intervals
    - Counters for scans and batches
    - Profit accumulation from completed executions
    """

    def __init__(self, interval_window: int = SCAN_INTERVAL_WINDOW) -> None:
        """
        Initialize metrics collector.

        Args:
            interval_window: Number of scan intervals kept for the frequency stat.
        """
        self._intervals: deque[float] = deque(maxlen=interval_window)
        self._last_scan: float | None = None
        self._counters: dict[str, int] = {}
        self._trading_stats = TradingStats()
        self._start_time = time.time()

    def increment_counter(self, name: str, value: int = 1) -> None:
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def record_scan(self, at: float | None = None) -> None:
        """
        Record a completed scan cycle.

        Args:
            at: Monotonic time of the scan (default: now).
        """
        now = at if at is not None else time.monotonic()
        if self._last_scan is not None:
            self._intervals.append(now - self._last_scan)
        self._last_scan = now
        self.increment_counter("scans")

    def record_opportunities(self, count: int, best_profit: float = 0.0) -> None:
        """Record a new batch of opportunities."""
        self._trading_stats.opportunities_found += count
        self._trading_stats.best_profit = max(self._trading_stats.best_profit, best_profit)
        self.increment_counter("batches")

    def record_profitability(self, profitable: bool) -> None:
        self.increment_counter("profitability_checks")
        if profitable:
            self._trading_stats.opportunities_profitable += 1

    def record_execution(self, result: ExecutionResult) -> None:
        """
        Record an execution result.

        Args:
            result: Finished execution; completed ones add their profit.
        """
        if result.is_success:
            self._trading_stats.executions_successful += 1
            self._trading_stats.total_profit += result.realized_profit
        else:
            self._trading_stats.executions_failed += 1

    @property
    def scan_frequency(self) -> float:
        """Scans per minute over the recent window."""
        if not self._intervals:
            return 0.0
        avg = sum(self._intervals) / len(self._intervals)
        return 60.0 / avg if avg > 0 else 0.0

    @property
    def trading_stats(self) -> TradingStats:
        return self._trading_stats

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, Any]:
        """Snapshot for the stats endpoint."""
        stats = self._trading_stats
        return {
            "total_profit": round(stats.total_profit, 2),
            "executed_trades": stats.executed_trades,
            "failed_trades": stats.executions_failed,
            "average_profit": round(stats.average_profit, 2),
            "success_rate": round(stats.execution_success_rate, 4),
            "opportunities_found": stats.opportunities_found,
            "opportunities_profitable": stats.opportunities_profitable,
            "best_profit": stats.best_profit,
            "scans": self.get_counter("scans"),
            "scan_frequency": round(self.scan_frequency, 2),
            "uptime_seconds": round(self.uptime_seconds, 1),
        }
