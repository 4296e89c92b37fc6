"""
CLI reporter for the headless scanner.

Prints each new batch of opportunities and every execution result as
they are published on the event bus.
"""

import sys
from datetime import timedelta
from typing import Any, TextIO

from flasharb.core.event_bus import Event, EventBus, EventType
from flasharb.telemetry.metrics import MetricsCollector
from flasharb.utils.formatters import format_currency, format_percentage, shorten_address
from flasharb.utils.time import format_age


class CLIReporter:
    """
    Plain-text opportunity feed.

    Displays:
    - Top opportunities of each new batch
    - Execution outcomes
    - A summary panel on shutdown
    """

    BOX_H = "═"
    THIN_H = "─"

    def __init__(
        self,
        metrics: MetricsCollector,
        width: int = 72,
        max_rows: int = 8,
        output: TextIO | None = None,
    ) -> None:
        """
        Initialize CLI reporter.

        Args:
            metrics: Metrics collector instance.
            width: Line width in characters.
            max_rows: Opportunities shown per batch.
            output: Output stream (default: stdout).
        """
        self._metrics = metrics
        self._width = width
        self._max_rows = max_rows
        self._output = output or sys.stdout

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to the events this reporter prints."""
        event_bus.subscribe(EventType.OPPORTUNITIES_UPDATED, self._on_opportunities)
        event_bus.subscribe(EventType.EXECUTION_COMPLETE, self._on_execution)

    def _write(self, line: str = "") -> None:
        self._output.write(line + "\n")
        self._output.flush()

    def format_opportunity(self, row: dict[str, Any]) -> str:
        """One table line for an opportunity payload."""
        route = f"{row['source_dex']} -> {row['target_dex']}"
        return (
            f"  {row['token_pair']:<10} {route:<28} "
            f"{format_percentage(row['price_gap']):>7} "
            f"{format_currency(row['potential_profit']):>10}  "
            f"{format_age(row['timestamp'])}"
        )

    async def _on_opportunities(self, event: Event) -> None:
        rows: list[dict[str, Any]] = event.payload

        self._write(self.THIN_H * self._width)
        self._write(f"  {len(rows)} opportunities (scan #{self._metrics.get_counter('scans')})")
        for row in rows[: self._max_rows]:
            self._write(self.format_opportunity(row))

    async def _on_execution(self, event: Event) -> None:
        result: dict[str, Any] = event.payload
        label = "SIMULATED" if result["simulated"] else "LIVE"

        if result["status"] == "completed":
            profit = result["profitability"]["net_profit"] if result["profitability"] else 0.0
            self._write(
                f"  [{label}] {result['opportunity_id']} completed "
                f"{format_currency(profit)} tx={shorten_address(result['tx_hash'])}"
            )
        else:
            self._write(f"  [{label}] {result['opportunity_id']} failed: {result['error_message']}")

    def print_summary(self) -> None:
        """Print final statistics."""
        stats = self._metrics.to_dict()
        uptime = str(timedelta(seconds=int(self._metrics.uptime_seconds)))

        self._write(self.BOX_H * self._width)
        self._write("  SESSION SUMMARY")
        self._write(self.BOX_H * self._width)
        self._write(f"  Uptime:              {uptime}")
        self._write(f"  Scans:               {stats['scans']}")
        self._write(f"  Scan frequency:      {stats['scan_frequency']:.1f}/min")
        self._write(f"  Opportunities found: {stats['opportunities_found']}")
        self._write(f"  Executed trades:     {stats['executed_trades']}")
        self._write(f"  Total profit:        {format_currency(stats['total_profit'])}")
        self._write(f"  Average profit:      {format_currency(stats['average_profit'])}")
        self._write(self.BOX_H * self._width)
