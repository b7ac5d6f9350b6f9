"""
CLI reporter for real-time status display.

Provides a terminal panel showing prices, gas, the best opportunity
per bucket and simulated trading results.
"""

import asyncio
import sys
from datetime import timedelta
from typing import Any, TextIO

from mev_dashboard import __version__
from mev_dashboard.core.event_bus import Event, EventBus, EventType, Subscription
from mev_dashboard.core.types import (
    GasStatus,
    OpportunityKind,
    OpportunitySnapshot,
    PriceSnapshot,
    TradeOutcome,
)
from mev_dashboard.telemetry.metrics import LATENCY_TICK, MetricsCollector
from mev_dashboard.utils.math import format_profit


NO_OPPORTUNITIES = "No opportunities found"


class CLIReporter:
    """
    Real-time CLI dashboard for monitoring.

    Displays a formatted status panel with:
    - Uptime, tick latency and gas
    - Token prices
    - Best opportunity per bucket
    - Simulated P&L
    """

    # Box drawing characters
    BOX_TL = "\u2554"  # ╔
    BOX_TR = "\u2557"  # ╗
    BOX_BL = "\u255a"  # ╚
    BOX_BR = "\u255d"  # ╝
    BOX_H = "\u2550"  # ═
    BOX_V = "\u2551"  # ║
    BOX_LT = "\u2560"  # ╠
    BOX_RT = "\u2563"  # ╣
    THIN_V = "\u2502"  # │

    def __init__(
        self,
        metrics: MetricsCollector,
        width: int = 72,
        output: TextIO | None = None,
        auto_execute: bool = False,
        max_prices: int = 6,
    ) -> None:
        """
        Initialize CLI reporter.

        Args:
            metrics: Metrics collector instance.
            width: Dashboard width in characters.
            output: Output stream (default: stdout).
            auto_execute: Whether auto-execution is on (header only).
            max_prices: Number of token prices shown.
        """
        self._metrics = metrics
        self._width = width
        self._output = output or sys.stdout
        self._auto_execute = auto_execute
        self._max_prices = max_prices
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._subscriptions: list[Subscription] = []

        # Latest state seen on the bus
        self._prices: PriceSnapshot | None = None
        self._gas: GasStatus | None = None
        self._opportunities = OpportunitySnapshot()
        self._last_trade: TradeOutcome | None = None

    # =========================================================================
    # Event Wiring
    # =========================================================================

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to the events the panel displays."""
        if self._subscriptions:
            return
        self._subscriptions = [
            event_bus.subscribe_sync(EventType.PRICES_UPDATED, self._on_event),
            event_bus.subscribe_sync(EventType.GAS_UPDATED, self._on_event),
            event_bus.subscribe_sync(EventType.OPPORTUNITIES_UPDATED, self._on_event),
            event_bus.subscribe_sync(EventType.TRADE_EXECUTED, self._on_event),
            event_bus.subscribe_sync(EventType.SETTINGS_CHANGED, self._on_event),
        ]

    def detach(self) -> None:
        """Cancel every subscription."""
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []

    def _on_event(self, event: Event[Any]) -> None:
        payload = event.payload
        if event.type is EventType.PRICES_UPDATED:
            self._prices = payload
        elif event.type is EventType.GAS_UPDATED:
            self._gas = payload
        elif event.type is EventType.OPPORTUNITIES_UPDATED:
            self._opportunities = payload
        elif event.type is EventType.TRADE_EXECUTED:
            self._last_trade = payload
        elif event.type is EventType.SETTINGS_CHANGED:
            self._auto_execute = bool(getattr(payload, "auto_execute", self._auto_execute))

    # =========================================================================
    # Rendering
    # =========================================================================

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        hours, remainder = divmod(int(timedelta(seconds=int(seconds)).total_seconds()), 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def _format_price(self, price: float) -> str:
        """Format a price with precision suited to its magnitude."""
        if price >= 1000:
            return f"{price:,.2f}"
        if price >= 1:
            return f"{price:.4f}"
        return f"{price:.8f}"

    def _pad(self, text: str, width: int) -> str:
        """Pad text to width."""
        return text.ljust(width)[:width]

    def _line(self, content: str) -> str:
        """Create a line with borders."""
        return f"{self.BOX_V}{self._pad(content, self._width - 2)}{self.BOX_V}"

    def _divider(self) -> str:
        """Create a horizontal divider."""
        return f"{self.BOX_LT}{self.BOX_H * (self._width - 2)}{self.BOX_RT}"

    def _price_lines(self) -> list[str]:
        if self._prices is None:
            return [self._line("  Waiting for prices...")]

        cells = [
            f"{symbol:<6}{self._format_price(quote.price):>14} {quote.change_24h:+6.2f}%"
            for symbol, quote in list(self._prices.quotes.items())[: self._max_prices]
        ]
        rows = []
        for i in range(0, len(cells), 2):
            rows.append(self._line(f"  {f' {self.THIN_V} '.join(cells[i:i + 2])}"))
        return rows

    def _opportunity_lines(self) -> list[str]:
        snapshot = self._opportunities
        if snapshot.is_empty:
            return [self._line(f"  {NO_OPPORTUNITIES}")]

        lines = []
        for kind in OpportunityKind:
            bucket = snapshot.bucket(kind)
            if not bucket:
                lines.append(self._line(f"  {kind.value.upper():<11}{NO_OPPORTUNITIES}"))
                continue
            best = bucket[0]
            text = f"  {kind.value.upper():<11}{format_profit(best.profit_pct):>10}  {best.label}"
            lines.append(self._line(text))
        return lines

    def render(self) -> str:
        """
        Render the dashboard.

        Returns:
            Formatted dashboard string.
        """
        stats = self._metrics.stats
        tick_latency = self._metrics.get_latency_stats(LATENCY_TICK)
        uptime = self._format_uptime(self._metrics.uptime_seconds)
        auto_text = "AUTO: ON " if self._auto_execute else "AUTO: OFF"

        lines = [f"{self.BOX_TL}{self.BOX_H * (self._width - 2)}{self.BOX_TR}"]
        lines.append(self._line(f"  SOLANA MEV DASHBOARD v{__version__} | SIMULATION | {auto_text}"))
        lines.append(self._divider())

        tick_avg = f"{tick_latency.avg_us / 1000:.1f}ms" if tick_latency.count > 0 else "---"
        gas_text = (
            f"{self._gas.price:.1f} ({self._gas.congestion.value})" if self._gas is not None else "---"
        )
        lines.append(
            self._line(f"  Uptime: {uptime}  |  Ticks: {stats.ticks}  |  Tick: {tick_avg}  |  Gas: {gas_text}")
        )
        lines.append(self._divider())

        lines.append(self._line("  PRICES (USD)"))
        lines.extend(self._price_lines())
        lines.append(self._divider())

        lines.append(self._line("  BEST OPPORTUNITIES"))
        lines.extend(self._opportunity_lines())
        lines.append(self._divider())

        lines.append(
            self._line(
                f"  Trades: {stats.executions}  |  Success: {stats.execution_success_rate:.1%}  |  "
                f"P&L: {stats.total_pnl:+.4f} USD  |  ROI: {stats.roi_pct:+.2f}%"
            )
        )
        if self._last_trade is not None:
            trade = self._last_trade
            lines.append(
                self._line(
                    f"  Last: {trade.status.value} {trade.opportunity.label} {trade.realized_pnl:+.4f}"
                )
            )

        lines.append(f"{self.BOX_BL}{self.BOX_H * (self._width - 2)}{self.BOX_BR}")
        return "\n".join(lines)

    def display(self) -> None:
        """Display the dashboard once."""
        # Clear screen and move cursor to top
        self._output.write("\033[2J\033[H")
        self._output.write(self.render())
        self._output.write("\n")
        self._output.flush()

    async def run(self, interval: float = 1.0) -> None:
        """
        Run continuous display updates.

        Args:
            interval: Update interval in seconds.
        """
        self._running = True

        while self._running:
            self.display()
            await asyncio.sleep(interval)

    def start(self, interval: float = 1.0) -> asyncio.Task[None]:
        """Start the reporter as a background task."""
        self._task = asyncio.create_task(self.run(interval))
        return self._task

    def stop(self) -> None:
        """Stop the reporter."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None

    def print_summary(self) -> None:
        """Print a final session summary."""
        stats = self._metrics.stats
        out = self._output

        print("\n" + "=" * 50, file=out)
        print("  SESSION SUMMARY", file=out)
        print("=" * 50, file=out)
        print(f"  Uptime: {self._format_uptime(self._metrics.uptime_seconds)}", file=out)
        print(f"  Feed ticks: {stats.ticks:,}", file=out)
        print(file=out)
        print("  OPPORTUNITIES:", file=out)
        for kind, count in stats.opportunities_by_kind.items():
            print(f"    {kind.capitalize():<11} {count:,}", file=out)
        print(f"    Best profit: {format_profit(stats.best_profit_pct)}", file=out)
        print(file=out)
        print("  SIMULATED TRADES:", file=out)
        for status, count in stats.executions_by_status.items():
            if count:
                print(f"    {status:<18} {count:,}", file=out)
        print(f"    Success rate: {stats.execution_success_rate:.1%}", file=out)
        print(f"    P&L:          {stats.total_pnl:+.4f} USD", file=out)
        print(f"    ROI:          {stats.roi_pct:+.2f}%", file=out)
        print("=" * 50, file=out)
