"""Console rendering of quotes and forecasts using Rich."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stock_forecast.core.models import PredictionResult, StockQuote, Trend
from stock_forecast.data.markets import currency_symbol
from stock_forecast.forecast.path import ProjectedPoint


class ForecastLogger:
    _LEVEL_STYLES = {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red",
    }
    _TREND_STYLES = {
        Trend.BULLISH: "green",
        Trend.BEARISH: "red",
        Trend.NEUTRAL: "yellow",
    }

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def log_event(
        self,
        message: str,
        *,
        level: str = "info",
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """Render a short status message (optionally with structured details)."""
        style = self._LEVEL_STYLES.get(level, "white")
        if details:
            table = Table.grid(expand=True)
            table.add_column(justify="right", style="bold")
            table.add_column(ratio=1)
            for key, value in details.items():
                table.add_row(str(key), str(value))
            panel = Panel(table, title=f"[bold]{message}", border_style=style)
            self._console.print(panel)
            return
        self._console.print(f"[bold {style}]{message}[/bold {style}]")

    def info(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        self.log_event(message, level="info", details=details)

    def warning(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        self.log_event(message, level="warning", details=details)

    def log_quotes(self, quotes: Sequence[StockQuote]) -> None:
        table = Table(title="Quotes", show_lines=False)
        for column in ("Symbol", "Market", "Price", "Change", "Change %"):
            table.add_column(column)
        for quote in quotes:
            style = "green" if quote.change >= 0 else "red"
            sign = "+" if quote.change >= 0 else ""
            table.add_row(
                quote.symbol,
                quote.market.value,
                f"{currency_symbol(quote.currency)}{quote.price:.2f}",
                f"[{style}]{sign}{quote.change:.2f}[/{style}]",
                f"[{style}]{sign}{quote.change_percent:.2f}%[/{style}]",
            )
        self._console.print(table)

    def log_prediction(
        self,
        quote: StockQuote,
        result: PredictionResult,
        horizon_minutes: float,
        path: Sequence[ProjectedPoint] = (),
    ) -> None:
        symbol = currency_symbol(quote.currency)
        style = self._TREND_STYLES[result.trend]
        table = Table(title=f"Forecast {quote.symbol} ({horizon_minutes:g} min)", show_lines=True)
        table.add_column("Field")
        table.add_column("Value")
        table.add_row("Current", f"{symbol}{quote.price:.2f}")
        table.add_row("Predicted", f"{symbol}{result.predicted_price:.2f}")
        table.add_row("Change", f"{result.change_percent(quote.price):+.2f}%")
        table.add_row("Trend", f"[{style}]{result.trend.value}[/{style}]")
        table.add_row("Confidence", f"{result.confidence * 100:.0f}%")
        table.add_row("Score", f"{result.sentiment_score:.3f}")
        table.add_row("Signals", "\n".join(result.signals) or "-")
        if path:
            table.add_row("Path", " → ".join(f"{p.price:.2f}" for p in path))
        self._console.print(table)
