from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from smatrader.core.config import TradingConfig
from smatrader.core.types import Trade
from smatrader.monitor.records import TradeSummary


console = Console()


def _fmt_time(ts_ms: int) -> str:
    try:
        return datetime.fromtimestamp(ts_ms / 1000.0).strftime("%H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return "-"


def volume_used_pct(cfg: TradingConfig) -> float:
    return cfg.current_volume / cfg.max_volume * 100.0


def render_status(cfg: TradingConfig, out: Optional[Console] = None) -> None:
    out = out or console
    table = Table(title="Trading Status")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    state = "[green]Active[/green]" if cfg.auto_trading_enabled else "[red]Stopped[/red]"
    table.add_row("Auto Trading", state)
    table.add_row("Volume Used", f"{volume_used_pct(cfg):.1f}%")
    table.add_row("Current Volume", f"${cfg.current_volume:,.2f}")
    table.add_row("Remaining Volume", f"${cfg.max_volume - cfg.current_volume:,.2f}")
    table.add_row("SMA Periods", f"{cfg.sma_short_period}/{cfg.sma_long_period}")
    out.print(table)


def render_trades(trades: List[Trade], limit: int = 20, out: Optional[Console] = None) -> None:
    out = out or console
    if not trades:
        out.print(Panel("No trades executed", title="Trade Blotter"))
        return
    table = Table(title="Trade Blotter")
    table.add_column("Time")
    table.add_column("Symbol")
    table.add_column("Type")
    table.add_column("Quantity", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Fees", justify="right")
    table.add_column("Strategy")
    for t in trades[:limit]:
        color = "green" if t.side == "BUY" else "red"
        table.add_row(
            _fmt_time(t.timestamp),
            t.symbol,
            f"[{color}]{t.side}[/{color}]",
            f"{t.quantity:,.0f}",
            f"{t.price:.4f}",
            f"${t.value:,.2f}",
            f"${t.fees:,.2f}",
            t.strategy or "-",
        )
    out.print(table)


def render_summary(summary: TradeSummary, out: Optional[Console] = None) -> None:
    out = out or console
    table = Table(title="Trading Records")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Trades", str(summary.count))
    table.add_row("Buys", f"{summary.buy_count} (${summary.total_buy_value:,.2f})")
    table.add_row("Sells", f"{summary.sell_count} (${summary.total_sell_value:,.2f})")
    table.add_row("Total Fees", f"${summary.total_fees:,.2f}")
    out.print(table)
