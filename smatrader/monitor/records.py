from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd
from loguru import logger as log

from smatrader.core.types import Side, Trade


CSV_COLUMNS = ["Date", "Time", "Symbol", "Type", "Quantity", "Price", "Value", "Fees", "Strategy", "Status"]


@dataclass
class TradeSummary:
    count: int
    buy_count: int
    sell_count: int
    total_buy_value: float
    total_sell_value: float
    total_fees: float


DATE_WINDOWS = ("TODAY", "WEEK", "MONTH", "ALL")
SORT_FIELDS = ("timestamp", "value", "symbol")
_LOOKBACK = {"WEEK": pd.Timedelta(days=7), "MONTH": pd.Timedelta(days=30)}


def filter_trades(
    trades: Iterable[Trade],
    symbol: Optional[str] = None,
    side: Optional[Side] = None,
    window: str = "ALL",
    sort_by: str = "timestamp",
    order: str = "desc",
    now: Optional[datetime] = None,
) -> List[Trade]:
    """Select and order trades the way the records view shows them.

    ``window`` is one of TODAY (same UTC calendar day as ``now``), WEEK (last
    7 days), MONTH (last 30 days) or ALL. Sorting is stable, so trades that
    compare equal keep their input order.
    """
    window = window.upper()
    order = order.lower()
    if window not in DATE_WINDOWS:
        raise ValueError(f"window must be one of {DATE_WINDOWS}, got {window!r}")
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"sort_by must be one of {SORT_FIELDS}, got {sort_by!r}")
    if order not in ("asc", "desc"):
        raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")

    trades = list(trades)
    df = trades_frame(trades)
    if df.empty:
        return []

    mask = pd.Series(True, index=df.index)
    if symbol is not None:
        mask &= df["symbol"] == symbol
    if side is not None:
        mask &= df["side"] == side
    if window != "ALL":
        ts_now = pd.Timestamp(now or datetime.now(timezone.utc))
        ts_now = ts_now.tz_localize("UTC") if ts_now.tzinfo is None else ts_now.tz_convert("UTC")
        if window == "TODAY":
            mask &= df["timestamp"].dt.normalize() == ts_now.normalize()
        else:
            mask &= df["timestamp"] >= ts_now - _LOOKBACK[window]

    selected = df[mask].sort_values(sort_by, ascending=order == "asc", kind="stable")
    return [trades[i] for i in selected.index]


def trades_frame(trades: Iterable[Trade]) -> pd.DataFrame:
    rows = [
        {
            "id": t.id,
            "timestamp": pd.Timestamp(t.timestamp, unit="ms", tz="UTC"),
            "symbol": t.symbol,
            "side": t.side,
            "quantity": float(t.quantity),
            "price": float(t.price),
            "value": float(t.value),
            "fees": float(t.fees),
            "strategy": t.strategy or "",
            "status": t.status,
        }
        for t in trades
    ]
    columns = ["id", "timestamp", "symbol", "side", "quantity", "price", "value", "fees", "strategy", "status"]
    return pd.DataFrame(rows, columns=columns)


def summarize(trades: Iterable[Trade]) -> TradeSummary:
    df = trades_frame(trades)
    if df.empty:
        return TradeSummary(0, 0, 0, 0.0, 0.0, 0.0)
    buys = df[df["side"] == "BUY"]
    sells = df[df["side"] == "SELL"]
    return TradeSummary(
        count=len(df),
        buy_count=len(buys),
        sell_count=len(sells),
        total_buy_value=float(buys["value"].sum()),
        total_sell_value=float(sells["value"].sum()),
        total_fees=float(df["fees"].sum()),
    )


def default_export_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"trading_records_{now:%Y-%m-%d}.csv"


def export_csv(trades: Iterable[Trade], path: str | Path) -> Path:
    """Write trade records as CSV (times in UTC); returns the written path.

    If ``path`` is a directory, the file is named ``trading_records_<date>.csv``.
    """
    out = Path(path)
    if out.is_dir():
        out = out / default_export_name()
    out.parent.mkdir(parents=True, exist_ok=True)

    df = trades_frame(trades)
    if df.empty:
        pd.DataFrame(columns=CSV_COLUMNS).to_csv(out, index=False)
        log.info(f"Records: no trades, wrote header only to {out}")
        return out
    records = pd.DataFrame(
        {
            "Date": df["timestamp"].dt.strftime("%Y-%m-%d"),
            "Time": df["timestamp"].dt.strftime("%H:%M:%S"),
            "Symbol": df["symbol"],
            "Type": df["side"],
            "Quantity": df["quantity"].map(lambda q: f"{q:g}"),
            "Price": df["price"].map(lambda p: f"{p:.4f}"),
            "Value": df["value"].map(lambda v: f"{v:.2f}"),
            "Fees": df["fees"].map(lambda f: f"{f:.2f}"),
            "Strategy": df["strategy"],
            "Status": df["status"],
        },
        columns=CSV_COLUMNS,
    )
    records.to_csv(out, index=False)
    log.info(f"Records: exported {len(records)} trades to {out}")
    return out
