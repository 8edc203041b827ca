from __future__ import annotations

import time
import uuid
from typing import Callable, List, Optional

from smatrader.core.config import TradingConfig
from smatrader.core.errors import VolumeExceeded
from smatrader.core.logging import get_trade_logger
from smatrader.core.types import Side, Trade


def _now_ms() -> int:
    return int(time.time() * 1000)


class TradeLedger:
    """Simulated fills recorded against a running notional budget."""

    def __init__(
        self,
        config: Optional[TradingConfig] = None,
        fee_rate: float = 0.0001,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.config = config or TradingConfig()
        self.fee_rate = fee_rate
        self.clock = clock
        self._trades: List[Trade] = []

    def _fee(self, notional: float) -> float:
        return abs(notional) * self.fee_rate

    def execute(
        self,
        symbol: str,
        side: Side,
        quantity: float,
        price: float,
        strategy: Optional[str] = None,
    ) -> Trade:
        if side not in ("BUY", "SELL"):
            raise ValueError(f"side must be BUY or SELL, got {side!r}")
        if quantity <= 0 or price <= 0:
            raise ValueError("quantity and price must be positive")

        value = quantity * price
        if self.config.current_volume + value > self.config.max_volume:
            raise VolumeExceeded(value, self.config.current_volume, self.config.max_volume)

        ts = self.clock()
        trade = Trade(
            id=f"trade_{ts}_{uuid.uuid4().hex[:9]}",
            symbol=symbol,
            side=side,
            quantity=quantity,
            price=price,
            timestamp=ts,
            status="FILLED",
            value=value,
            fees=self._fee(value),
            strategy=strategy,
        )
        self._trades.append(trade)
        self.config.current_volume += value
        trade_log = get_trade_logger(trade.id)
        trade_log.info(f"Ledger: {side} {quantity:g} {symbol} @ {price} | value {value:,.2f} | fees {trade.fees:,.2f}")

        if self.config.current_volume >= self.config.max_volume and self.config.auto_trading_enabled:
            self.config.auto_trading_enabled = False
            trade_log.warning(f"Ledger: volume limit {self.config.max_volume:,.2f} reached, auto trading stopped")
        return trade

    def get_trades(self) -> List[Trade]:
        """Trades newest first; equal timestamps keep the latest insert first."""
        return sorted(reversed(self._trades), key=lambda t: t.timestamp, reverse=True)

    def __len__(self) -> int:
        return len(self._trades)

    def reset(self) -> None:
        self._trades.clear()
        self.config.current_volume = 0.0
        self.config.auto_trading_enabled = True
