from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional


Side = Literal["BUY", "SELL"]
Signal = Literal["BUY", "SELL", "HOLD"]
TradeStatus = Literal["PENDING", "FILLED", "CANCELLED", "REJECTED"]


@dataclass(frozen=True)
class PricePoint:
    symbol: str
    price: float
    timestamp: int  # epoch ms, arrival order only


@dataclass(frozen=True)
class MovingAverageSample:
    timestamp: int  # epoch ms, synthesized at a one-minute cadence
    price: float
    sma_short: float
    sma_long: float
    signal: Signal = "HOLD"


@dataclass(frozen=True)
class Trade:
    id: str
    symbol: str
    side: Side
    quantity: float
    price: float
    timestamp: int  # epoch ms
    status: TradeStatus
    value: float
    fees: float
    strategy: Optional[str] = None
