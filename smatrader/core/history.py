from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List


class PriceHistoryStore:
    """Per-symbol bounded price sequences with FIFO eviction."""

    def __init__(self, capacity: int = 200) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self._prices: Dict[str, Deque[float]] = {}

    def append(self, symbol: str, price: float) -> None:
        prices = self._prices.get(symbol)
        if prices is None:
            prices = deque(maxlen=self.capacity)
            self._prices[symbol] = prices
        # maxlen drops the oldest entry as part of the append
        prices.append(float(price))

    def get(self, symbol: str) -> List[float]:
        return list(self._prices.get(symbol, ()))

    def latest(self, symbol: str) -> float | None:
        prices = self._prices.get(symbol)
        return prices[-1] if prices else None

    def symbols(self) -> List[str]:
        return list(self._prices.keys())

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._prices

    def __len__(self) -> int:
        return len(self._prices)

    def clear(self) -> None:
        self._prices.clear()
