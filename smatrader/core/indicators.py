"""Simple moving averages over bounded price histories.

Prices are summed left to right and the mean is rounded half-up to 4
decimals on its exact binary value. Crossover detection compares the rounded
values, so two close averages that round equal are treated as equal.
"""

from __future__ import annotations

import operator
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal
from functools import reduce
from typing import List, Sequence

from smatrader.core.types import MovingAverageSample
from smatrader.strategy.crossover import crossover_signal


SMA_DECIMALS = 4
_SMA_QUANTUM = Decimal(1).scaleb(-SMA_DECIMALS)
DEFAULT_INTERVAL_MS = 60_000


def sma(prices: Sequence[float], period: int) -> float:
    """Mean of the trailing ``period`` prices, or ``0.0`` when there are fewer."""
    if period <= 0:
        raise ValueError("period must be > 0")
    if len(prices) < period:
        return 0.0
    window = prices[len(prices) - period:]
    mean = reduce(operator.add, window, 0.0) / period
    return float(Decimal(mean).quantize(_SMA_QUANTUM, rounding=ROUND_HALF_UP))


def compute_series(
    prices: Sequence[float],
    short_period: int,
    long_period: int,
    now_ms: int,
    interval_ms: int = DEFAULT_INTERVAL_MS,
) -> List[MovingAverageSample]:
    """Build one sample per index where the long window is fully populated.

    Each sample uses ``prices[0..i]``. Timestamps are synthesized backwards
    from ``now_ms`` at ``interval_ms`` spacing; they approximate the feed
    cadence and are not measured arrival times.
    """
    prices = list(prices)
    n = len(prices)
    samples: List[MovingAverageSample] = []
    prev: MovingAverageSample | None = None
    for i in range(long_period - 1, n):
        window = prices[: i + 1]
        cur = MovingAverageSample(
            timestamp=now_ms - (n - i - 1) * interval_ms,
            price=prices[i],
            sma_short=sma(window, short_period),
            sma_long=sma(window, long_period),
        )
        signal = crossover_signal(prev, cur)
        if signal != "HOLD":
            cur = replace(cur, signal=signal)
        samples.append(cur)
        prev = cur
    return samples
