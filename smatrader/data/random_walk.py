from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

import numpy as np
from loguru import logger as log

from smatrader.core.config import FeedConfig
from smatrader.core.types import PricePoint


@dataclass
class RandomWalkParams:
    seed: int
    start_prices: Dict[str, float] = field(default_factory=dict)
    drift: float = 0.0
    volatility: float = 0.0005
    decimals: int = 5

    @classmethod
    def from_config(cls, cfg: FeedConfig) -> "RandomWalkParams":
        return cls(seed=cfg.seed, start_prices=dict(cfg.symbols), drift=cfg.drift, volatility=cfg.volatility)


def random_walk_ticks(p: RandomWalkParams, ticks: int = 0) -> Iterator[PricePoint]:
    """Round-robin ticks over ``p.start_prices``; ``ticks=0`` never ends."""
    rng = np.random.default_rng(p.seed)
    prices = {sym: float(px) for sym, px in p.start_prices.items()}
    if not prices:
        return

    emitted = 0
    while ticks <= 0 or emitted < ticks:
        for symbol in prices:
            shock = rng.normal(loc=p.drift, scale=p.volatility)
            prices[symbol] = max(10 ** -p.decimals, round(float(prices[symbol] * (1.0 + shock)), p.decimals))
            yield PricePoint(symbol=symbol, price=prices[symbol], timestamp=int(time.time() * 1000))
            emitted += 1
            if 0 < ticks <= emitted:
                return


def pump(engine, feed: Iterator[PricePoint], interval_sec: float = 0.0, stop: Optional[threading.Event] = None) -> int:
    """Push feed ticks into ``engine.add_price_data``; returns the tick count."""
    count = 0
    for point in feed:
        if stop is not None and stop.is_set():
            break
        engine.add_price_data(point.symbol, point.price)
        count += 1
        if interval_sec > 0:
            time.sleep(interval_sec)
    log.debug(f"Feed: pushed {count} ticks")
    return count
