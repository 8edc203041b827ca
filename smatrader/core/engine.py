from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger as log

from smatrader.broker.ledger import TradeLedger
from smatrader.core.config import EngineConfig, TradingConfig
from smatrader.core.errors import VolumeExceeded
from smatrader.core.history import PriceHistoryStore
from smatrader.core.hub import NotificationHub, Subscription, Topic
from smatrader.core.indicators import compute_series
from smatrader.core.types import MovingAverageSample, Side, Trade
from smatrader.strategy.crossover import SignalGenerator


MovingAverageCallback = Callable[[str, Tuple[MovingAverageSample, ...]], Any]
TradesCallback = Callable[[Tuple[Trade, ...]], Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


class TradingEngine:
    """SMA crossover engine over pushed price ticks.

    Owns the price history, the trade ledger and the trading config. Every
    public mutation runs under one re-entrant lock, so feed ticks and the
    periodic evaluation never interleave. Observers receive immutable tuples
    of frozen records, so no subscriber can alter what the next one sees.

    Integration points:
      - call add_price_data() for every tick from the market-data feed
      - call start()/stop() to run the periodic re-evaluation thread
    """

    def __init__(
        self,
        config: Optional[TradingConfig] = None,
        engine_config: Optional[EngineConfig] = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.engine_config = engine_config or EngineConfig()
        self.clock = clock
        self.history = PriceHistoryStore(capacity=self.engine_config.history_capacity)
        self.ledger = TradeLedger(
            config=(config or TradingConfig()).model_copy(),
            fee_rate=self.engine_config.fee_rate,
            clock=clock,
        )
        self.signals = SignalGenerator()
        self.hub = NotificationHub()
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        # per-run stop event, handed to the loop thread that owns it
        self._stop: Optional[threading.Event] = None

    @property
    def config(self) -> TradingConfig:
        return self.ledger.config

    # Lifecycle
    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            self._stop = threading.Event()
            self._thread = threading.Thread(
                target=self._run_loop, args=(self._stop,), name="smatrader-tick", daemon=True
            )
            self._thread.start()
        log.info(f"TradingEngine: periodic tick started ({self.engine_config.tick_interval_sec}s)")

    def stop(self) -> None:
        with self._lock:
            thread, stop = self._thread, self._stop
            self._thread = None
            self._stop = None
        if thread is None:
            return
        if stop is not None:
            stop.set()
        if thread is not threading.current_thread():
            thread.join(timeout=max(2.0, self.engine_config.tick_interval_sec * 2))
        log.info("TradingEngine: periodic tick stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self) -> "TradingEngine":
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()

    def _run_loop(self, stop: threading.Event) -> None:
        while not stop.wait(self.engine_config.tick_interval_sec):
            try:
                self.tick()
            except Exception:
                log.exception("TradingEngine: periodic tick failed")

    # Feed
    def add_price_data(self, symbol: str, price: float) -> None:
        with self._lock:
            self.history.append(symbol, price)
            series = self.calculate_moving_averages(symbol)
            self.hub.publish(Topic.MOVING_AVERAGES, symbol, tuple(series), key=symbol)
            self._evaluate(symbol, float(price), series)

    def tick(self) -> None:
        """Re-evaluate every tracked symbol at its latest price and republish."""
        with self._lock:
            for symbol in self.history.symbols():
                price = self.history.latest(symbol)
                if price is None:
                    continue
                series = self.calculate_moving_averages(symbol)
                self.hub.publish(Topic.MOVING_AVERAGES, symbol, tuple(series), key=symbol)
                self._evaluate(symbol, price, series)

    def calculate_moving_averages(self, symbol: str) -> List[MovingAverageSample]:
        with self._lock:
            cfg = self.config
            return compute_series(
                self.history.get(symbol),
                cfg.sma_short_period,
                cfg.sma_long_period,
                now_ms=self.clock(),
                interval_ms=self.engine_config.ma_interval_ms,
            )

    def _evaluate(self, symbol: str, price: float, series: List[MovingAverageSample]) -> None:
        side = self.signals.evaluate(symbol, series)
        cfg = self.config
        if side is None or not cfg.auto_trading_enabled or cfg.current_volume >= cfg.max_volume:
            return
        log.info(f"TradingEngine: executing {side} trade for {symbol} at {price}")
        try:
            self._execute(symbol, side, self.engine_config.auto_trade_quantity, price, self.engine_config.auto_strategy_name)
        except VolumeExceeded as e:
            log.warning(f"TradingEngine: auto trade on {symbol} rejected: {e}")

    # Trading
    def execute_trade(self, symbol: str, side: Side, quantity: float, price: float, strategy: str = "Manual") -> Trade:
        """Manual trade; raises VolumeExceeded when the budget would be breached."""
        with self._lock:
            return self._execute(symbol, side, quantity, price, strategy)

    def _execute(self, symbol: str, side: Side, quantity: float, price: float, strategy: Optional[str]) -> Trade:
        trade = self.ledger.execute(symbol, side, quantity, price, strategy=strategy)
        self.hub.publish(Topic.TRADES, tuple(self.ledger.get_trades()))
        return trade

    def get_trades(self) -> List[Trade]:
        with self._lock:
            return self.ledger.get_trades()

    def reset_trading(self) -> None:
        with self._lock:
            self.ledger.reset()
            self.hub.publish(Topic.TRADES, ())
        log.info("TradingEngine: trading reset")

    # Config
    def get_config(self) -> TradingConfig:
        with self._lock:
            return self.config.model_copy()

    def update_config(self, partial: Optional[Dict[str, Any]] = None, **changes: Any) -> TradingConfig:
        """Merge ``partial`` into the config; invalid updates leave it unchanged."""
        merged = dict(partial or {})
        merged.update(changes)
        with self._lock:
            old_cfg = self.config
            new_cfg = TradingConfig(**{**old_cfg.model_dump(), **merged})
            self.ledger.config = new_cfg
            if (new_cfg.sma_short_period, new_cfg.sma_long_period) != (old_cfg.sma_short_period, old_cfg.sma_long_period):
                # signals of the old periods say nothing about the new series
                self.signals.forget()
            log.info(f"TradingEngine: config updated: {merged}")
            return new_cfg.model_copy()

    # Read-only views
    def get_price_history(self, symbol: str) -> List[float]:
        with self._lock:
            return self.history.get(symbol)

    # Subscriptions
    def subscribe_trades(self, callback: TradesCallback) -> Subscription:
        with self._lock:
            return self.hub.subscribe(Topic.TRADES, callback)

    def subscribe_moving_averages(self, callback: MovingAverageCallback) -> Subscription:
        with self._lock:
            return self.hub.subscribe(Topic.MOVING_AVERAGES, callback)
