from __future__ import annotations

import itertools
import threading

import pytest

from smatrader.core.config import EngineConfig, TradingConfig
from smatrader.core.engine import TradingEngine
from smatrader.core.errors import VolumeExceeded


def _engine(**trading) -> TradingEngine:
    ticks = itertools.count(1_700_000_000_000, 1000)
    return TradingEngine(config=TradingConfig(**trading), clock=lambda: next(ticks))


def _feed(engine: TradingEngine, symbol: str, prices) -> None:
    for p in prices:
        engine.add_price_data(symbol, p)


def test_rising_prices_first_sample_holds_without_trades() -> None:
    engine = _engine(max_volume=10_000_000)
    _feed(engine, "EUR/USD", [1.10 + 0.01 * i for i in range(20)])
    series = engine.calculate_moving_averages("EUR/USD")
    assert len(series) == 1
    assert series[0].signal == "HOLD"
    assert engine.get_trades() == []


def test_manual_trade_over_budget_raises() -> None:
    engine = _engine(max_volume=1000)
    with pytest.raises(VolumeExceeded):
        engine.execute_trade("EUR/USD", "BUY", 10_000, 1.0)
    assert engine.get_config().current_volume == 0
    assert engine.get_trades() == []


def test_crossover_executes_once_per_signal_change() -> None:
    engine = _engine()
    published = []
    engine.subscribe_trades(published.append)

    _feed(engine, "EUR/USD", [1.0] * 20 + [1.1])
    trades = engine.get_trades()
    assert len(trades) == 1
    assert trades[0].side == "BUY"
    assert trades[0].quantity == 10_000
    assert trades[0].price == 1.1
    assert trades[0].strategy == "SMA Crossover"

    # quiet feed: the periodic tick must not repeat the order
    engine.tick()
    engine.tick()
    assert len(engine.get_trades()) == 1

    _feed(engine, "EUR/USD", [1.1] * 4 + [0.9] * 3)
    trades = engine.get_trades()
    assert [t.side for t in trades] == ["SELL", "BUY"]
    assert len(published) == 2
    assert list(published[-1]) == trades


def test_rejected_auto_trade_is_swallowed() -> None:
    engine = _engine(max_volume=5000)
    _feed(engine, "EUR/USD", [1.0] * 20 + [1.1])
    assert engine.get_trades() == []
    assert engine.get_config().current_volume == 0
    assert engine.get_config().auto_trading_enabled is True


def test_auto_trading_disabled_skips_execution() -> None:
    engine = _engine(auto_trading_enabled=False)
    _feed(engine, "EUR/USD", [1.0] * 20 + [1.1])
    assert engine.get_trades() == []
    # re-enabling does not replay the stale crossover
    engine.update_config(auto_trading_enabled=True)
    engine.tick()
    assert engine.get_trades() == []


def test_cap_stops_auto_trading() -> None:
    engine = _engine(max_volume=15_000)
    _feed(engine, "EUR/USD", [1.0] * 20 + [1.5])
    cfg = engine.get_config()
    assert len(engine.get_trades()) == 1
    assert cfg.auto_trading_enabled is False
    _feed(engine, "EUR/USD", [1.5] * 4 + [0.5] * 3)
    assert len(engine.get_trades()) == 1


def test_reset_trading_restores_budget_and_notifies() -> None:
    engine = _engine(max_volume=15_000)
    published = []
    engine.subscribe_trades(published.append)
    _feed(engine, "EUR/USD", [1.0] * 20 + [1.5])
    assert engine.get_config().auto_trading_enabled is False
    for _ in range(2):
        engine.reset_trading()
        cfg = engine.get_config()
        assert cfg.current_volume == 0
        assert cfg.auto_trading_enabled is True
        assert engine.get_trades() == []
    assert published[-1] == ()
    # history survives a trading reset
    assert len(engine.get_price_history("EUR/USD")) == 21


def test_snapshots_do_not_leak_state() -> None:
    engine = _engine()
    _feed(engine, "EUR/USD", [1.0, 1.1])
    history = engine.get_price_history("EUR/USD")
    history.append(5.0)
    cfg = engine.get_config()
    cfg.max_volume = 1.0
    assert engine.get_price_history("EUR/USD") == [1.0, 1.1]
    assert engine.get_config().max_volume == 10_000_000


def test_update_config_validates() -> None:
    engine = _engine()
    cfg = engine.update_config({"max_volume": 5_000_000}, sma_short_period=3)
    assert cfg.max_volume == 5_000_000
    assert engine.get_config().sma_short_period == 3

    with pytest.raises(ValueError):
        engine.update_config(unknown_field=1)
    with pytest.raises(ValueError):
        engine.update_config(sma_short_period=30)
    with pytest.raises(ValueError):
        engine.update_config(max_volume=-1)
    assert engine.get_config().max_volume == 5_000_000
    assert engine.get_config().sma_short_period == 3


def test_moving_average_updates_per_tick_in_order() -> None:
    engine = _engine()
    seen = []
    engine.subscribe_moving_averages(lambda symbol, data: seen.append((symbol, len(data))))
    _feed(engine, "EUR/USD", [1.0] * 21)
    engine.add_price_data("GBP/USD", 1.25)
    assert seen[:19] == [("EUR/USD", 0)] * 19
    assert seen[19:21] == [("EUR/USD", 1), ("EUR/USD", 2)]
    assert seen[-1] == ("GBP/USD", 0)

    late = []
    engine.subscribe_moving_averages(lambda symbol, data: late.append((symbol, len(data))))
    assert sorted(late) == [("EUR/USD", 2), ("GBP/USD", 0)]


def test_history_stays_bounded_through_engine() -> None:
    engine = _engine()
    _feed(engine, "USD/JPY", [150.0 + 0.01 * i for i in range(260)])
    assert len(engine.get_price_history("USD/JPY")) == 200
    assert len(engine.calculate_moving_averages("USD/JPY")) == 181


def test_periodic_tick_republishes_and_stops_cleanly() -> None:
    engine = TradingEngine(engine_config=EngineConfig(tick_interval_sec=0.01))
    engine.add_price_data("EUR/USD", 1.08)
    ticked = threading.Event()
    count = []

    def on_ma(symbol, data):
        count.append(symbol)
        if len(count) >= 4:
            ticked.set()

    engine.subscribe_moving_averages(on_ma)
    engine.start()
    engine.start()
    assert engine.running
    assert ticked.wait(timeout=5.0)
    engine.stop()
    engine.stop()
    assert not engine.running

    after_stop = len(count)
    threading.Event().wait(0.05)
    assert len(count) == after_stop


def test_context_manager_runs_and_stops_ticker() -> None:
    with TradingEngine(engine_config=EngineConfig(tick_interval_sec=0.01)) as engine:
        assert engine.running
    assert not engine.running


def test_subscriber_cannot_alter_payload_for_others() -> None:
    engine = _engine()
    first, second = [], []

    def clearing(trades):
        first.append(len(trades))
        trades.clear()

    engine.subscribe_trades(clearing)
    engine.subscribe_trades(lambda trades: second.append(len(trades)))
    engine.execute_trade("EUR/USD", "BUY", 1000, 1.1)

    assert first == [1]
    assert second == [1]
    late = []
    engine.subscribe_trades(lambda trades: late.append(len(trades)))
    assert late == [1]
    assert len(engine.get_trades()) == 1


def test_moving_average_payload_is_immutable() -> None:
    engine = _engine()
    payloads = []
    engine.subscribe_moving_averages(lambda symbol, data: payloads.append(data))
    _feed(engine, "EUR/USD", [1.0] * 20)
    assert isinstance(payloads[-1], tuple)
    assert len(payloads[-1]) == 1
    replayed = []
    engine.subscribe_moving_averages(lambda symbol, data: replayed.append(len(data)))
    assert replayed == [1]


def test_period_change_forgets_previous_signals() -> None:
    engine = _engine(auto_trading_enabled=False)
    _feed(engine, "EUR/USD", [1.0] * 20 + [1.1])
    assert engine.signals.last_signal["EUR/USD"] == "BUY"

    engine.update_config(max_volume=5_000_000)
    assert engine.signals.last_signal["EUR/USD"] == "BUY"

    engine.update_config(sma_short_period=3)
    assert engine.signals.last_signal == {}


def test_restart_uses_a_fresh_stop_event() -> None:
    engine = TradingEngine(engine_config=EngineConfig(tick_interval_sec=0.01))
    engine.start()
    first_stop = engine._stop
    first_thread = engine._thread
    engine.stop()
    engine.start()
    try:
        assert first_stop.is_set()
        assert engine._stop is not first_stop
        assert not engine._stop.is_set()
        assert not first_thread.is_alive()
        assert engine.running
    finally:
        engine.stop()
    assert not engine.running
