from __future__ import annotations

from loguru import logger

from smatrader.broker.ledger import TradeLedger
from smatrader.core.config import TradingConfig
from smatrader.core.logging import get_logger, setup_logging


def test_trade_sink_records_fills_only(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("SMATRADER_DISABLE_CONSOLE_LOG", "1")
    setup_logging(log_dir=str(tmp_path), level="INFO")
    try:
        ledger = TradeLedger(config=TradingConfig(max_volume=15_000))
        trade = ledger.execute("EUR/USD", "BUY", 10_000, 1.5)
        get_logger().info("unrelated engine message")
        logger.complete()

        trades_log = (tmp_path / "trades.log").read_text(encoding="utf-8")
        assert trade.id in trades_log
        assert "volume limit" in trades_log
        assert "unrelated engine message" not in trades_log

        main_log = (tmp_path / "smatrader.log").read_text(encoding="utf-8")
        assert "unrelated engine message" in main_log
        assert "BUY 10000 EUR/USD" in main_log
    finally:
        logger.remove()


def test_trade_sink_can_be_disabled(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("SMATRADER_DISABLE_CONSOLE_LOG", "1")
    setup_logging(log_dir=str(tmp_path), trade_log=False)
    try:
        TradeLedger().execute("EUR/USD", "SELL", 1000, 1.1)
        logger.complete()
        assert not (tmp_path / "trades.log").exists()
    finally:
        logger.remove()
