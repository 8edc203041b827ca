from __future__ import annotations

import os
from pathlib import Path

from loguru import logger as _logger


TRADE_COMPONENT = "trades"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"
# Every record on the trade sink is bound with trade_id by the ledger
_TRADE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[trade_id]} | {message}"


def _is_trade_record(record: dict) -> bool:
    return record["extra"].get("component") == TRADE_COMPONENT


def setup_logging(log_dir: str = "logs", level: str = "INFO", trade_log: bool = True) -> None:
    """Console + rotating ``smatrader.log``, plus ``trades.log`` for fills.

    ``SMATRADER_LOG_LEVEL`` overrides ``level``; ``SMATRADER_DISABLE_CONSOLE_LOG``
    drops the console sink when the rich tables own the terminal.
    """
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    level = str(os.getenv("SMATRADER_LOG_LEVEL", level)).upper()

    _logger.remove()
    disable_console = str(os.getenv("SMATRADER_DISABLE_CONSOLE_LOG", "0")).lower() in {"1", "true", "yes"}
    if not disable_console:
        _logger.add(
            sink=lambda msg: print(msg, end=""),
            level=level,
            colorize=True,
            backtrace=False,
            diagnose=False,
        )
    _logger.add(
        Path(log_dir) / "smatrader.log",
        rotation="10 MB",
        retention=10,
        level=level,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        format=_FILE_FORMAT,
    )
    if trade_log:
        # Audit trail of fills and budget stops, independent of the main level
        _logger.add(
            Path(log_dir) / "trades.log",
            rotation="1 day",
            retention=30,
            level="INFO",
            enqueue=True,
            backtrace=False,
            diagnose=False,
            filter=_is_trade_record,
            format=_TRADE_FORMAT,
        )


def get_logger() -> _logger.__class__:
    return _logger


def get_trade_logger(trade_id: str) -> _logger.__class__:
    """Logger bound to one trade; its records also land in ``trades.log``."""
    return _logger.bind(component=TRADE_COMPONENT, trade_id=trade_id)
