from __future__ import annotations

import argparse
import threading
from pathlib import Path
from typing import List, Optional

from smatrader.core.config import AppConfig
from smatrader.core.engine import TradingEngine
from smatrader.core.env import load_local_environment
from smatrader.core.logging import get_logger, setup_logging
from smatrader.data.random_walk import RandomWalkParams, pump, random_walk_ticks
from smatrader.monitor.display import render_status, render_summary, render_trades
from smatrader.monitor.records import default_export_name, export_csv, summarize


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SMA Trader: simulated moving-average crossover engine")
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config")
    parser.add_argument("--ticks", type=int, default=None, help="Number of feed ticks (0 = until interrupted)")
    parser.add_argument("--no-export", action="store_true", help="Skip CSV export of trade records")
    parser.add_argument("--dashboard", action="store_true", help="Serve the HTTP API while the feed runs")
    parser.add_argument("--log-dir", type=str, default="logs")
    return parser


def _serve(engine: TradingEngine, host: str, port: int) -> None:
    import uvicorn

    from smatrader.webapp.api import create_app

    uvicorn.run(create_app(engine), host=host, port=port, reload=False, workers=1)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    load_local_environment()
    cfg = AppConfig.load(args.config) if args.config else AppConfig()
    setup_logging(log_dir=args.log_dir, level="INFO")
    log = get_logger()

    engine = TradingEngine(config=cfg.trading, engine_config=cfg.engine)
    engine.subscribe_trades(lambda trades: log.debug(f"Trades updated: {len(trades)} total"))

    if args.dashboard or cfg.dashboard.enabled:
        t = threading.Thread(target=_serve, args=(engine, cfg.dashboard.host, cfg.dashboard.port), daemon=True)
        t.start()
        log.info(f"Dashboard API on http://{cfg.dashboard.host}:{cfg.dashboard.port}")

    ticks = cfg.feed.ticks if args.ticks is None else args.ticks
    feed = random_walk_ticks(RandomWalkParams.from_config(cfg.feed), ticks=ticks)

    engine.start()
    try:
        count = pump(engine, feed, interval_sec=cfg.feed.interval_sec)
        log.info(f"Feed finished after {count} ticks")
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down")
    finally:
        engine.stop()

    trades = engine.get_trades()
    render_status(engine.get_config())
    render_trades(trades)
    render_summary(summarize(trades))

    if cfg.report.export_csv and not args.no_export:
        export_csv(trades, Path(cfg.report.output_dir) / default_export_name())


if __name__ == "__main__":
    main()
