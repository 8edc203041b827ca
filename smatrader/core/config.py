from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, PositiveFloat, PositiveInt, model_validator


class TradingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_volume: PositiveFloat = 10_000_000.0  # 10 million notional
    current_volume: NonNegativeFloat = 0.0
    auto_trading_enabled: bool = True
    selected_pair: str = "EUR/USD"
    sma_short_period: PositiveInt = 5
    sma_long_period: PositiveInt = 20

    @model_validator(mode="after")
    def _check_bounds(self) -> "TradingConfig":
        if self.sma_short_period >= self.sma_long_period:
            raise ValueError("sma_short_period must be smaller than sma_long_period")
        if self.current_volume > self.max_volume:
            raise ValueError("current_volume cannot exceed max_volume")
        return self


class EngineConfig(BaseModel):
    tick_interval_sec: PositiveFloat = 1.0
    history_capacity: PositiveInt = 200
    auto_trade_quantity: PositiveFloat = 10_000.0
    fee_rate: NonNegativeFloat = 0.0001  # 0.01%
    auto_strategy_name: str = "SMA Crossover"
    ma_interval_ms: PositiveInt = 60_000  # assumed tick cadence for MA timestamps


class FeedConfig(BaseModel):
    seed: int = 42
    # symbol -> start price
    symbols: Dict[str, PositiveFloat] = Field(
        default_factory=lambda: {
            "EUR/USD": 1.0850,
            "GBP/USD": 1.2650,
            "USD/JPY": 149.50,
            "AUD/USD": 0.6550,
            "USD/CAD": 1.3600,
        }
    )
    interval_sec: float = 0.0
    drift: float = 0.0
    volatility: PositiveFloat = 0.0005
    ticks: int = 0  # 0 = run until interrupted


class ReportConfig(BaseModel):
    output_dir: str = "logs/reports"
    export_csv: bool = True


class DashboardConfig(BaseModel):
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8000


class AppConfig(BaseModel):
    trading: TradingConfig = Field(default_factory=TradingConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)

    @property
    def symbols(self) -> List[str]:
        return list(self.feed.symbols.keys())

    @staticmethod
    def load(path: str | Path) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return AppConfig(**data)
