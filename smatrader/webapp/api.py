from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, PositiveFloat, ValidationError

from smatrader.core.engine import TradingEngine
from smatrader.core.errors import VolumeExceeded
from smatrader.monitor.records import filter_trades


class ManualTradeRequest(BaseModel):
    symbol: str
    side: Literal["BUY", "SELL"]
    quantity: PositiveFloat = 10_000.0
    price: Optional[PositiveFloat] = None  # defaults to the last seen price


def create_app(engine: TradingEngine) -> FastAPI:
    app = FastAPI(title="SMA Trader")
    app.state.engine = engine

    @app.get("/api/config")
    async def get_config():
        return JSONResponse(engine.get_config().model_dump())

    @app.patch("/api/config")
    async def update_config(changes: Dict[str, Any]):
        try:
            cfg = engine.update_config(changes)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
        return JSONResponse(cfg.model_dump())

    @app.post("/api/reset")
    async def reset():
        engine.reset_trading()
        return JSONResponse(engine.get_config().model_dump())

    @app.get("/api/trades")
    async def get_trades(
        symbol: Optional[str] = None,
        side: Optional[Literal["BUY", "SELL"]] = None,
        window: str = "ALL",
        sort_by: str = "timestamp",
        order: str = "desc",
    ):
        try:
            trades = filter_trades(
                engine.get_trades(), symbol=symbol, side=side, window=window, sort_by=sort_by, order=order
            )
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return JSONResponse([asdict(t) for t in trades])

    @app.post("/api/trades", status_code=201)
    async def manual_trade(req: ManualTradeRequest):
        price = req.price
        if price is None:
            history = engine.get_price_history(req.symbol)
            if not history:
                raise HTTPException(status_code=404, detail=f"No price data for {req.symbol}")
            price = history[-1]
        try:
            trade = engine.execute_trade(req.symbol, req.side, req.quantity, price)
        except VolumeExceeded as e:
            raise HTTPException(status_code=409, detail=str(e))
        return JSONResponse(asdict(trade), status_code=201)

    @app.get("/api/history/{symbol:path}")
    async def get_history(symbol: str):
        return JSONResponse({"symbol": symbol, "prices": engine.get_price_history(symbol)})

    @app.get("/api/moving-averages/{symbol:path}")
    async def get_moving_averages(symbol: str):
        samples = engine.calculate_moving_averages(symbol)
        return JSONResponse({"symbol": symbol, "samples": [asdict(s) for s in samples]})

    return app
