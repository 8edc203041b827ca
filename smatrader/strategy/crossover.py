from __future__ import annotations

from typing import Dict, Optional, Protocol, Sequence

from smatrader.core.types import Side, Signal


class _Averages(Protocol):
    sma_short: float
    sma_long: float


class _SignalSample(Protocol):
    signal: Signal


def crossover_signal(prev: Optional[_Averages], cur: _Averages) -> Signal:
    """Classify the step from ``prev`` to ``cur``.

    BUY on an upward cross, SELL on a downward cross, HOLD otherwise
    (ties included). Without a previous sample there is nothing to cross.
    """
    if prev is None:
        return "HOLD"
    if cur.sma_short > cur.sma_long and prev.sma_short <= prev.sma_long:
        return "BUY"
    if cur.sma_short < cur.sma_long and prev.sma_short >= prev.sma_long:
        return "SELL"
    return "HOLD"


class SignalGenerator:
    """Turns fresh moving-average series into trade decisions.

    Keeps the signal seen at the previous evaluation of each symbol, so a
    series that stays on a crossed sample between evaluations does not
    trigger repeated orders.
    """

    def __init__(self) -> None:
        self.last_signal: Dict[str, Signal] = {}

    @staticmethod
    def latest(series: Sequence[_SignalSample]) -> Signal:
        return series[-1].signal if series else "HOLD"

    def evaluate(self, symbol: str, series: Sequence[_SignalSample]) -> Optional[Side]:
        signal = self.latest(series)
        previous = self.last_signal.get(symbol, "HOLD")
        self.last_signal[symbol] = signal
        if signal == "HOLD" or signal == previous:
            return None
        return signal

    def forget(self, symbol: Optional[str] = None) -> None:
        if symbol is None:
            self.last_signal.clear()
        else:
            self.last_signal.pop(symbol, None)

