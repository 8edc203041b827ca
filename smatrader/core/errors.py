from __future__ import annotations


class TradingError(Exception):
    """Base class for rejected trading operations."""


class VolumeExceeded(TradingError):
    def __init__(self, attempted: float, current: float, maximum: float) -> None:
        self.attempted = attempted
        self.current = current
        self.maximum = maximum
        super().__init__(
            f"Trade would exceed volume limit: {current:,.2f} + {attempted:,.2f} > {maximum:,.2f}"
        )
