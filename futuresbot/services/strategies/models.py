"""
Data models for the strategy system.
Candle, Signal and the small value objects indicators/strategies return.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Sequence


# ── Market data ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Candle:
    """One OHLCV kline. ``timestamp`` is the open time in epoch ms."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @classmethod
    def from_kline(cls, row: Sequence) -> "Candle":
        """Parse a positional Binance kline row ``[openTime, o, h, l, c, v, ...]``.

        Binance returns prices as strings, so every field goes through float().
        """
        return cls(
            timestamp=int(float(row[0])),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
        )


# ── Signal (output of every strategy evaluation) ────────────────────────────

class Signal(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    @property
    def opposite(self) -> "Signal":
        if self is Signal.BUY:
            return Signal.SELL
        if self is Signal.SELL:
            return Signal.BUY
        return Signal.HOLD


# ── Indicator / strategy outputs ────────────────────────────────────────────

@dataclass(frozen=True)
class Bands:
    """Bollinger Bands at the last candle of a window."""
    sma: float
    upper_band: float
    lower_band: float


@dataclass(frozen=True)
class StopTargetDistances:
    stop_loss_distance: float
    take_profit_distance: float
