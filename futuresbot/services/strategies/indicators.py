"""
Technical Indicator Library.
Stateless computations over a candle window, used by all strategies.

Every indicator validates the window length up front and raises
``InsufficientData`` carrying the required vs. actual length.
"""
import math
from typing import List, Sequence

from futuresbot.services.errors import InsufficientData
from futuresbot.services.strategies.models import Bands, Candle


def _require(indicator: str, window: Sequence[Candle], required: int) -> None:
    if len(window) < required:
        raise InsufficientData(indicator, required, len(window))


class Indicators:
    """Stateless library of technical indicator computations."""

    # ── Series helpers ──────────────────────────────────────────────────

    @staticmethod
    def closes(window: Sequence[Candle]) -> List[float]:
        return [c.close for c in window]

    @staticmethod
    def true_ranges(window: Sequence[Candle]) -> List[float]:
        """True range per candle from the second candle onward."""
        trs = []
        for i in range(1, len(window)):
            h = window[i].high
            l = window[i].low
            pc = window[i - 1].close
            trs.append(max(h - l, abs(h - pc), abs(l - pc)))
        return trs

    # ── RSI ─────────────────────────────────────────────────────────────

    @staticmethod
    def rsi(window: Sequence[Candle], period: int = 14) -> float:
        """Wilder-smoothed RSI at the last candle, rounded half up to 2 decimals.

        The first ``period`` deltas seed the average gain/loss; every later
        delta is folded in with ``avg = (avg * (period - 1) + value) / period``.

        When the average loss is exactly zero RS is clamped: a window with
        no losses *and* no gains (flat closes) gives RS = 0 and therefore
        RSI = 0, while a window with gains but no losses gives RSI = 100.
        """
        _require("RSI", window, period + 1)
        prices = Indicators.closes(window)
        deltas = [prices[i] - prices[i - 1] for i in range(1, len(prices))]
        gains = [max(d, 0.0) for d in deltas]
        losses = [max(-d, 0.0) for d in deltas]

        avg_gain = sum(gains[:period]) / period
        avg_loss = sum(losses[:period]) / period
        for i in range(period, len(deltas)):
            avg_gain = (avg_gain * (period - 1) + gains[i]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i]) / period

        if avg_loss == 0:
            value = 100.0 if avg_gain > 0 else 0.0
        else:
            value = 100 - 100 / (1 + avg_gain / avg_loss)
        # halves round up: 45.125 -> 45.13
        return math.floor(value * 100 + 0.5) / 100

    # ── Moving averages ─────────────────────────────────────────────────

    @staticmethod
    def ema(window: Sequence[Candle], period: int) -> float:
        """EMA at the last candle. First value is the SMA seed."""
        _require("EMA", window, period)
        prices = Indicators.closes(window)
        k = 2.0 / (period + 1)
        ema_val = sum(prices[:period]) / period
        for price in prices[period:]:
            ema_val = (price - ema_val) * k + ema_val
        return ema_val

    # ── Bollinger Bands ─────────────────────────────────────────────────

    @staticmethod
    def bollinger_bands(window: Sequence[Candle], period: int = 20,
                        k: float = 2.0) -> Bands:
        """SMA ± k population standard deviations of the trailing closes."""
        _require("BollingerBands", window, period)
        recent = Indicators.closes(window[-period:])
        sma = sum(recent) / period
        std = math.sqrt(sum((p - sma) ** 2 for p in recent) / period)
        return Bands(sma=sma, upper_band=sma + k * std, lower_band=sma - k * std)

    # ── Volume ──────────────────────────────────────────────────────────

    @staticmethod
    def average_volume(window: Sequence[Candle], period: int) -> float:
        _require("AverageVolume", window, period)
        return sum(c.volume for c in window[-period:]) / period

    # ── ATR ─────────────────────────────────────────────────────────────

    @staticmethod
    def atr(window: Sequence[Candle], period: int = 14) -> float:
        """Average True Range: plain mean of the trailing ``period`` TRs."""
        _require("ATR", window, period + 1)
        trs = Indicators.true_ranges(window)
        return sum(trs[-period:]) / period
