"""
BBRsiParams — Immutable per-variant configuration dataclass.

Each strategy variant (conservative, scalping) provides a frozen
BBRsiParams instance; the signal logic itself is identical across variants.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BBRsiParams:
    """Immutable parameter set for a Bollinger/RSI strategy variant.

    Attributes are grouped by function:
      • RSI — lookback and oversold/overbought thresholds
      • Bollinger — lookback and band width multiplier
      • Volume — lookback for the trailing average volume
      • Risk — ATR lookback for stop/target distances
    """

    # ── RSI ────────────────────────────────────────────────────────────
    rsi_period: int
    rsi_oversold: float
    rsi_overbought: float

    # ── Bollinger Bands ────────────────────────────────────────────────
    bb_period: int
    bb_k: float = 2.0

    # ── Volume ─────────────────────────────────────────────────────────
    volume_period: int = 20

    # ── Risk management ────────────────────────────────────────────────
    atr_period: int = 14

    @property
    def min_window(self) -> int:
        """Shortest candle window every indicator of this variant accepts."""
        return max(self.rsi_period + 1, self.bb_period,
                   self.volume_period, self.atr_period + 1)
