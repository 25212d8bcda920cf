"""Scalping BB/RSI — fast bands for 1m candles.

RSI(5) and Bollinger(7) with a 30/70 RSI gate; a faster ATR(5)
keeps stops and targets tight.
"""
from __future__ import annotations

from typing import Optional

from futuresbot.services.strategies.base import BaseStrategy
from futuresbot.services.strategies.params import BBRsiParams

PARAMS = BBRsiParams(
    rsi_period=5,
    rsi_oversold=30,
    rsi_overbought=70,
    bb_period=7,
    bb_k=2.0,
    volume_period=20,
    atr_period=5,
)


class ScalpingBBRsiStrategy(BaseStrategy):

    name = "ScalpingBBRsiStrategy"

    def __init__(self, stop_loss_ratio: Optional[float],
                 take_profit_ratio: Optional[float]) -> None:
        super().__init__(PARAMS, stop_loss_ratio, take_profit_ratio)
