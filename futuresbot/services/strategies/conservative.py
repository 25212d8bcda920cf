"""Conservative BB/RSI — slower bands, deeper RSI extremes.

Bollinger(10) and RSI(10) with a 25/75 RSI gate; stops and targets
scale off ATR(14).  Trades less often than the scalping variant.
"""
from __future__ import annotations

from typing import Optional

from futuresbot.services.strategies.base import BaseStrategy
from futuresbot.services.strategies.params import BBRsiParams

PARAMS = BBRsiParams(
    rsi_period=10,
    rsi_oversold=25,
    rsi_overbought=75,
    bb_period=10,
    bb_k=2.0,
    volume_period=20,
    atr_period=14,
)


class ConservativeBBRsiStrategy(BaseStrategy):

    name = "BBRsiStrategy"

    def __init__(self, stop_loss_ratio: Optional[float],
                 take_profit_ratio: Optional[float]) -> None:
        super().__init__(PARAMS, stop_loss_ratio, take_profit_ratio)
