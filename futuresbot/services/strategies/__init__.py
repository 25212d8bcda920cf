"""
Strategies Package — re-exports all public symbols.

External code can do:
    from futuresbot.services.strategies import Indicators, Signal, create_strategy, ...
"""
from futuresbot.services.strategies.models import (
    Bands,
    Candle,
    Signal,
    StopTargetDistances,
)
from futuresbot.services.strategies.indicators import Indicators
from futuresbot.services.strategies.params import BBRsiParams
from futuresbot.services.strategies.base import BaseStrategy
from futuresbot.services.strategies.conservative import ConservativeBBRsiStrategy
from futuresbot.services.strategies.scalping import ScalpingBBRsiStrategy
from futuresbot.services.strategies.factory import create_strategy, strategy_keys

__all__ = [
    "Bands",
    "Candle",
    "Signal",
    "StopTargetDistances",
    "Indicators",
    "BBRsiParams",
    "BaseStrategy",
    "ConservativeBBRsiStrategy",
    "ScalpingBBRsiStrategy",
    "create_strategy",
    "strategy_keys",
]
