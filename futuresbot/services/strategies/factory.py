"""
Strategy factory — maps configuration keys to concrete strategy classes.

The registry is a module-level table fixed at import time; creating a
strategy never touches shared state.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping, Optional, Type

from futuresbot.services.errors import InvalidConfig
from futuresbot.services.strategies.base import BaseStrategy
from futuresbot.services.strategies.conservative import ConservativeBBRsiStrategy
from futuresbot.services.strategies.scalping import ScalpingBBRsiStrategy


# ── Registry ────────────────────────────────────────────────────────────────

_REGISTRY: Mapping[str, Type[BaseStrategy]] = MappingProxyType({
    "conservative": ConservativeBBRsiStrategy,
    "scalping": ScalpingBBRsiStrategy,
    # class-name aliases used by older config files
    "BBRsiStrategy": ConservativeBBRsiStrategy,
    "ScalpingBBRsiStrategy": ScalpingBBRsiStrategy,
})


def create_strategy(key: str,
                    stop_loss_ratio: Optional[float],
                    take_profit_ratio: Optional[float]) -> BaseStrategy:
    """Build a strategy by registry key.

    Raises:
        InvalidConfig: unknown ``key`` or a missing / non-positive ratio.
    """
    klass = _REGISTRY.get(key)
    if klass is None:
        valid = ", ".join(sorted(_REGISTRY))
        raise InvalidConfig(f"Unknown strategy key '{key}'. Valid keys: {valid}")
    return klass(stop_loss_ratio, take_profit_ratio)


def strategy_keys() -> List[str]:
    """Registered keys, aliases excluded."""
    return [k for k in _REGISTRY if k.islower()]
