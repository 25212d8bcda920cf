"""Execution Package — Exchange gateways (paper and CCXT)."""
from __future__ import annotations

__all__ = [
    "ExchangeGateway", "AssetInfo", "OrderKind", "OrderResult",
    "PaperExchangeAdapter", "CCXTExchangeAdapter",
]

from futuresbot.services.execution.exchange_adapter import (
    AssetInfo,
    ExchangeGateway,
    OrderKind,
    OrderResult,
)
from futuresbot.services.execution.paper_adapter import PaperExchangeAdapter
from futuresbot.services.execution.ccxt_adapter import CCXTExchangeAdapter
