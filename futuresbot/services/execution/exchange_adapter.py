"""
ExchangeGateway — Abstract interface for market data and trade execution.
=========================================================================
Strategy Pattern: the TradingBot delegates every network call to a
gateway.  Concrete implementations:

  • PaperExchangeAdapter  — public market data, virtual balance, order log
  • CCXTExchangeAdapter   — real orders on Binance Futures via CCXT

The bot computes signals, sizing and SL/TP prices; the gateway only
*fetches* and *executes*.  Every failure surfaces as ``GatewayFailure``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from futuresbot.services.errors import GatewayFailure
from futuresbot.services.strategies.models import Candle, Signal


# ── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AssetInfo:
    """Formatting / sizing constraints for the traded symbol."""
    asset: str
    price_precision: int
    quantity_precision: int
    min_qty: float
    min_notional: float

    @classmethod
    def from_binance_symbol(cls, info: Dict, asset: str) -> "AssetInfo":
        """Build from one Binance ``exchangeInfo.symbols[]`` entry."""
        filters = {f.get("filterType"): f for f in info.get("filters", [])}
        lot_size = filters.get("LOT_SIZE")
        min_notional = filters.get("MIN_NOTIONAL")
        if lot_size is None or min_notional is None:
            raise GatewayFailure(
                "exchangeInfo",
                f"missing LOT_SIZE/MIN_NOTIONAL filter for {info.get('symbol')}",
            )
        return cls(
            asset=asset,
            price_precision=int(info["pricePrecision"]),
            quantity_precision=int(info["quantityPrecision"]),
            min_qty=float(lot_size["minQty"]),
            min_notional=float(min_notional.get("notional", min_notional.get("minNotional"))),
        )


class OrderKind(str, Enum):
    MARKET = "market"
    STOP = "stop"                   # STOP_MARKET
    TAKE_PROFIT = "take_profit"     # TAKE_PROFIT_MARKET


@dataclass
class OrderResult:
    """Standardised acknowledgement returned by every adapter."""
    order_id: str
    side: Signal
    quantity: float
    kind: OrderKind
    trigger_price: Optional[float] = None
    raw_response: Optional[Dict] = None


# ── Abstract Base Class ─────────────────────────────────────────────────────


class ExchangeGateway(ABC):
    """Interface every gateway must implement.

    All methods are **async**: the live cycle awaits them inside the
    scheduler job so a slow request suspends, never overlaps, the cycle.
    """

    # ── Market data ─────────────────────────────────────────────────────

    @abstractmethod
    async def fetch_candles(self) -> List[Candle]:
        """Most recent candle window, oldest first."""
        ...

    @abstractmethod
    async def fetch_asset_info(self) -> AssetInfo:
        ...

    @abstractmethod
    async def fetch_available_balance(self, quote_asset: str) -> float:
        ...

    # ── Configuration ───────────────────────────────────────────────────

    @abstractmethod
    async def set_leverage(self, leverage: int) -> bool:
        ...

    # ── Execution ───────────────────────────────────────────────────────

    @abstractmethod
    async def submit_market_order(self, direction: Signal, quantity: float) -> OrderResult:
        ...

    @abstractmethod
    async def submit_conditional_order(
        self,
        direction: Signal,
        quantity: float,
        kind: OrderKind,
        trigger_price: float,
    ) -> OrderResult:
        """Stop-market / take-profit-market order that fires at ``trigger_price``."""
        ...

    # ── Metadata ────────────────────────────────────────────────────────

    @property
    @abstractmethod
    def mode(self) -> str:
        """Return ``'paper'``, ``'testnet'``, or ``'live'``."""
        ...

    async def close(self) -> None:
        """Release network resources (no-op by default)."""
        return None
