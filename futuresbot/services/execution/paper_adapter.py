"""
PaperExchangeAdapter — Simulated execution on real market data.
================================================================
Candles and exchange filters come from a market-data provider
(``BinanceMarketData`` in production); balance is virtual and every
order is acknowledged locally and kept in ``orders``.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from typing import List

from futuresbot.services.execution.exchange_adapter import (
    AssetInfo,
    ExchangeGateway,
    OrderKind,
    OrderResult,
)
from futuresbot.services.strategies.models import Candle, Signal

logger = logging.getLogger(__name__)


class PaperExchangeAdapter(ExchangeGateway):
    """No real exchange interaction; market data is read-only.

    ``market_data`` is any object exposing ``fetch_klines(symbol, interval,
    limit)``, ``fetch_asset_info(symbol, asset)`` and ``close()``; its
    blocking calls are pushed to a worker thread so the event loop stays free.
    """

    def __init__(self, market_data, *, asset: str, quote_asset: str,
                 interval: str = "1m", limit: int = 500,
                 initial_balance: float = 100.0):
        self._market_data = market_data
        self.asset = asset
        self.quote_asset = quote_asset
        self.symbol = f"{asset}{quote_asset}"
        self.interval = interval
        self.limit = limit
        self.balance = initial_balance
        self.leverage = 1
        self.orders: List[OrderResult] = []
        self._ids = itertools.count(1)

    # ── Market data ─────────────────────────────────────────────────────

    async def fetch_candles(self) -> List[Candle]:
        return await asyncio.to_thread(
            self._market_data.fetch_klines, self.symbol, self.interval, self.limit
        )

    async def fetch_asset_info(self) -> AssetInfo:
        return await asyncio.to_thread(
            self._market_data.fetch_asset_info, self.symbol, self.asset
        )

    async def fetch_available_balance(self, quote_asset: str) -> float:
        return self.balance if quote_asset == self.quote_asset else 0.0

    # ── Config ──────────────────────────────────────────────────────────

    async def set_leverage(self, leverage: int) -> bool:
        self.leverage = leverage
        logger.info(f"[paper] Leverage set: {leverage}x for {self.symbol}")
        return True

    # ── Execution ───────────────────────────────────────────────────────

    async def submit_market_order(self, direction: Signal, quantity: float) -> OrderResult:
        return self._record(direction, quantity, OrderKind.MARKET, None)

    async def submit_conditional_order(self, direction: Signal, quantity: float,
                                       kind: OrderKind, trigger_price: float) -> OrderResult:
        return self._record(direction, quantity, kind, trigger_price)

    def _record(self, direction, quantity, kind, trigger_price) -> OrderResult:
        order = OrderResult(
            order_id=f"PAPER-{next(self._ids)}",
            side=direction,
            quantity=quantity,
            kind=kind,
            trigger_price=trigger_price,
        )
        self.orders.append(order)
        logger.info(
            f"[paper] {kind.value} {direction.value} {quantity} {self.symbol}"
            + (f" @ {trigger_price}" if trigger_price is not None else "")
        )
        return order

    # ── Metadata ────────────────────────────────────────────────────────

    @property
    def mode(self) -> str:
        return "paper"

    async def close(self) -> None:
        self._market_data.close()
