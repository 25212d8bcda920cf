"""
CCXTExchangeAdapter — Real exchange execution via CCXT.
======================================================
Implements the ExchangeGateway interface on Binance Futures (USDT-M)
through CCXT's async client.

Supports:
  • Kline / balance / exchange-filter queries
  • Market entry orders
  • Stop-loss & take-profit conditional orders (stop_market / take_profit_market)
  • Leverage configuration
  • Testnet toggle via constructor flag

Architecture decisions:
  - A fresh async exchange instance is created per call and closed after,
    so the aiohttp session never outlives the scheduler tick.
  - All CCXT errors are re-raised as GatewayFailure; the bot decides
    whether the cycle survives.
"""
from __future__ import annotations

import logging
from typing import Dict, List

import ccxt.async_support as ccxt_async
from ccxt.base.errors import BaseError as CCXTError

from futuresbot.services.errors import GatewayFailure
from futuresbot.services.execution.exchange_adapter import (
    AssetInfo,
    ExchangeGateway,
    OrderKind,
    OrderResult,
)
from futuresbot.services.strategies.models import Candle, Signal

logger = logging.getLogger(__name__)

_CONDITIONAL_TYPES: Dict[OrderKind, str] = {
    OrderKind.STOP: "stop_market",
    OrderKind.TAKE_PROFIT: "take_profit_market",
}


class CCXTExchangeAdapter(ExchangeGateway):
    """Real Binance Futures execution via CCXT.

    Parameters
    ----------
    api_key : str
        Binance API key.
    api_secret : str
        Binance API secret.
    asset, quote_asset : str
        Traded pair, e.g. ``DOGE`` / ``USDT`` → ``DOGE/USDT:USDT``.
    testnet : bool
        If True, connect to Binance's demo futures endpoints.
    """

    # Binance migrated the old testnet (testnet.binancefuture.com) to the
    # Demo Trading platform (demo-fapi.binance.com); CCXT's sandbox URLs
    # still point to the deprecated host.
    _DEMO_FAPI_BASE = "https://demo-fapi.binance.com"
    _DEMO_FAPI_URLS = {
        "fapiPublic":    f"{_DEMO_FAPI_BASE}/fapi/v1",
        "fapiPrivate":   f"{_DEMO_FAPI_BASE}/fapi/v1",
        "fapiPublicV2":  f"{_DEMO_FAPI_BASE}/fapi/v2",
        "fapiPrivateV2": f"{_DEMO_FAPI_BASE}/fapi/v2",
        "fapiPublicV3":  f"{_DEMO_FAPI_BASE}/fapi/v3",
        "fapiPrivateV3": f"{_DEMO_FAPI_BASE}/fapi/v3",
    }

    def __init__(self, api_key: str, api_secret: str, *, asset: str,
                 quote_asset: str, interval: str = "1m", limit: int = 500,
                 testnet: bool = True):
        self._api_key = api_key
        self._api_secret = api_secret
        self._testnet = testnet
        self.asset = asset
        self.quote_asset = quote_asset
        self.symbol = f"{asset}/{quote_asset}:{quote_asset}"
        self.interval = interval
        self.limit = limit

    # ── Exchange instance (created per-call, closed after) ──────────────

    def _create_exchange(self) -> ccxt_async.binance:
        exchange = ccxt_async.binance({
            "apiKey": self._api_key,
            "secret": self._api_secret,
            "options": {
                "defaultType": "future",
                "adjustForTimeDifference": True,
            },
        })
        if self._testnet:
            exchange.set_sandbox_mode(True)
            exchange.urls["api"].update(self._DEMO_FAPI_URLS)
        return exchange

    async def _execute(self, operation: str, coro_factory):
        """Create exchange → run coroutine → close exchange.

        ``coro_factory`` receives the exchange instance and returns a
        coroutine.  CCXT errors are wrapped in GatewayFailure.
        """
        exchange = self._create_exchange()
        try:
            return await coro_factory(exchange)
        except CCXTError as exc:
            logger.error(f"CCXT {operation} error for {self.symbol}: {exc}")
            raise GatewayFailure(operation, exc) from exc
        finally:
            await exchange.close()

    # ── Market data ─────────────────────────────────────────────────────

    async def fetch_candles(self) -> List[Candle]:
        async def _run(exchange):
            rows = await exchange.fetch_ohlcv(self.symbol, timeframe=self.interval,
                                              limit=self.limit)
            return [Candle.from_kline(r) for r in rows]

        return await self._execute("fetch_candles", _run)

    async def fetch_asset_info(self) -> AssetInfo:
        async def _run(exchange):
            await exchange.load_markets()
            market = exchange.market(self.symbol)
            # raw exchangeInfo entry carries integer precisions + filters
            return AssetInfo.from_binance_symbol(market["info"], self.asset)

        return await self._execute("fetch_asset_info", _run)

    async def fetch_available_balance(self, quote_asset: str) -> float:
        async def _run(exchange):
            balance = await exchange.fetch_balance({"type": "future"})
            return float(balance.get(quote_asset, {}).get("free") or 0.0)

        return await self._execute("fetch_available_balance", _run)

    # ── Configuration ───────────────────────────────────────────────────

    async def set_leverage(self, leverage: int) -> bool:
        async def _run(exchange):
            try:
                await exchange.set_leverage(leverage, self.symbol)
            except CCXTError as exc:
                # Binance returns an error if leverage is already set
                if "No need to change" not in str(exc):
                    raise
            logger.info(f"Leverage set: {leverage}x for {self.symbol}")
            return True

        return await self._execute("set_leverage", _run)

    # ── Execution ───────────────────────────────────────────────────────

    async def submit_market_order(self, direction: Signal, quantity: float) -> OrderResult:
        async def _run(exchange):
            order = await exchange.create_order(
                symbol=self.symbol,
                type="market",
                side=direction.value.lower(),
                amount=quantity,
            )
            return OrderResult(
                order_id=str(order.get("id", "")),
                side=direction,
                quantity=quantity,
                kind=OrderKind.MARKET,
                raw_response=order,
            )

        return await self._execute("submit_market_order", _run)

    async def submit_conditional_order(self, direction: Signal, quantity: float,
                                       kind: OrderKind, trigger_price: float) -> OrderResult:
        order_type = _CONDITIONAL_TYPES.get(kind)
        if order_type is None:
            raise ValueError(f"Not a conditional order kind: {kind}")

        async def _run(exchange):
            order = await exchange.create_order(
                symbol=self.symbol,
                type=order_type,
                side=direction.value.lower(),
                amount=quantity,
                price=None,
                params={
                    "stopPrice": trigger_price,
                    "reduceOnly": True,
                },
            )
            logger.info(f"{order_type} order placed: {order.get('id')} @ {trigger_price}")
            return OrderResult(
                order_id=str(order.get("id", "")),
                side=direction,
                quantity=quantity,
                kind=kind,
                trigger_price=trigger_price,
                raw_response=order,
            )

        return await self._execute("submit_conditional_order", _run)

    # ── Metadata ────────────────────────────────────────────────────────

    @property
    def mode(self) -> str:
        return "testnet" if self._testnet else "live"
