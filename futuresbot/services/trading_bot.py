"""
Trading Bot — single-position futures engine
============================================
Owns the optional open Position, the cooldown timestamp and (in replay)
the running balance.  Live cycles and backtest steps share the same
signal → sizing → pricing path from ``lifecycle``.
"""
import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from futuresbot.config import BotConfig
from futuresbot.services.errors import BotError, ConfigurationMissing, GatewayFailure
from futuresbot.services.execution.exchange_adapter import (
    AssetInfo,
    ExchangeGateway,
    OrderKind,
)
from futuresbot.services.lifecycle import (
    ClosedTrade,
    EntryPlan,
    Position,
    calculate_quantity,
    cooldown_active,
    plan_entry,
    settle,
)
from futuresbot.services.strategies.base import BaseStrategy
from futuresbot.services.strategies.models import Candle, Signal

logger = logging.getLogger(__name__)


class TradingBot:
    """Decision engine driven by the live scheduler or the backtester."""

    def __init__(self, config: BotConfig, strategy: BaseStrategy,
                 gateway: Optional[ExchangeGateway] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config
        self.strategy = strategy
        self.gateway = gateway
        self._clock = clock

        self.asset_info: Optional[AssetInfo] = None
        self.position: Optional[Position] = None
        self.last_trade_at: Optional[float] = None
        self.available_balance: float = 0.0
        self.closed_trades: List[ClosedTrade] = []

    # ── Configuration ───────────────────────────────────────────────────

    async def configure(self) -> None:
        """Set leverage and fetch asset precision from the gateway."""
        if self.gateway is None:
            raise ConfigurationMissing("No exchange gateway configured")
        try:
            await self.gateway.set_leverage(self.config.leverage)
            self.asset_info = await self.gateway.fetch_asset_info()
        except BotError as e:
            logger.error(f"Error during configuration: {e}")
            raise
        logger.info(f"Configuration completed: {self.asset_info}")

    def use_asset_info(self, asset_info: AssetInfo) -> None:
        """Configure offline (backtests with known exchange filters)."""
        self.asset_info = asset_info

    # ── Sizing ──────────────────────────────────────────────────────────

    def quantity_to_trade(self, last_close: float, available_balance: float) -> float:
        return calculate_quantity(
            last_close,
            available_balance,
            self.config.leverage,
            self.config.risk_percentage,
            self.asset_info,
        )

    def _plan(self, signal: Signal, window: Sequence[Candle],
              balance: float, opened_at: float) -> EntryPlan:
        quantity = self.quantity_to_trade(window[-1].close, balance)
        return plan_entry(signal, window, quantity, self.strategy,
                          self.asset_info, opened_at)

    # ── Live ────────────────────────────────────────────────────────────

    async def run_live_cycle(self) -> Optional[Position]:
        """One live decision cycle.

        Never raises: any failure is logged and the cycle is abandoned
        with the Position left as it was.  Returns the newly opened
        Position, if any.
        """
        try:
            return await self._live_cycle()
        except GatewayFailure as e:
            logger.error(f"Gateway failure during live trading: {e}")
        except BotError as e:
            logger.error(f"Error during live trading: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error during live trading: {e}")
        return None

    async def _live_cycle(self) -> Optional[Position]:
        now = self._clock()
        if cooldown_active(self.last_trade_at, now, self.config.cooldown_seconds):
            logger.info("Cooldown period active, skipping trade.")
            return None
        if self.gateway is None:
            raise ConfigurationMissing("No exchange gateway configured")

        candles = await self.gateway.fetch_candles()
        signal = self.strategy.signal(candles)
        last_candle = candles[-1]
        balance = await self.gateway.fetch_available_balance(self.config.counter_asset)
        logger.info(
            f"{datetime.fromtimestamp(now):%Y-%m-%d %H:%M:%S} Live Signal: {signal.value} "
            f"\tPrice {last_candle.close} \tavailable: {balance}"
        )
        if signal is Signal.HOLD:
            return None

        plan = self._plan(signal, candles, balance, now)
        await self._submit(plan, now)

        self.position = plan.position
        logger.info(f"Opened new position: {plan.position}")
        return plan.position

    async def _submit(self, plan: EntryPlan, now: float) -> None:
        """Market entry, then stop-loss and take-profit.

        The cooldown is armed once the entry fills, even when a stop or
        target order is then rejected.
        """
        for order in plan.orders:
            if order.kind is OrderKind.MARKET:
                await self.gateway.submit_market_order(order.side, order.quantity)
                self.last_trade_at = now
                continue
            try:
                await self.gateway.submit_conditional_order(
                    order.side, order.quantity, order.kind, order.trigger_price,
                )
            except GatewayFailure:
                logger.error(
                    f"{plan.position.direction.value} entry of {order.quantity} filled but "
                    f"{order.kind.value} order at {order.trigger_price} failed: "
                    f"position may be live WITHOUT protection"
                )
                raise

    # ── Replay ──────────────────────────────────────────────────────────

    def reset_replay(self, initial_balance: float) -> None:
        self.available_balance = initial_balance
        self.position = None
        self.last_trade_at = None
        self.closed_trades = []

    def backtest_step(self, window: Sequence[Candle]) -> Signal:
        """One replay step over ``window``.

        An open position is closed at the window's last close, whatever
        its stop / target levels (HOLD is returned for that step).
        Otherwise the strategy signal may open a simulated position.
        Errors propagate: a replay is not isolated per step.
        """
        last_candle = window[-1]
        ts = last_candle.timestamp / 1000

        if self.position is not None:
            trade = settle(self.position, last_candle.close, ts)
            self.available_balance += trade.profit
            self.closed_trades.append(trade)
            self.position = None
            logger.info(
                f"Position closed. Direction: {trade.position.direction.value}, "
                f"Entry Price: {trade.position.entry_price}, Exit Price: {trade.exit_price}, "
                f"Quantity: {trade.position.quantity}, Profit/Loss: {trade.profit:.2f}, "
                f"New Balance: {self.available_balance:.2f}"
            )
            return Signal.HOLD

        signal = self.strategy.signal(window)
        if signal is Signal.HOLD:
            return signal

        plan = self._plan(signal, window, self.available_balance, ts)
        self.position = plan.position
        self.last_trade_at = ts
        logger.info(f"Opened new position: {plan.position}")
        return signal
