"""
Position lifecycle — pure transitions for the single-position engine.
====================================================================
States: Flat (no Position) and InPosition (one Position).

Every function here is a pure function of its arguments: the TradingBot
owns the state and applies the side effects (orders) these return.  That
keeps sizing, pricing and P/L testable without a gateway.
"""
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from futuresbot.services.errors import ConfigurationMissing, InsufficientBalance
from futuresbot.services.execution.exchange_adapter import AssetInfo, OrderKind
from futuresbot.services.strategies.base import BaseStrategy
from futuresbot.services.strategies.models import Candle, Signal

logger = logging.getLogger(__name__)


# ── Data Classes ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Position:
    """The single open position."""
    opened_at: float            # epoch seconds
    direction: Signal           # BUY | SELL
    quantity: float
    entry_price: float
    stop_loss_price: Optional[float] = None
    take_profit_price: Optional[float] = None


@dataclass(frozen=True)
class OrderIntent:
    """An order a transition wants submitted."""
    side: Signal
    quantity: float
    kind: OrderKind
    trigger_price: Optional[float] = None


@dataclass(frozen=True)
class EntryPlan:
    position: Position
    orders: List[OrderIntent] = field(default_factory=list)


@dataclass(frozen=True)
class ClosedTrade:
    position: Position
    exit_price: float
    closed_at: float
    profit: float


# ── Rounding ────────────────────────────────────────────────────────────────

def round_half_up(value: float, places: int) -> float:
    """Round to ``places`` decimals, exact halves away from zero.

    Works on the exact binary value of ``value``, so 62.5 → 63 but a float
    stored as 1.00499999... stays at 1.0 for two places.
    """
    step = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(step, rounding=ROUND_HALF_UP))


# ── Sizing ──────────────────────────────────────────────────────────────────

def calculate_quantity(
    last_close: float,
    available_balance: float,
    leverage: float,
    risk_percentage: float,
    asset_info: Optional[AssetInfo],
) -> float:
    """Risk-based quantity for a new entry.

    The minNotional correction runs after the minQty floor and may
    override it.
    """
    if not available_balance or available_balance <= 0:
        raise InsufficientBalance(available_balance)
    if asset_info is None:
        raise ConfigurationMissing("Asset info unknown; call configure() first")

    notional = available_balance * leverage
    trade_value = round_half_up(notional * risk_percentage, 6)
    qty = round_half_up(trade_value / last_close, asset_info.quantity_precision)

    if qty < asset_info.min_qty:
        qty = asset_info.min_qty

    if qty * last_close < asset_info.min_notional:
        qty = round_half_up(asset_info.min_notional / last_close, asset_info.quantity_precision)

    return qty


# ── Pricing ─────────────────────────────────────────────────────────────────

def stop_loss_price(direction: Signal, price: float, distance: float,
                    precision: int) -> float:
    if direction is Signal.BUY:
        return round_half_up(price - distance, precision)
    return round_half_up(price + distance, precision)


def take_profit_price(direction: Signal, price: float, distance: float,
                      precision: int) -> float:
    if direction is Signal.BUY:
        return round_half_up(price + distance, precision)
    return round_half_up(price - distance, precision)


# ── Transitions ─────────────────────────────────────────────────────────────

def plan_entry(
    signal: Signal,
    window: Sequence[Candle],
    quantity: float,
    strategy: BaseStrategy,
    asset_info: Optional[AssetInfo],
    opened_at: float,
) -> EntryPlan:
    """Flat → InPosition: price and list the orders for ``signal``.

    ``quantity`` comes from ``calculate_quantity`` against the same close.

    Orders: market entry on the signal side, then stop-loss and take-profit
    on the opposite side.  A zero distance skips its conditional order.
    """
    if signal is Signal.HOLD:
        raise ValueError("Cannot open a position on HOLD")
    if asset_info is None:
        raise ConfigurationMissing("Asset info unknown; call configure() first")

    entry_price = window[-1].close
    distances = strategy.distances_for_stop_and_target(window)
    precision = asset_info.price_precision
    exit_side = signal.opposite

    orders = [OrderIntent(signal, quantity, OrderKind.MARKET)]
    sl_price = tp_price = None
    if distances.stop_loss_distance:
        sl_price = stop_loss_price(signal, entry_price, distances.stop_loss_distance, precision)
        orders.append(OrderIntent(exit_side, quantity, OrderKind.STOP, sl_price))
    if distances.take_profit_distance:
        tp_price = take_profit_price(signal, entry_price, distances.take_profit_distance, precision)
        orders.append(OrderIntent(exit_side, quantity, OrderKind.TAKE_PROFIT, tp_price))

    position = Position(
        opened_at=opened_at,
        direction=signal,
        quantity=quantity,
        entry_price=entry_price,
        stop_loss_price=sl_price,
        take_profit_price=tp_price,
    )
    return EntryPlan(position=position, orders=orders)


def profit_or_loss(position: Position, exit_price: float) -> float:
    if position.direction is Signal.BUY:
        return (exit_price - position.entry_price) * position.quantity
    return (position.entry_price - exit_price) * position.quantity


def settle(position: Position, exit_price: float, closed_at: float) -> ClosedTrade:
    """InPosition → Flat at ``exit_price``.

    Crossing the recorded take-profit / stop-loss is only reported; the
    position closes at ``exit_price`` either way.
    """
    if position.quantity <= 0:
        raise ValueError(f"Invalid position quantity: {position.quantity}")

    is_buy = position.direction is Signal.BUY
    tp, sl = position.take_profit_price, position.stop_loss_price
    if tp is not None and ((is_buy and exit_price >= tp) or (not is_buy and exit_price <= tp)):
        logger.info("Take profit level reached.")
    elif sl is not None and ((is_buy and exit_price <= sl) or (not is_buy and exit_price >= sl)):
        logger.info("Stop loss level reached.")

    return ClosedTrade(
        position=position,
        exit_price=exit_price,
        closed_at=closed_at,
        profit=profit_or_loss(position, exit_price),
    )


def cooldown_active(last_trade_at: Optional[float], now: float,
                    cooldown_seconds: float) -> bool:
    return last_trade_at is not None and now - last_trade_at < cooldown_seconds
