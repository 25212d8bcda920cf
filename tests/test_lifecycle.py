import pytest

from conftest import breakout_window, make_window
from futuresbot.services.errors import ConfigurationMissing, InsufficientBalance
from futuresbot.services.execution.exchange_adapter import AssetInfo, OrderKind
from futuresbot.services.lifecycle import (
    Position,
    calculate_quantity,
    cooldown_active,
    plan_entry,
    profit_or_loss,
    round_half_up,
    settle,
    stop_loss_price,
    take_profit_price,
)
from futuresbot.services.strategies import ScalpingBBRsiStrategy, Signal


def _info(quantity_precision=0, min_qty=0.001, min_notional=5.0, price_precision=5):
    return AssetInfo("DOGE", price_precision, quantity_precision, min_qty, min_notional)


# ── Sizing ──────────────────────────────────────────────────────────────────

def test_quantity_risk_based():
    assert calculate_quantity(0.1, 100.0, 15, 0.02, _info()) == 300


def test_quantity_min_notional_overrides_min_qty():
    # 0.02 / 0.1 rounds to 0 -> min_qty 10 -> notional 1 < 5 -> 50
    info = _info(min_qty=10.0, min_notional=5.0)
    assert calculate_quantity(0.1, 1.0, 1, 0.02, info) == 50


def test_quantity_floor_at_min_qty():
    info = _info(min_qty=10.0, min_notional=0.5)
    assert calculate_quantity(0.1, 1.0, 1, 0.02, info) == 10.0


def test_quantity_rounded_to_precision():
    qty = calculate_quantity(90.0, 100.0, 15, 0.02, _info(quantity_precision=3))
    assert qty == 0.333


@pytest.mark.parametrize("balance", [0.0, -5.0, None])
def test_quantity_requires_positive_balance(balance):
    with pytest.raises(InsufficientBalance):
        calculate_quantity(0.1, balance, 15, 0.02, _info())


def test_quantity_requires_asset_info():
    with pytest.raises(ConfigurationMissing):
        calculate_quantity(0.1, 100.0, 15, 0.02, None)


# ── Pricing ─────────────────────────────────────────────────────────────────

def test_stop_and_target_prices_by_direction():
    assert stop_loss_price(Signal.BUY, 100.0, 2.0, 2) == 98.0
    assert stop_loss_price(Signal.SELL, 100.0, 2.0, 2) == 102.0
    assert take_profit_price(Signal.BUY, 100.0, 3.0, 2) == 103.0
    assert take_profit_price(Signal.SELL, 100.0, 3.0, 2) == 97.0


def test_prices_rounded_to_price_precision():
    assert stop_loss_price(Signal.BUY, 0.123456, 0.001111, 4) == 0.1223


def test_prices_round_exact_halves_up():
    assert stop_loss_price(Signal.BUY, 100.0, 3.5, 0) == 97.0
    assert take_profit_price(Signal.BUY, 100.0, 0.5, 0) == 101.0
    assert stop_loss_price(Signal.SELL, 1.0, 0.125, 2) == 1.13


def test_quantity_rounds_exact_halves_up():
    # 1500 * 0.02 / 0.48 is exactly 62.5
    assert calculate_quantity(0.48, 100.0, 15, 0.02, _info(min_qty=1.0)) == 63


def test_round_half_up_uses_binary_value():
    assert round_half_up(2.5, 0) == 3.0
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(-2.5, 0) == -3.0
    # 1.005 is stored just below the half
    assert round_half_up(1.005, 2) == 1.0


# ── Profit / loss ───────────────────────────────────────────────────────────

def test_profit_or_loss_by_direction():
    long = Position(opened_at=0, direction=Signal.BUY, quantity=2, entry_price=100.0)
    short = Position(opened_at=0, direction=Signal.SELL, quantity=2, entry_price=100.0)
    assert profit_or_loss(long, 110.0) == pytest.approx(20.0)
    assert profit_or_loss(short, 110.0) == pytest.approx(-20.0)


def test_settle_closes_at_exit_price_regardless_of_levels():
    position = Position(opened_at=0, direction=Signal.BUY, quantity=1, entry_price=100.0,
                        stop_loss_price=95.0, take_profit_price=105.0)
    trade = settle(position, 101.0, closed_at=60.0)
    assert trade.exit_price == 101.0
    assert trade.closed_at == 60.0
    assert trade.profit == pytest.approx(1.0)


def test_settle_rejects_non_positive_quantity():
    position = Position(opened_at=0, direction=Signal.BUY, quantity=0, entry_price=100.0)
    with pytest.raises(ValueError):
        settle(position, 101.0, closed_at=60.0)


# ── Entry plan ──────────────────────────────────────────────────────────────

def test_plan_entry_orders_and_position():
    strategy = ScalpingBBRsiStrategy(1.5, 2.0)
    window = breakout_window(90.0)
    info = _info(quantity_precision=3, price_precision=5)

    plan = plan_entry(Signal.BUY, window, 0.333, strategy, info, opened_at=1000.0)

    distances = strategy.distances_for_stop_and_target(window)
    assert plan.position.direction is Signal.BUY
    assert plan.position.entry_price == 90.0
    assert plan.position.quantity == 0.333
    assert plan.position.opened_at == 1000.0
    assert plan.position.stop_loss_price == pytest.approx(90.0 - distances.stop_loss_distance)
    assert plan.position.take_profit_price == pytest.approx(90.0 + distances.take_profit_distance)

    kinds = [(o.kind, o.side) for o in plan.orders]
    assert kinds == [
        (OrderKind.MARKET, Signal.BUY),
        (OrderKind.STOP, Signal.SELL),
        (OrderKind.TAKE_PROFIT, Signal.SELL),
    ]
    assert all(o.quantity == 0.333 for o in plan.orders)
    assert plan.orders[1].trigger_price == plan.position.stop_loss_price
    assert plan.orders[2].trigger_price == plan.position.take_profit_price


def test_plan_entry_sell_mirrors_prices():
    strategy = ScalpingBBRsiStrategy(1.5, 2.0)
    window = breakout_window(110.0)
    plan = plan_entry(Signal.SELL, window, 0.273, strategy, _info(quantity_precision=3),
                      opened_at=0.0)
    assert plan.position.stop_loss_price > 110.0
    assert plan.position.take_profit_price < 110.0
    assert [o.side for o in plan.orders] == [Signal.SELL, Signal.BUY, Signal.BUY]


def test_plan_entry_skips_zero_distance_orders():
    strategy = ScalpingBBRsiStrategy(1.5, 2.0)
    window = make_window([100.0] * 10, spread=0.0)
    plan = plan_entry(Signal.BUY, window, 0.3, strategy, _info(quantity_precision=3),
                      opened_at=0.0)
    assert [o.kind for o in plan.orders] == [OrderKind.MARKET]
    assert plan.position.stop_loss_price is None
    assert plan.position.take_profit_price is None


def test_plan_entry_rejects_hold():
    strategy = ScalpingBBRsiStrategy(1.5, 2.0)
    with pytest.raises(ValueError):
        plan_entry(Signal.HOLD, breakout_window(90.0), 1.0, strategy, _info(),
                   opened_at=0.0)


def test_plan_entry_requires_asset_info():
    strategy = ScalpingBBRsiStrategy(1.5, 2.0)
    with pytest.raises(ConfigurationMissing):
        plan_entry(Signal.BUY, breakout_window(90.0), 1.0, strategy, None, opened_at=0.0)


# ── Cooldown ────────────────────────────────────────────────────────────────

def test_cooldown_window():
    assert not cooldown_active(None, 1000.0, 60)
    assert cooldown_active(1000.0, 1030.0, 60)
    assert not cooldown_active(1000.0, 1061.0, 60)
    assert not cooldown_active(1000.0, 1060.0, 60)
