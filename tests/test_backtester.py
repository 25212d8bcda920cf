import json
import math

import pytest

from conftest import breakout_window, make_window
from futuresbot.config import BacktestSettings, BotConfig
from futuresbot.services.backtester import Backtester
from futuresbot.services.errors import InsufficientData
from futuresbot.services.market_data import load_candles_file, save_candles_file
from futuresbot.services.strategies import ScalpingBBRsiStrategy, Signal
from futuresbot.services.trading_bot import TradingBot


def _backtester(asset_info, lookback=25, balance=100.0):
    bot = TradingBot(BotConfig(), ScalpingBBRsiStrategy(1.5, 2.0))
    bot.use_asset_info(asset_info)
    settings = BacktestSettings(initial_balance=balance, lookback_period=lookback)
    return Backtester(bot, settings)


def _noisy_series(n=200):
    closes = [100 + 4 * math.sin(i / 3.0) + 2 * math.sin(i * 1.7) for i in range(n)]
    volumes = [10.0 + (25.0 if i % 6 == 0 else 0.0) for i in range(n)]
    return make_window(closes, volumes)


def test_single_trade_round_trip(asset_info):
    candles = breakout_window(90.0)
    candles += make_window([95.0, 96.0], start_ts=candles[-1].timestamp + 60_000)

    result = _backtester(asset_info).run(candles)

    assert result.steps == 2
    assert result.signal_counts == {Signal.BUY.value: 1, Signal.HOLD.value: 1}
    assert result.total_trades == 1
    trade = result.trades[0]
    assert trade.exit_price == 95.0
    assert trade.profit == pytest.approx(5.0 * trade.position.quantity)
    assert result.final_balance == pytest.approx(100.0 + trade.profit)
    assert result.wins == 1 and result.losses == 0
    assert result.open_position is None


def test_steps_cover_every_index_after_lookback(asset_info):
    candles = _noisy_series(120)
    result = _backtester(asset_info, lookback=30).run(candles)
    assert result.steps == 120 - 30
    assert sum(result.signal_counts.values()) == result.steps


def test_replay_is_deterministic(asset_info):
    candles = _noisy_series()
    backtester = _backtester(asset_info)
    first = backtester.run(candles)
    second = backtester.run(candles)
    assert first.signal_counts == second.signal_counts
    assert first.final_balance == second.final_balance
    assert len(first.trades) == len(second.trades)


def test_position_left_open_at_end_is_reported(asset_info):
    candles = breakout_window(90.0)
    candles += make_window([95.0], start_ts=candles[-1].timestamp + 60_000)

    result = _backtester(asset_info).run(candles)

    assert result.steps == 1
    assert result.total_trades == 0
    assert result.open_position is not None
    assert result.final_balance == 100.0


def test_series_not_longer_than_lookback_raises(asset_info):
    with pytest.raises(InsufficientData) as exc:
        _backtester(asset_info, lookback=25).run(make_window([100.0] * 25))
    assert exc.value.required == 26
    assert exc.value.actual == 25


def test_lookback_shorter_than_indicators_raises(asset_info):
    backtester = _backtester(asset_info, lookback=10)
    with pytest.raises(InsufficientData) as exc:
        backtester.run(_noisy_series(50))
    # scalping needs 20 candles for the volume average
    assert exc.value.indicator == "backtest lookback"
    assert exc.value.required == 20
    assert exc.value.actual == 10
    assert backtester.bot.closed_trades == []


def test_result_metrics():
    from futuresbot.services.backtester import BacktestResult

    result = BacktestResult(
        strategy="s", steps=0, signal_counts={}, initial_balance=100.0,
        final_balance=110.0, total_profit=10.0, wins=0, losses=0,
        start="", end="",
    )
    assert result.total_return_pct == pytest.approx(10.0)
    assert result.win_rate == 0.0


def test_load_candles_from_file(tmp_path, asset_info):
    rows = [[60_000 * i, "1.0", "1.5", "0.5", str(100 + i), "10.0", 0, "0"] for i in range(30)]
    path = save_candles_file(tmp_path / "candles.json", rows)

    backtester = _backtester(asset_info)
    backtester.settings.candles_file = str(path)
    candles = backtester.load()

    assert len(candles) == 30
    assert candles[0].close == 100.0
    assert candles[-1].timestamp == 60_000 * 29
    assert backtester.run().steps == 5


def test_empty_candle_file(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps([]))
    with pytest.raises(InsufficientData):
        load_candles_file(path)
