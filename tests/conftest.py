import sys
from pathlib import Path

import pytest

# make the top-level package importable without installing it
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from futuresbot.services.execution.exchange_adapter import AssetInfo  # noqa: E402
from futuresbot.services.strategies.models import Candle  # noqa: E402


def make_candle(close, volume=10.0, ts=0, spread=0.5):
    return Candle(
        timestamp=ts,
        open=close,
        high=close + spread,
        low=close - spread,
        close=close,
        volume=volume,
    )


def make_window(closes, volumes=None, start_ts=0, step_ms=60_000, spread=0.5):
    volumes = volumes or [10.0] * len(closes)
    return [
        make_candle(c, v, start_ts + i * step_ms, spread)
        for i, (c, v) in enumerate(zip(closes, volumes))
    ]


def breakout_window(last_close, size=25, base=100.0, last_volume=100.0):
    """Flat closes at ``base`` then one candle at ``last_close`` on high volume."""
    closes = [base] * (size - 1) + [last_close]
    volumes = [10.0] * (size - 1) + [last_volume]
    return make_window(closes, volumes)


class FakeMarketData:
    """Stands in for BinanceMarketData: no network."""

    def __init__(self, candles, asset_info):
        self.candles = candles
        self.asset_info = asset_info
        self.kline_calls = []
        self.closed = False

    def fetch_klines(self, symbol, interval="1m", limit=500):
        self.kline_calls.append((symbol, interval, limit))
        return list(self.candles)

    def fetch_asset_info(self, symbol, asset):
        return self.asset_info

    def close(self):
        self.closed = True


@pytest.fixture
def asset_info():
    return AssetInfo(
        asset="DOGE",
        price_precision=5,
        quantity_precision=3,
        min_qty=0.001,
        min_notional=5.0,
    )
