"""
Market data service — Binance USDⓈ-M futures public REST + candle files.

Public endpoints only (klines, exchangeInfo): no API key needed, so the
paper gateway and the backtest downloader can both use it.
"""
import json
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union

import requests

from futuresbot.services.errors import GatewayFailure, InsufficientData
from futuresbot.services.execution.exchange_adapter import AssetInfo
from futuresbot.services.strategies.models import Candle

logger = logging.getLogger(__name__)

FUTURES_URL = "https://fapi.binance.com/fapi/v1"
MAX_KLINES_PER_REQUEST = 1500


class BinanceMarketData:
    """Blocking client for Binance Futures public market data."""

    def __init__(self, base_url: str = FUTURES_URL, timeout: int = 15):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "User-Agent": "FuturesBot/1.0",
        })

    # ── Core API request ──────────────────────────────────────────────────

    def _api_request(self, endpoint: str, params: Optional[dict] = None):
        url = f"{self.base_url}{endpoint}"
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Binance request {endpoint} failed: {e}")
            raise GatewayFailure(f"GET {endpoint}", e) from e
        except ValueError as e:
            # body was not JSON
            raise GatewayFailure(f"GET {endpoint}", e) from e

    # ── Klines ────────────────────────────────────────────────────────────

    def fetch_klines(self, symbol: str, interval: str = "1m",
                     limit: int = 500) -> List[Candle]:
        """Most recent ``limit`` candles, oldest first."""
        data = self._api_request("/klines", params={
            "symbol": symbol, "interval": interval, "limit": limit,
        })
        return [Candle.from_kline(row) for row in data]

    def fetch_kline_history(self, symbol: str, interval: str,
                            total: int) -> List[list]:
        """Fetch ``total`` raw kline rows, paginating backwards.

        Binance caps a single request at 1500 candles.  Rows are returned
        oldest first in the exchange's positional format so they can be
        written straight to a candle file.
        """
        rows: List[list] = []
        remaining = total
        end_time = None     # start from most recent and go backwards

        while remaining > 0:
            batch = min(remaining, MAX_KLINES_PER_REQUEST)
            params = {"symbol": symbol, "interval": interval, "limit": batch}
            if end_time:
                params["endTime"] = end_time

            data = self._api_request("/klines", params=params)
            if not data:
                break

            rows = list(data) + rows    # prepend (oldest first)
            remaining -= len(data)

            if len(data) < batch:
                break  # no more data available

            end_time = int(data[0][0]) - 1
            time.sleep(0.15)

        logger.info(f"Fetched {len(rows)} klines ({interval}) for {symbol}")
        return rows

    # ── Exchange filters ──────────────────────────────────────────────────

    def fetch_asset_info(self, symbol: str, asset: str) -> AssetInfo:
        """Precision and LOT_SIZE / MIN_NOTIONAL filters for ``symbol``."""
        data = self._api_request("/exchangeInfo")
        info = next(
            (s for s in data.get("symbols", []) if s.get("symbol") == symbol),
            None,
        )
        if info is None:
            raise GatewayFailure("exchangeInfo", f"symbol not found: {symbol}")
        return AssetInfo.from_binance_symbol(info, asset)

    def close(self) -> None:
        self._session.close()


# ── Candle files ────────────────────────────────────────────────────────────

def load_candles_file(path: Union[str, Path]) -> List[Candle]:
    """Load a JSON array of positional kline rows, oldest first."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        rows = json.load(fh)
    candles = [Candle.from_kline(row) for row in rows]
    if not candles:
        raise InsufficientData("candle file", 1, 0)
    logger.info(f"Loaded {len(candles)} candles from {path}")
    return candles


def save_candles_file(path: Union[str, Path], rows: Sequence[Sequence]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump([list(r) for r in rows], fh)
    logger.info(f"Saved {len(rows)} klines to {path}")
    return path
