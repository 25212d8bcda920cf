"""
Backtesting Engine
==================
Replays a historical candle series through the TradingBot's replay step,
one sliding lookback window per candle.

Deterministic: the bot's replay state is reset at the start of every run,
so identical candles + configuration give identical counters and balance.

Known divergence from live: a position opened on one step is closed at
the next window's last close, whether or not price crossed its stop-loss
or take-profit level.  Live trading leaves closing to the exchange's
conditional orders.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from futuresbot.config import BacktestSettings
from futuresbot.services.errors import InsufficientData
from futuresbot.services.lifecycle import ClosedTrade, Position
from futuresbot.services.market_data import load_candles_file
from futuresbot.services.strategies.models import Candle
from futuresbot.services.trading_bot import TradingBot

logger = logging.getLogger(__name__)


# ── Data Classes ────────────────────────────────────────────────────────────

@dataclass
class BacktestResult:
    """Aggregate results of a backtest run."""
    strategy: str
    steps: int
    signal_counts: Dict[str, int]
    initial_balance: float
    final_balance: float
    total_profit: float
    wins: int
    losses: int
    start: str
    end: str
    trades: List[ClosedTrade] = field(default_factory=list)
    open_position: Optional[Position] = None

    @property
    def total_trades(self) -> int:
        return len(self.trades)

    @property
    def win_rate(self) -> float:
        return self.wins / len(self.trades) * 100 if self.trades else 0.0

    @property
    def total_return_pct(self) -> float:
        if self.initial_balance <= 0:
            return 0.0
        return self.total_profit / self.initial_balance * 100


def _iso(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).isoformat()


# ── Backtester ──────────────────────────────────────────────────────────────

class Backtester:
    """Runs the bot's decision path against historical data."""

    def __init__(self, bot: TradingBot, settings: BacktestSettings):
        self.bot = bot
        self.settings = settings
        self.data: List[Candle] = []

    def load(self) -> List[Candle]:
        """Load the configured candle file into ``data``."""
        self.data = load_candles_file(self.settings.candles_file)
        return self.data

    def run(self, candles: Optional[Sequence[Candle]] = None) -> BacktestResult:
        """Execute a full replay and return results.

        Steps run for every index ``i`` in ``[lookback, len(candles))`` on
        ``candles[i - lookback:i]``.  Any indicator or sizing error aborts
        the whole run; a lookback shorter than the strategy's indicators
        is rejected before the first step.
        """
        data = list(candles) if candles is not None else self.data
        lookback = self.settings.lookback_period
        min_window = self.bot.strategy.params.min_window
        if lookback < min_window:
            raise InsufficientData("backtest lookback", min_window, lookback)
        if len(data) <= lookback:
            raise InsufficientData("backtest", lookback + 1, len(data))

        initial_balance = self.settings.initial_balance
        self.bot.reset_replay(initial_balance)

        logger.info(f"Starting backtest for strategy: {self.bot.strategy.name}")
        logger.info(f"START: {_iso(data[0].timestamp)}")
        logger.info(f"END:   {_iso(data[-1].timestamp)}")
        logger.info(f"Initial Balance: {initial_balance}")

        steps = 0
        counter: Counter = Counter()
        for i in range(lookback, len(data)):
            window = data[i - lookback:i]
            signal = self.bot.backtest_step(window)
            steps += 1
            counter[signal.value] += 1

        trades = list(self.bot.closed_trades)
        final_balance = self.bot.available_balance
        result = BacktestResult(
            strategy=self.bot.strategy.name,
            steps=steps,
            signal_counts=dict(counter),
            initial_balance=initial_balance,
            final_balance=final_balance,
            total_profit=sum(t.profit for t in trades),
            wins=sum(1 for t in trades if t.profit > 0),
            losses=sum(1 for t in trades if t.profit < 0),
            start=_iso(data[0].timestamp),
            end=_iso(data[-1].timestamp),
            trades=trades,
            open_position=self.bot.position,
        )

        logger.info(f"steps {steps}")
        logger.info(f"operations {result.signal_counts}")
        logger.info(
            f"Total profit: {result.total_profit:.4f} "
            f"({result.total_trades} trades, final balance {final_balance:.2f})"
        )
        if result.open_position is not None:
            logger.info(f"Position still open at end: {result.open_position}")
        return result
