"""
FuturesBot entry point.

  python3 main.py           # backtest the configured strategy on the candle file
  python3 main.py --live    # trade on the configured gateway every poll interval

Configuration comes from the environment / ``.env`` (see futuresbot.config).
"""
import argparse
import asyncio
import atexit
import fcntl
import logging
import os
import signal
import sys

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from futuresbot.config import BotConfig, load_config
from futuresbot.services.backtester import Backtester, BacktestResult
from futuresbot.services.errors import BotError
from futuresbot.services.execution.factory import build_exchange_gateway
from futuresbot.services.strategies import create_strategy
from futuresbot.services.trading_bot import TradingBot

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _build_bot(config: BotConfig) -> TradingBot:
    strategy = create_strategy(
        config.strategy.key,
        config.strategy.stop_loss_ratio,
        config.strategy.take_profit_ratio,
    )
    logger.info(f"Strategy: {strategy.name} ({config.strategy.key}) on {config.symbol}")
    return TradingBot(config, strategy, build_exchange_gateway(config))


# ── Live ────────────────────────────────────────────────────────────────────

async def run_live(config: BotConfig) -> None:
    bot = _build_bot(config)
    await bot.configure()

    scheduler = AsyncIOScheduler()
    # one cycle at a time: a slow cycle delays the next, never overlaps it
    scheduler.add_job(
        bot.run_live_cycle, 'interval',
        seconds=config.poll_interval_seconds,
        id='trading_cycle',
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        f"Live trading started — mode: {bot.gateway.mode} | "
        f"poll: {config.poll_interval_seconds}s | cooldown: {config.cooldown_seconds}s"
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        await stop.wait()
    finally:
        logger.info("Shutting down...")
        scheduler.shutdown(wait=False)
        await bot.gateway.close()


# ── Backtest ────────────────────────────────────────────────────────────────

def run_backtest(config: BotConfig) -> BacktestResult:
    bot = _build_bot(config)

    # exchange filters come from the gateway; orders are never submitted
    async def _configure():
        try:
            await bot.configure()
        finally:
            await bot.gateway.close()

    asyncio.run(_configure())

    backtester = Backtester(bot, config.backtest)
    backtester.load()
    result = backtester.run()

    print(f"\n  ┌─ {result.strategy} | {config.symbol} | {result.start} → {result.end}")
    print(f"  │ Steps:   {result.steps}  {result.signal_counts}")
    print(f"  │ Trades:  {result.total_trades}  (W:{result.wins} L:{result.losses})")
    print(f"  │ Profit:  {result.total_profit:+.4f}  ({result.total_return_pct:+.2f}%)")
    print(f"  │ Balance: {result.initial_balance:.2f} → {result.final_balance:.2f}")
    if result.open_position is not None:
        print(f"  │ Open:    {result.open_position.direction.value} "
              f"{result.open_position.quantity} @ {result.open_position.entry_price}")
    print(f"  └{'─' * 60}\n")
    return result


# ── Single instance ─────────────────────────────────────────────────────────

_lock_file = None

def _acquire_instance_lock():
    """Ensure only ONE live bot trades the account at a time using an OS-level file lock."""
    global _lock_file
    lock_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), ".bot.lock")
    _lock_file = open(lock_path, "w")
    try:
        fcntl.flock(_lock_file, fcntl.LOCK_EX | fcntl.LOCK_NB)
        _lock_file.write(str(os.getpid()))
        _lock_file.flush()
        atexit.register(_release_instance_lock)
    except OSError:
        print(f"ERROR: Another bot instance is already running. "
              f"Kill it first or delete {lock_path}")
        sys.exit(1)

def _release_instance_lock():
    global _lock_file
    if _lock_file:
        fcntl.flock(_lock_file, fcntl.LOCK_UN)
        _lock_file.close()
        _lock_file = None


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="BB/RSI futures trading bot")
    parser.add_argument("--live", action="store_true",
                        help="Trade on the configured gateway instead of backtesting")
    args = parser.parse_args(argv)

    config = load_config()
    try:
        if args.live:
            _acquire_instance_lock()
            asyncio.run(run_live(config))
        else:
            run_backtest(config)
    except BotError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
