#!/usr/bin/env python3
"""
Backtest CLI — replay one or more strategies over a candle file.

Usage:
  python3 backtest_cli.py                              # configured strategy
  python3 backtest_cli.py -s conservative scalping     # side by side
  python3 backtest_cli.py -s all -b 1000 -L 100
  python3 backtest_cli.py --download 5000              # refresh candle file first
"""

import argparse
import asyncio
import logging
import sys
import time

from futuresbot.config import load_config
from futuresbot.services.backtester import Backtester, BacktestResult
from futuresbot.services.errors import BotError
from futuresbot.services.execution.exchange_adapter import AssetInfo
from futuresbot.services.execution.factory import build_exchange_gateway
from futuresbot.services.market_data import BinanceMarketData, save_candles_file
from futuresbot.services.strategies import create_strategy, strategy_keys
from futuresbot.services.trading_bot import TradingBot

logger = logging.getLogger(__name__)


def format_pct(val, width=8):
    """Percentage with ANSI colour."""
    s = f"{val:+.1f}%"
    if val > 0:
        return f"\033[92m{s:>{width}}\033[0m"  # green
    elif val < 0:
        return f"\033[91m{s:>{width}}\033[0m"  # red
    return f"{s:>{width}}"


def print_result(r: BacktestResult, symbol: str):
    """Detailed summary of a single run."""
    trades = r.trades
    wins = [t.profit for t in trades if t.profit > 0]
    losses = [t.profit for t in trades if t.profit < 0]
    avg_win = sum(wins) / len(wins) if wins else 0
    avg_loss = abs(sum(losses) / len(losses)) if losses else 1
    rr = avg_win / avg_loss if avg_loss > 0 else 0

    print(f"  ┌─ {r.strategy} | {symbol} | {r.start} → {r.end}")
    print(f"  │ Return: {format_pct(r.total_return_pct)}  (${r.final_balance:.2f})")
    print(f"  │ Steps:  {r.steps}  {r.signal_counts}")
    print(f"  │ Trades: {r.total_trades}  (W:{r.wins} L:{r.losses})")
    print(f"  │ WR: {r.win_rate:.1f}%  |  R:R: {rr:.2f}")
    if r.open_position is not None:
        p = r.open_position
        print(f"  │ Open:   {p.direction.value} {p.quantity} @ {p.entry_price}")
    print(f"  └{'─' * 60}")


def print_compare_table(results: list):
    """Comparison table across strategies."""
    if not results:
        return

    print()
    print(f"  {'Strategy':<24} {'Return':>8}  {'Final':>9}  {'Trd':>4}  {'W':>4}  {'L':>4}  {'WR':>4}")
    print(f"  {'─' * 66}")
    for r in results:
        print(f"  {r.strategy[:22]:<24} {format_pct(r.total_return_pct)}  "
              f"${r.final_balance:>8.2f}  {r.total_trades:>4}  {r.wins:>4}  {r.losses:>4}  "
              f"{r.win_rate:>3.0f}%")
    print(f"  {'─' * 66}")

    best = max(results, key=lambda x: x.total_return_pct)
    worst = min(results, key=lambda x: x.total_return_pct)
    print(f"\n  📊 Summary:")
    print(f"     Best:  {best.strategy} → {format_pct(best.total_return_pct)}")
    print(f"     Worst: {worst.strategy} → {format_pct(worst.total_return_pct)}")


def _asset_info(config) -> AssetInfo:
    """Exchange filters once, shared by every strategy run."""
    async def _fetch():
        gateway = build_exchange_gateway(config)
        try:
            return await gateway.fetch_asset_info()
        finally:
            await gateway.close()

    return asyncio.run(_fetch())


def main():
    parser = argparse.ArgumentParser(
        description="🚀 Backtest CLI — BB/RSI strategy replay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -s all                         # every strategy on the candle file
  %(prog)s -s scalping -L 100             # shorter lookback window
  %(prog)s --download 3000 -s all         # fetch 3000 fresh candles first
        """,
    )
    parser.add_argument("-s", "--strategies", nargs="+", default=None,
                        help=f"Strategies to test ({', '.join(strategy_keys())} or 'all')")
    parser.add_argument("-b", "--balance", type=float, default=None,
                        help="Initial balance (default: BACKTEST_INITIAL_BALANCE)")
    parser.add_argument("-L", "--lookback", type=int, default=None,
                        help="Candles per window (default: BACKTEST_LOOKBACK)")
    parser.add_argument("-f", "--file", default=None,
                        help="Candle file (default: BACKTEST_CANDLES_FILE)")
    parser.add_argument("--download", type=int, default=0, metavar="N",
                        help="Download the latest N candles into the candle file first")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every step")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    config = load_config()
    if args.balance is not None:
        config.backtest.initial_balance = args.balance
    if args.lookback is not None:
        config.backtest.lookback_period = args.lookback
    if args.file:
        config.backtest.candles_file = args.file

    if args.strategies is None:
        strategies = [config.strategy.key]
    elif "all" in args.strategies:
        strategies = strategy_keys()
    else:
        strategies = args.strategies

    print(f"\n{'═' * 65}")
    print(f"  🚀 BACKTEST CLI")
    print(f"  Symbol:      {config.symbol} ({config.kline_interval})")
    print(f"  Strategies:  {', '.join(strategies)}")
    print(f"  Leverage:    {config.leverage}x  |  Balance: ${config.backtest.initial_balance:.0f}")
    print(f"  Lookback:    {config.backtest.lookback_period}  |  File: {config.backtest.candles_file}")
    print(f"{'═' * 65}\n")

    try:
        if args.download:
            market = BinanceMarketData(config.client.base_url)
            rows = market.fetch_kline_history(config.symbol, config.kline_interval, args.download)
            save_candles_file(config.backtest.candles_file, rows)
            print(f"  Downloaded {len(rows)} candles → {config.backtest.candles_file}\n")

        asset_info = _asset_info(config)
    except BotError as e:
        print(f"  ❌ Error: {e}")
        return 1

    all_results = []
    candles = None
    for done, key in enumerate(strategies, start=1):
        print(f"  [{done}/{len(strategies)}] {key} ...", end="", flush=True)
        t0 = time.time()
        try:
            strategy = create_strategy(key, config.strategy.stop_loss_ratio,
                                       config.strategy.take_profit_ratio)
            bot = TradingBot(config, strategy)
            bot.use_asset_info(asset_info)
            backtester = Backtester(bot, config.backtest)
            if candles is None:
                candles = backtester.load()
            result = backtester.run(candles)
        except BotError as e:
            print(f" ❌ FAILED: {e}")
            continue
        elapsed = time.time() - t0
        print(f" {format_pct(result.total_return_pct)}  ({result.total_trades} trades, {elapsed:.1f}s)")
        all_results.append(result)

    print()
    if len(strategies) == 1 and all_results:
        print_result(all_results[0], config.symbol)
    elif all_results:
        print_compare_table(all_results)
    print()
    return 0 if all_results else 1


if __name__ == "__main__":
    sys.exit(main())
