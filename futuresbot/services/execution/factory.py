"""
Gateway factory — maps EXECUTION_MODE to an ExchangeGateway constructor.

Values: 'paper' (default) | 'testnet' | 'live'.
testnet/live require BINANCE_API_KEY and BINANCE_API_SECRET; without them
the factory falls back to paper mode.
"""
import logging
from types import MappingProxyType
from typing import Callable, Mapping

from futuresbot.config import BotConfig
from futuresbot.services.execution.ccxt_adapter import CCXTExchangeAdapter
from futuresbot.services.execution.exchange_adapter import ExchangeGateway
from futuresbot.services.execution.paper_adapter import PaperExchangeAdapter
from futuresbot.services.market_data import BinanceMarketData

logger = logging.getLogger(__name__)


def _paper(config: BotConfig) -> ExchangeGateway:
    logger.info("Execution mode: PAPER (simulated)")
    return PaperExchangeAdapter(
        BinanceMarketData(config.client.base_url),
        asset=config.asset,
        quote_asset=config.counter_asset,
        interval=config.kline_interval,
        limit=config.kline_limit,
        initial_balance=config.backtest.initial_balance,
    )


def _ccxt(testnet: bool) -> Callable[[BotConfig], ExchangeGateway]:
    def build(config: BotConfig) -> ExchangeGateway:
        client = config.client
        if not client.api_key or not client.api_secret:
            logger.warning(
                f"EXECUTION_MODE={client.execution_mode} but BINANCE_API_KEY/SECRET not set — "
                f"falling back to paper mode"
            )
            return _paper(config)
        if testnet:
            logger.info("Execution mode: TESTNET (Binance Futures demo)")
        else:
            logger.info("⚠️  Execution mode: LIVE — REAL MONEY ⚠️")
        return CCXTExchangeAdapter(
            client.api_key,
            client.api_secret,
            asset=config.asset,
            quote_asset=config.counter_asset,
            interval=config.kline_interval,
            limit=config.kline_limit,
            testnet=testnet,
        )
    return build


_GATEWAYS: Mapping[str, Callable[[BotConfig], ExchangeGateway]] = MappingProxyType({
    "paper": _paper,
    "testnet": _ccxt(testnet=True),
    "live": _ccxt(testnet=False),
})


def build_exchange_gateway(config: BotConfig) -> ExchangeGateway:
    mode = config.client.execution_mode
    builder = _GATEWAYS.get(mode)
    if builder is None:
        logger.warning(f"Unknown EXECUTION_MODE '{mode}' — falling back to paper")
        builder = _paper
    return builder(config)
