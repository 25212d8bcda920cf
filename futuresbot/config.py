"""
Configuration — pydantic settings populated from the environment.

A ``.env`` file in the working directory is loaded first; defaults trade
DOGE/USDT with the scalping strategy on 1m candles.
"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ClientSettings(BaseModel):
    execution_mode: str = "paper"       # paper | testnet | live
    api_key: str = ""
    api_secret: str = ""
    base_url: str = "https://fapi.binance.com/fapi/v1"


class StrategySettings(BaseModel):
    key: str = "scalping"
    take_profit_ratio: Optional[float] = 2.0
    stop_loss_ratio: Optional[float] = 1.5


class BacktestSettings(BaseModel):
    initial_balance: float = 100.0
    candles_file: str = "database/dogeusdt1m.json"
    lookback_period: int = 200


class BotConfig(BaseModel):
    asset: str = "DOGE"
    counter_asset: str = "USDT"
    leverage: int = 15
    risk_percentage: float = 0.02
    kline_interval: str = "1m"
    kline_limit: int = 500
    poll_interval_seconds: float = 3.0
    cooldown_seconds: float = 60.0
    client: ClientSettings = Field(default_factory=ClientSettings)
    strategy: StrategySettings = Field(default_factory=StrategySettings)
    backtest: BacktestSettings = Field(default_factory=BacktestSettings)

    @property
    def symbol(self) -> str:
        return f"{self.asset}{self.counter_asset}"


def _env(name: str, default=None):
    value = os.getenv(name)
    return default if value is None or value.strip() == "" else value.strip()


def _optional_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = _env(name)
    if raw is None:
        return default
    if raw.lower() in ("none", "null"):
        return None
    return float(raw)


def load_config() -> BotConfig:
    """Build BotConfig from environment variables (after loading ``.env``)."""
    load_dotenv()
    defaults = BotConfig()
    config = BotConfig(
        asset=_env("BOT_ASSET", defaults.asset),
        counter_asset=_env("BOT_COUNTER_ASSET", defaults.counter_asset),
        leverage=int(_env("BOT_LEVERAGE", defaults.leverage)),
        risk_percentage=float(_env("BOT_RISK_PERCENTAGE", defaults.risk_percentage)),
        kline_interval=_env("BOT_KLINE_INTERVAL", defaults.kline_interval),
        kline_limit=int(_env("BOT_KLINE_LIMIT", defaults.kline_limit)),
        poll_interval_seconds=float(_env("BOT_POLL_INTERVAL", defaults.poll_interval_seconds)),
        cooldown_seconds=float(_env("BOT_COOLDOWN_SECONDS", defaults.cooldown_seconds)),
        client=ClientSettings(
            execution_mode=_env("EXECUTION_MODE", "paper").lower(),
            api_key=_env("BINANCE_API_KEY", ""),
            api_secret=_env("BINANCE_API_SECRET", ""),
            base_url=_env("BINANCE_FUTURES_URL", defaults.client.base_url),
        ),
        strategy=StrategySettings(
            key=_env("STRATEGY", defaults.strategy.key),
            take_profit_ratio=_optional_float("TAKE_PROFIT_RATIO", defaults.strategy.take_profit_ratio),
            stop_loss_ratio=_optional_float("STOP_LOSS_RATIO", defaults.strategy.stop_loss_ratio),
        ),
        backtest=BacktestSettings(
            initial_balance=float(_env("BACKTEST_INITIAL_BALANCE", defaults.backtest.initial_balance)),
            candles_file=_env("BACKTEST_CANDLES_FILE", defaults.backtest.candles_file),
            lookback_period=int(_env("BACKTEST_LOOKBACK", defaults.backtest.lookback_period)),
        ),
    )
    logger.debug(f"Loaded config: {config.model_dump(exclude={'client': {'api_key', 'api_secret'}})}")
    return config
