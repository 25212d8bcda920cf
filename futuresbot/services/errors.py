"""
Error kinds raised by the trading engine.

InsufficientData / ConfigurationMissing are setup problems: they abort the
cycle that hit them.  GatewayFailure wraps every exchange / transport error
so callers never see raw ccxt or requests exceptions.
"""
from typing import Optional


class BotError(Exception):
    """Base class for all bot errors."""


class InsufficientData(BotError):
    """Candle window shorter than an indicator's lookback."""

    def __init__(self, indicator: str, required: int, actual: int):
        self.indicator = indicator
        self.required = required
        self.actual = actual
        super().__init__(
            f"{indicator} needs at least {required} candles, got {actual}"
        )


class InsufficientBalance(BotError):
    def __init__(self, balance: Optional[float]):
        self.balance = balance
        super().__init__(f"Insufficient balance: {balance}")


class ConfigurationMissing(BotError):
    """Asset precision or strategy settings are absent."""


class InvalidConfig(ConfigurationMissing):
    """Configuration present but unusable (unknown key, non-positive ratio)."""


class GatewayFailure(BotError):
    """Any exchange call that failed: transport, auth or rejection."""

    def __init__(self, operation: str, cause: object):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")
