"""
Base strategy class with the shared Bollinger/RSI/volume signal logic.
All concrete variants inherit from this and only supply parameters.
"""
import logging
from typing import Optional, Sequence

from futuresbot.services.errors import InvalidConfig
from futuresbot.services.strategies.indicators import Indicators
from futuresbot.services.strategies.models import Candle, Signal, StopTargetDistances
from futuresbot.services.strategies.params import BBRsiParams

logger = logging.getLogger(__name__)


class BaseStrategy:
    """Mean-reversion entry on a Bollinger breach confirmed by RSI and volume.

    BUY  — close below the lower band, RSI oversold, volume above average.
    SELL — close above the upper band, RSI overbought, volume above average.
    """

    name = "BaseStrategy"

    def __init__(self, params: BBRsiParams,
                 stop_loss_ratio: Optional[float],
                 take_profit_ratio: Optional[float]) -> None:
        if not stop_loss_ratio or stop_loss_ratio <= 0:
            raise InvalidConfig(
                f"{self.name}: stop_loss_ratio must be a positive number, got {stop_loss_ratio!r}"
            )
        if not take_profit_ratio or take_profit_ratio <= 0:
            raise InvalidConfig(
                f"{self.name}: take_profit_ratio must be a positive number, got {take_profit_ratio!r}"
            )
        self._params = params
        self.stop_loss_ratio = float(stop_loss_ratio)
        self.take_profit_ratio = float(take_profit_ratio)

    @property
    def params(self) -> BBRsiParams:
        return self._params

    # ── Signal ──────────────────────────────────────────────────────────

    def signal(self, window: Sequence[Candle]) -> Signal:
        p = self._params
        last = window[-1]
        rsi = Indicators.rsi(window, p.rsi_period)
        bands = Indicators.bollinger_bands(window, p.bb_period, p.bb_k)
        avg_volume = Indicators.average_volume(window, p.volume_period)
        volume_ok = last.volume > avg_volume

        if last.close < bands.lower_band and rsi < p.rsi_oversold and volume_ok:
            logger.debug(
                f"{self.name}: BUY close={last.close} < lower={bands.lower_band:.6f}, RSI {rsi}"
            )
            return Signal.BUY
        if last.close > bands.upper_band and rsi > p.rsi_overbought and volume_ok:
            logger.debug(
                f"{self.name}: SELL close={last.close} > upper={bands.upper_band:.6f}, RSI {rsi}"
            )
            return Signal.SELL
        return Signal.HOLD

    # ── Stop / target distances ─────────────────────────────────────────

    def distances_for_stop_and_target(self, window: Sequence[Candle]) -> StopTargetDistances:
        atr = Indicators.atr(window, self._params.atr_period)
        return StopTargetDistances(
            stop_loss_distance=atr * self.stop_loss_ratio,
            take_profit_distance=atr * self.take_profit_ratio,
        )
