from __future__ import annotations

import math

import numpy as np

from ..util.indicators import bollinger_bands
from .base import HOLD, Signal, Strategy
from .params import BollingerParams


class BollingerBandsStrategy(Strategy):
    """Mean reversion on Bollinger Bands: buy below the lower band, sell above the upper."""

    name = "bollingerBands"
    description = "Buy close < lower band, sell close > upper band"
    params_type = BollingerParams

    def generate_signal(self, closes: np.ndarray) -> Signal:
        p = self.params
        bands = bollinger_bands(closes, p.window, p.num_std_dev)
        if math.isnan(bands.mean):
            return HOLD
        price = float(closes[-1])
        return Signal(buy=price < bands.lower, sell=price > bands.upper)


__all__ = ['BollingerBandsStrategy']
