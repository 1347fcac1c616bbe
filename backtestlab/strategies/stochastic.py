from __future__ import annotations

import math

import numpy as np

from ..util.indicators import stochastic_d, stochastic_k
from .base import HOLD, Signal, Strategy
from .params import StochasticParams


class StochasticOscillatorStrategy(Strategy):
    """%K / %D oscillator with oversold / overbought thresholds.

    Buy when %K is below ``oversold`` and above %D; sell when %K is above
    ``overbought`` and below %D.
    """

    name = "stochasticOscillator"
    description = "Buy %K < oversold and %K > %D, sell %K > overbought and %K < %D"
    params_type = StochasticParams

    def generate_signal(self, closes: np.ndarray) -> Signal:
        p = self.params
        if closes.size < p.k_period + p.d_period - 1:
            return HOLD
        k = stochastic_k(closes, p.k_period)
        d = stochastic_d(closes, p.k_period, p.d_period)
        if math.isnan(k) or math.isnan(d):
            return HOLD
        return Signal(
            buy=k < p.oversold and k > d,
            sell=k > p.overbought and k < d,
        )


__all__ = ['StochasticOscillatorStrategy']
