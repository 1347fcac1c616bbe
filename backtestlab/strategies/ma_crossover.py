from __future__ import annotations

import math

import numpy as np

from ..util.indicators import sma
from .base import HOLD, Signal, Strategy
from .params import MACrossoverParams


class MACrossoverStrategy(Strategy):
    """Golden cross / death cross of two simple moving averages.

    Buy when the short MA moves from <= to > the long MA, sell on the reverse
    (>= to <). Yesterday's MAs are computed on the closes without today, so
    ``long_window + 1`` bars are needed.
    """

    name = "maCrossover"
    description = "Short/long SMA golden cross entry, death cross exit"
    params_type = MACrossoverParams

    def generate_signal(self, closes: np.ndarray) -> Signal:
        p = self.params
        if closes.size < p.long_window + 1:
            return HOLD
        previous = closes[:-1]
        short_ma, long_ma = sma(closes, p.short_window), sma(closes, p.long_window)
        prev_short, prev_long = sma(previous, p.short_window), sma(previous, p.long_window)
        if any(math.isnan(v) for v in (short_ma, long_ma, prev_short, prev_long)):
            return HOLD
        return Signal(
            buy=short_ma > long_ma and prev_short <= prev_long,
            sell=short_ma < long_ma and prev_short >= prev_long,
        )


__all__ = ['MACrossoverStrategy']
