from __future__ import annotations

import math

import numpy as np

from ..util.indicators import macd
from .base import HOLD, Signal, Strategy
from .params import MACDParams


class MACDStrategy(Strategy):
    """MACD line crossing its signal line.

    Today's and yesterday's lines both come from the trailing ``slow + signal``
    closes, so the first cross can fire on that many bars.
    """

    name = "MACD"
    description = "Buy MACD crossing above signal, sell crossing below"
    params_type = MACDParams

    def generate_signal(self, closes: np.ndarray) -> Signal:
        p = self.params
        if closes.size < p.slow + p.signal:
            return HOLD
        lines = macd(closes, p.fast, p.slow, p.signal)
        if any(math.isnan(v) for v in lines):
            return HOLD
        return Signal(
            buy=lines.prev_macd <= lines.prev_signal and lines.macd > lines.signal,
            sell=lines.prev_macd >= lines.prev_signal and lines.macd < lines.signal,
        )


__all__ = ['MACDStrategy']
