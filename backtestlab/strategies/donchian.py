from __future__ import annotations

import math

import numpy as np

from ..util.indicators import donchian_channel
from .base import HOLD, Signal, Strategy
from .params import DonchianParams


class DonchianBreakoutStrategy(Strategy):
    """Channel breakout on the closes of the ``window`` bars before today."""

    name = "donchianChannelBreakout"
    description = "Buy above prior highest close, sell below prior lowest close"
    params_type = DonchianParams

    def generate_signal(self, closes: np.ndarray) -> Signal:
        channel = donchian_channel(closes, self.params.window)
        if math.isnan(channel.highest):
            return HOLD
        price = float(closes[-1])
        return Signal(buy=price > channel.highest, sell=price < channel.lowest)


__all__ = ['DonchianBreakoutStrategy']
