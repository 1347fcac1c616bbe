"""Technical indicators over chronologically ordered closing prices.

Every function is pure and stateless:
  * input is a 1-D sequence of closes, oldest first (list / tuple / ndarray)
  * the last element is "today"
  * when the sequence is too short the result is ``nan`` (or a tuple of
    ``nan``); callers must treat that as "no signal"

Indicators are recomputed from scratch on every call, there is no
incremental state. Stochastic and Donchian use close-to-close ranges rather
than intrabar high/low.
"""
from __future__ import annotations

from typing import NamedTuple, Sequence, Union

import numpy as np

Closes = Union[Sequence[float], np.ndarray]

NAN = float('nan')

# floor for the RSI loss denominator
RSI_EPSILON = 1e-10


class BollingerBands(NamedTuple):
    mean: float
    upper: float
    lower: float


class DonchianChannel(NamedTuple):
    highest: float
    lowest: float


class MACDLines(NamedTuple):
    macd: float
    signal: float
    prev_macd: float
    prev_signal: float


def as_array(closes: Closes) -> np.ndarray:
    return np.asarray(closes, dtype=float)


def sma(closes: Closes, window: int) -> float:
    """Mean of the trailing ``window`` closes."""
    arr = as_array(closes)
    if window <= 0 or arr.size < window:
        return NAN
    return float(arr[-window:].mean())


def population_std(closes: Closes, window: int) -> float:
    """Population standard deviation (ddof=0) of the trailing ``window`` closes."""
    arr = as_array(closes)
    if window <= 0 or arr.size < window:
        return NAN
    return float(arr[-window:].std())


def ema(closes: Closes, period: int) -> float:
    """Exponential moving average seeded with the SMA of the first ``period`` values."""
    arr = as_array(closes)
    if period <= 0 or arr.size < period:
        return NAN
    k = 2.0 / (period + 1)
    value = float(arr[:period].mean())
    for close in arr[period:]:
        value += k * (float(close) - value)
    return value


def rsi(closes: Closes, period: int) -> float:
    """RSI from simple (not Wilder) average gain/loss over ``period`` changes."""
    arr = as_array(closes)
    if period <= 0 or arr.size < period + 1:
        return NAN
    changes = np.diff(arr[-(period + 1):])
    avg_gain = float(changes[changes > 0].sum()) / period
    avg_loss = float(-changes[changes < 0].sum()) / period
    rs = avg_gain / max(avg_loss, RSI_EPSILON)
    return 100.0 - 100.0 / (1.0 + rs)


def bollinger_bands(closes: Closes, window: int, num_std_dev: float) -> BollingerBands:
    mean = sma(closes, window)
    if np.isnan(mean):
        return BollingerBands(NAN, NAN, NAN)
    sigma = population_std(closes, window)
    return BollingerBands(mean, mean + num_std_dev * sigma, mean - num_std_dev * sigma)


def donchian_channel(closes: Closes, window: int) -> DonchianChannel:
    """Highest / lowest close of the ``window`` bars before today (today excluded)."""
    arr = as_array(closes)
    if window <= 0 or arr.size < window + 1:
        return DonchianChannel(NAN, NAN)
    prior = arr[-(window + 1):-1]
    return DonchianChannel(float(prior.max()), float(prior.min()))


def stochastic_k(closes: Closes, k_period: int) -> float:
    """%K = (close - lowest close) / (highest close - lowest close) * 100.

    Returns ``nan`` for a flat window (zero range).
    """
    arr = as_array(closes)
    if k_period <= 0 or arr.size < k_period:
        return NAN
    window = arr[-k_period:]
    high = float(window.max())
    low = float(window.min())
    if high == low:
        return NAN
    return (float(arr[-1]) - low) / (high - low) * 100.0


def stochastic_d(closes: Closes, k_period: int, d_period: int) -> float:
    """%D = mean of %K recomputed at each of the last ``d_period`` offsets."""
    arr = as_array(closes)
    if d_period <= 0 or arr.size < k_period + d_period - 1:
        return NAN
    values = [stochastic_k(arr[:arr.size - offset], k_period) for offset in range(d_period)]
    return float(np.mean(values))


def macd(closes: Closes, fast: int, slow: int, signal: int) -> MACDLines:
    """MACD and signal lines for today and yesterday from the trailing ``slow + signal`` closes.

    The MACD line is EMA(fast) - EMA(slow) over that whole window. The
    ``signal + 1`` MACD values recomputed over each ``slow``-sized sub-window
    give the rest: the signal line is the mean of the last ``signal`` of them,
    yesterday's signal line the mean of the ``signal`` before that, and
    yesterday's MACD the value of the sub-window ending yesterday.
    """
    arr = as_array(closes)
    size = slow + signal
    if min(fast, slow, signal) <= 0 or arr.size < size:
        return MACDLines(NAN, NAN, NAN, NAN)
    window = arr[-size:]
    macd_line = ema(window, fast) - ema(window, slow)
    history = [
        ema(window[i:i + slow], fast) - ema(window[i:i + slow], slow)
        for i in range(size - slow + 1)
    ]
    signal_line = float(np.mean(history[-signal:]))
    prev_signal = float(np.mean(history[-signal - 1:-1]))
    return MACDLines(macd_line, signal_line, history[-2], prev_signal)


__all__ = [
    'BollingerBands',
    'DonchianChannel',
    'MACDLines',
    'RSI_EPSILON',
    'as_array',
    'sma',
    'population_std',
    'ema',
    'rsi',
    'bollinger_bands',
    'donchian_channel',
    'stochastic_k',
    'stochastic_d',
    'macd',
]
