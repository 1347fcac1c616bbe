"""Reusable price/indicator condition checks for rule-based strategies.

These are the primitive checks a custom rule is composed of.

Design goals:
  * Stateless pure functions over a closes array (last element = today)
  * Boundary checks return False when data is insufficient
  * Naming convention: `is_*` returning bool

They never mutate the input sequence.
"""
from __future__ import annotations

import math

from .indicators import Closes, bollinger_bands, rsi, sma, as_array

COMPARISON_OPERATORS = frozenset({'lt', 'gt', 'eq'})
MA_DIRECTIONS = frozenset({'above', 'below'})
BANDS = frozenset({'upper', 'lower'})
CROSS_DIRECTIONS = frozenset({'crossAbove', 'crossBelow'})


def compare(value: float, operator: str, threshold: float) -> bool:
    """``value <operator> threshold``; NaN never satisfies a comparison."""
    if value is None or math.isnan(value):
        return False
    if operator == 'lt':
        return value < threshold
    if operator == 'gt':
        return value > threshold
    if operator == 'eq':
        return value == threshold
    raise ValueError(f"Unknown comparison operator: {operator}")


def is_price_threshold(closes: Closes, operator: str, value: float) -> bool:
    """Today's close compared against a fixed price."""
    arr = as_array(closes)
    if arr.size == 0:
        return False
    return compare(float(arr[-1]), operator, value)


def is_ma_aligned(closes: Closes, short_window: int, long_window: int, direction: str) -> bool:
    """Short SMA above (or below) the long SMA as of today."""
    short_ma = sma(closes, short_window)
    long_ma = sma(closes, long_window)
    if math.isnan(short_ma) or math.isnan(long_ma):
        return False
    if direction == 'above':
        return short_ma > long_ma
    if direction == 'below':
        return short_ma < long_ma
    raise ValueError(f"Unknown MA direction: {direction}")


def is_rsi(closes: Closes, period: int, operator: str, value: float) -> bool:
    return compare(rsi(closes, period), operator, value)


def is_band_cross(closes: Closes, window: int, num_std_dev: float, band: str, direction: str) -> bool:
    """Close crossed a Bollinger band between yesterday and today.

    crossAbove: yesterday close <= yesterday band and today close > today band
    crossBelow: yesterday close >= yesterday band and today close < today band
    """
    arr = as_array(closes)
    if window <= 0 or arr.size < window + 1:
        return False
    today = bollinger_bands(arr, window, num_std_dev)
    yesterday = bollinger_bands(arr[:-1], window, num_std_dev)
    if band == 'upper':
        level, prev_level = today.upper, yesterday.upper
    elif band == 'lower':
        level, prev_level = today.lower, yesterday.lower
    else:
        raise ValueError(f"Unknown Bollinger band: {band}")
    close, prev_close = float(arr[-1]), float(arr[-2])
    if direction == 'crossAbove':
        return prev_close <= prev_level and close > level
    if direction == 'crossBelow':
        return prev_close >= prev_level and close < level
    raise ValueError(f"Unknown cross direction: {direction}")


__all__ = [
    'COMPARISON_OPERATORS',
    'MA_DIRECTIONS',
    'BANDS',
    'CROSS_DIRECTIONS',
    'compare',
    'is_price_threshold',
    'is_ma_aligned',
    'is_rsi',
    'is_band_cross',
]
