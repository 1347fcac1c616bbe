from __future__ import annotations

"""Performance metrics for a finished simulation.

Pure post-processing of the snapshot history; nothing here touches the
ledger. Percent and ratio fields are rounded to 2 decimals, undefined ratios
(zero volatility / drawdown) are reported as ``"N/A"`` strings.
"""

import datetime as _dt
from typing import Dict, Sequence

import numpy as np

from ..util.dates import format_date
from .config import ANNUALIZATION_FACTOR, RISK_FREE_RATE
from .errors import EmptyHistoryError
from .models import Metric, PerformanceReport, PortfolioSnapshot, Transaction

NOT_AVAILABLE = "N/A"
NO_DOWNSIDE = "N/A (No downside volatility)"
NOT_ENOUGH_RETURNS_MESSAGE = (
    "Not enough daily returns to calculate advanced metrics. This can happen if no trades "
    "were made or the simulation period is too short."
)

ADVANCED_METRICS = (
    'annualized_return_percent',
    'annualized_volatility_percent',
    'sharpe_ratio',
    'max_drawdown_percent',
    'calmar_ratio',
    'sortino_ratio',
)


def _round2(value: float) -> float:
    return round(float(value), 2)


def compute_daily_returns(values: np.ndarray) -> np.ndarray:
    """(v[i] - v[i-1]) / v[i-1] for i >= 1; 0 where the previous value is 0."""
    values = np.asarray(values, dtype=float)
    if values.size < 2:
        return np.empty(0, dtype=float)
    prev, curr = values[:-1], values[1:]
    out = np.zeros_like(curr)
    np.divide(curr - prev, prev, out=out, where=prev != 0)
    return out


def compute_max_drawdown(values: np.ndarray) -> float:
    """Most negative (value - running peak) / running peak; 0 for a never-falling curve."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return 0.0
    max_dd = 0.0
    peak = values[0]
    for value in values:
        if value > peak:
            peak = value
        if peak > 0:
            drawdown = (value - peak) / peak
            if drawdown < max_dd:
                max_dd = float(drawdown)
    return max_dd


def compute_equity_metrics(values: np.ndarray,
                           trading_days_per_year: int = ANNUALIZATION_FACTOR,
                           risk_free_rate: float = RISK_FREE_RATE) -> Dict[str, Metric]:
    """Annualised return / volatility and the risk-adjusted ratios of an equity curve.

    Returns ``"N/A"`` for every metric when fewer than two values are given.
    """
    daily_returns = compute_daily_returns(values)
    if daily_returns.size == 0:
        return {name: NOT_AVAILABLE for name in ADVANCED_METRICS}

    mean_daily = float(daily_returns.mean())
    annualized_return = (1 + mean_daily) ** trading_days_per_year - 1
    annualized_vol = float(daily_returns.std()) * np.sqrt(trading_days_per_year)

    metrics: Dict[str, Metric] = {
        'annualized_return_percent': _round2(annualized_return * 100),
        'annualized_volatility_percent': _round2(annualized_vol * 100),
    }
    if annualized_vol != 0:
        metrics['sharpe_ratio'] = _round2((annualized_return - risk_free_rate) / annualized_vol)
    else:
        metrics['sharpe_ratio'] = NOT_AVAILABLE

    max_dd = compute_max_drawdown(values)
    metrics['max_drawdown_percent'] = _round2(max_dd * 100)
    metrics['calmar_ratio'] = _round2(annualized_return / abs(max_dd)) if max_dd != 0 else NOT_AVAILABLE

    downside = daily_returns[daily_returns < 0]
    if downside.size == 0:
        metrics['sortino_ratio'] = NO_DOWNSIDE
    else:
        downside_dev = float(downside.std()) * np.sqrt(trading_days_per_year)
        if downside_dev != 0:
            metrics['sortino_ratio'] = _round2((annualized_return - risk_free_rate) / downside_dev)
        else:
            metrics['sortino_ratio'] = NOT_AVAILABLE
    return metrics


def analyze_performance(history: Sequence[PortfolioSnapshot],
                        transactions: Sequence[Transaction],
                        simulation_start_date: _dt.date,
                        trading_days_per_year: int = ANNUALIZATION_FACTOR,
                        risk_free_rate: float = RISK_FREE_RATE) -> PerformanceReport:
    """Build the PerformanceReport from a snapshot history.

    Raises:
        EmptyHistoryError: no snapshot on or after ``simulation_start_date``.
    """
    filtered = sorted((s for s in history if s.date >= simulation_start_date), key=lambda s: s.date)
    if not filtered:
        raise EmptyHistoryError(
            f"No portfolio history available from simulation start date {format_date(simulation_start_date)}. "
            f"This might indicate insufficient data or simulation period."
        )

    values = np.array([s.total_value for s in filtered], dtype=float)
    initial_value, final_value = float(values[0]), float(values[-1])
    total_return = (final_value / initial_value - 1) * 100 if initial_value != 0 else 0.0

    metrics = compute_equity_metrics(values, trading_days_per_year, risk_free_rate)
    message = NOT_ENOUGH_RETURNS_MESSAGE if values.size < 2 else None

    return PerformanceReport(
        initial_capital=_round2(initial_value),
        final_portfolio_value=_round2(final_value),
        total_return_percent=_round2(total_return),
        transactions=tuple(transactions),
        portfolio_history=tuple(history),
        message=message,
        **metrics,
    )


__all__ = [
    'NOT_AVAILABLE',
    'NO_DOWNSIDE',
    'NOT_ENOUGH_RETURNS_MESSAGE',
    'ADVANCED_METRICS',
    'compute_daily_returns',
    'compute_max_drawdown',
    'compute_equity_metrics',
    'analyze_performance',
]
