from __future__ import annotations

"""Core datamodel objects used by the backtesting framework.

Lightweight dataclasses standardise the in-memory representation of bars,
trades, daily portfolio snapshots and the final performance report.

Design principles:
  * Immutable public records (``Bar``, ``Transaction``, ``PortfolioSnapshot``,
    ``PerformanceReport``) - created once and never mutated. (The ledger
    itself still mutates its cash / positions.)
  * Full precision internally; rounding happens only in ``as_dict()``, which
    returns JSON serialisable primitives with ``YYYY-MM-DD`` dates.
"""

import datetime as _dt
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

import numpy as np

from ..util.dates import format_date, parse_date
from .errors import InvalidDataError

Metric = Union[float, str]

BUY = 'BUY'
SELL = 'SELL'


@dataclass(frozen=True, slots=True)
class Bar:
    date: _dt.date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def from_record(cls, record: Union['Bar', Mapping[str, Any]]) -> 'Bar':
        """Build a bar from a mapping; open/high/low default to close, volume to 0."""
        if isinstance(record, Bar):
            return record
        close = float(record['close'])
        volume = record.get('volume')
        return cls(
            date=parse_date(record['date']),
            open=float(record.get('open', close)),
            high=float(record.get('high', close)),
            low=float(record.get('low', close)),
            close=close,
            volume=float(volume) if volume is not None else 0.0,
        )

    def as_dict(self) -> Dict[str, Any]:  # pragma: no cover - trivial
        return {
            'date': format_date(self.date),
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume,
        }


class InstrumentSeries:
    """Date-ordered, read-only bar series of a single ticker.

    Dates are strictly increasing and unique: input records are sorted and a
    duplicated date keeps its last occurrence.
    """

    __slots__ = ('ticker', 'bars', 'dates', 'closes')

    def __init__(self, ticker: str, bars: Iterable[Bar]):
        by_date: Dict[_dt.date, Bar] = {}
        for bar in bars:
            by_date[bar.date] = bar
        self.ticker = ticker
        self.bars: Tuple[Bar, ...] = tuple(by_date[d] for d in sorted(by_date))
        self.dates: Tuple[_dt.date, ...] = tuple(bar.date for bar in self.bars)
        closes = np.array([bar.close for bar in self.bars], dtype=float)
        closes.flags.writeable = False
        self.closes = closes

    @classmethod
    def from_records(cls, ticker: str, records: Iterable[Union[Bar, Mapping[str, Any]]]) -> 'InstrumentSeries':
        bars = []
        for record in records or ():
            try:
                bars.append(Bar.from_record(record))
            except (KeyError, TypeError, ValueError) as exc:
                raise InvalidDataError(f"Invalid price record for '{ticker}': {record!r} ({exc})") from exc
        return cls(ticker, bars)

    def __len__(self) -> int:
        return len(self.bars)

    def __iter__(self) -> Iterator[Bar]:
        return iter(self.bars)

    def bar_on(self, date: _dt.date) -> Optional[Bar]:
        i = bisect_right(self.dates, date)
        if i and self.dates[i - 1] == date:
            return self.bars[i - 1]
        return None

    def closes_until(self, date: _dt.date) -> np.ndarray:
        """Closes of every bar dated on or before ``date`` (read-only view)."""
        return self.closes[:bisect_right(self.dates, date)]

    def __repr__(self) -> str:  # pragma: no cover
        return f"InstrumentSeries(ticker={self.ticker!r}, bars={len(self.bars)})"


@dataclass(frozen=True, slots=True)
class Transaction:
    date: _dt.date
    type: str                # BUY / SELL
    ticker: str
    shares: int
    price: float
    cost: Optional[float]    # BUY only
    revenue: Optional[float]  # SELL only
    cash_after: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            'date': format_date(self.date),
            'type': self.type,
            'ticker': self.ticker,
            'shares': self.shares,
            'price': round(self.price, 4),
            'cost': round(self.cost, 2) if self.cost is not None else None,
            'revenue': round(self.revenue, 2) if self.revenue is not None else None,
            'cash_after': round(self.cash_after, 2),
        }


@dataclass(frozen=True, slots=True)
class PortfolioSnapshot:
    date: _dt.date
    cash: float
    positions: Dict[str, int]
    total_value: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            'date': format_date(self.date),
            'cash': round(self.cash, 2),
            'positions': dict(self.positions),
            'total_value': round(self.total_value, 2),
        }


@dataclass(frozen=True)
class PerformanceReport:
    initial_capital: float
    final_portfolio_value: float
    total_return_percent: float
    annualized_return_percent: Metric
    annualized_volatility_percent: Metric
    sharpe_ratio: Metric
    max_drawdown_percent: Metric
    calmar_ratio: Metric
    sortino_ratio: Metric
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)
    portfolio_history: Tuple[PortfolioSnapshot, ...] = field(default_factory=tuple)
    message: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'initial_capital': self.initial_capital,
            'final_portfolio_value': self.final_portfolio_value,
            'total_return_percent': self.total_return_percent,
            'annualized_return_percent': self.annualized_return_percent,
            'annualized_volatility_percent': self.annualized_volatility_percent,
            'sharpe_ratio': self.sharpe_ratio,
            'max_drawdown_percent': self.max_drawdown_percent,
            'calmar_ratio': self.calmar_ratio,
            'sortino_ratio': self.sortino_ratio,
            'transactions': [t.as_dict() for t in self.transactions],
            'portfolio_history': [s.as_dict() for s in self.portfolio_history],
        }
        if self.message is not None:
            out['message'] = self.message
        return out


__all__ = [
    'BUY',
    'SELL',
    'Metric',
    'Bar',
    'InstrumentSeries',
    'Transaction',
    'PortfolioSnapshot',
    'PerformanceReport',
]
