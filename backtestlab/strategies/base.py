from __future__ import annotations

import datetime as _dt
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import numpy as np

from ..framework.models import Bar, InstrumentSeries
from ..framework.portfolio import Portfolio
from .params import StrategyParams, coerce_params


@dataclass(frozen=True)
class Signal:
    """Trade intents for today. Both may be set (custom rules); entry wins when flat."""
    buy: bool = False
    sell: bool = False


HOLD = Signal()


class Strategy(ABC):
    """Base class of every built-in strategy.

    ``on_bar`` is called once per simulated date with:
      portfolio:     the run's ledger (the only thing a strategy may mutate)
      current_date:  the simulated date
      daily_bars:    ticker -> today's Bar, for tickers that traded today
      history:       ticker -> full InstrumentSeries (incl. warm-up bars)

    Only the first ticker of ``daily_bars`` is traded. Subclasses implement
    ``generate_signal`` as a pure function of the closes up to and including
    today; position sizing is shared: all-in on entry, full exit, long only.
    """

    name: str = "base_strategy"
    description: str = ""
    params_type: type = type(None)

    def __init__(self, params: Optional[StrategyParams | Mapping[str, Any]] = None):
        self.params = coerce_params(self.params_type, params)

    @abstractmethod
    def generate_signal(self, closes: np.ndarray) -> Signal:  # pragma: no cover
        raise NotImplementedError

    def on_bar(self,
               portfolio: Portfolio,
               current_date: _dt.date,
               daily_bars: Mapping[str, Bar],
               history: Mapping[str, InstrumentSeries]) -> None:
        if not daily_bars:
            return
        ticker = next(iter(daily_bars))
        series = history.get(ticker)
        if series is None or len(series) == 0:
            return
        closes = series.closes_until(current_date)
        if closes.size == 0:
            return
        price = float(daily_bars[ticker].close)
        if math.isnan(price) or price <= 0:
            return

        signal = self.generate_signal(closes)
        if signal.buy and portfolio.is_flat(ticker):
            shares = math.floor(portfolio.cash / price)
            if shares > 0:
                portfolio.buy(ticker, shares, price, current_date)
        elif signal.sell and not portfolio.is_flat(ticker):
            portfolio.sell(ticker, portfolio.shares_held(ticker), price, current_date)

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(params={self.params!r})"


__all__ = ['Signal', 'HOLD', 'Strategy']
