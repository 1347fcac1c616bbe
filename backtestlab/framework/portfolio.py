from __future__ import annotations

import datetime as _dt
from typing import Dict, List, Mapping

from ..util.logger import get_logger
from .models import BUY, SELL, PortfolioSnapshot, Transaction

logger = get_logger(__name__)


class Portfolio:
    """Cash / share ledger of one simulation run.

    ``buy`` and ``sell`` are the only operations that change cash or
    positions. A rejected trade (not enough cash, selling more than held) is a
    silent no-op, not an error. Each run must own a fresh instance.
    """

    def __init__(self, capital: float):
        self.initial_capital = float(capital)
        self.cash = float(capital)
        self.positions: Dict[str, int] = {}
        self.transactions: List[Transaction] = []
        self.history: List[PortfolioSnapshot] = []

    def shares_held(self, ticker: str) -> int:
        return self.positions.get(ticker, 0)

    def is_flat(self, ticker: str) -> bool:
        return self.shares_held(ticker) == 0

    def buy(self, ticker: str, shares: int, price: float, date: _dt.date) -> bool:
        shares = int(shares)
        cost = shares * price
        if shares <= 0 or self.cash < cost:
            return False
        self.cash -= cost
        self.positions[ticker] = self.positions.get(ticker, 0) + shares
        self.transactions.append(Transaction(
            date=date,
            type=BUY,
            ticker=ticker,
            shares=shares,
            price=price,
            cost=cost,
            revenue=None,
            cash_after=self.cash,
        ))
        logger.debug("[%s] BUY %d of %s at %.2f. Cash: %.2f", date, shares, ticker, price, self.cash)
        return True

    def sell(self, ticker: str, shares: int, price: float, date: _dt.date) -> bool:
        shares = int(shares)
        held = self.positions.get(ticker, 0)
        if shares <= 0 or held < shares:
            return False
        revenue = shares * price
        self.cash += revenue
        remaining = held - shares
        if remaining:
            self.positions[ticker] = remaining
        else:
            del self.positions[ticker]
        self.transactions.append(Transaction(
            date=date,
            type=SELL,
            ticker=ticker,
            shares=shares,
            price=price,
            cost=None,
            revenue=revenue,
            cash_after=self.cash,
        ))
        logger.debug("[%s] SELL %d of %s at %.2f. Cash: %.2f", date, shares, ticker, price, self.cash)
        return True

    def mark_to_market(self, date: _dt.date, prices: Mapping[str, float]) -> PortfolioSnapshot:
        """Value positions at ``prices`` and append a snapshot to the history."""
        total_value = self.cash
        for sym, shares in self.positions.items():
            px = prices.get(sym)
            if px is not None:
                total_value += px * shares
        snapshot = PortfolioSnapshot(date=date, cash=self.cash, positions=dict(self.positions), total_value=total_value)
        self.history.append(snapshot)
        return snapshot


__all__ = ['Portfolio']
