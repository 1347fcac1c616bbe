from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..framework.models import Bar
from .dates import DateLike, format_date
from .logger import get_logger

logger = get_logger(__name__)

PRICE_COLUMNS = ['ticker', 'date', 'open', 'high', 'low', 'close']
SQLITE_SUFFIXES = {'.db', '.sqlite', '.sqlite3'}


class MarketDataHandler:
    """
    Historical daily prices from a local CSV file or SQLite database.

    CSV files need the columns ``ticker, date, open, high, low, close`` (an
    optional ``volume`` column is kept). SQLite databases use a
    ``stock_data`` table with the same columns and, optionally, a ``tickers``
    table listing the available symbols. Tickers are matched upper case.
    """

    def __init__(self, source: str):
        self.source = Path(source)
        self.kind = 'sqlite' if self.source.suffix.lower() in SQLITE_SUFFIXES else 'csv'
        self._frame: Optional[pd.DataFrame] = None
        # cache: (ticker, start, end) -> bars
        self.historical_data: Dict[Tuple[str, Optional[str], Optional[str]], List[Bar]] = {}

    # ---------- loading ----------
    def _load_csv(self) -> pd.DataFrame:
        if self._frame is None:
            if not self.source.exists():
                raise FileNotFoundError(f"Price file not found: {self.source}")
            df = pd.read_csv(self.source)
            df.columns = [str(c).strip().lower() for c in df.columns]
            missing = [c for c in PRICE_COLUMNS if c not in df.columns]
            if missing:
                raise ValueError(f"Price file {self.source} is missing columns: {missing}")
            df['ticker'] = df['ticker'].astype(str).str.strip().str.upper()
            df['date'] = pd.to_datetime(df['date']).dt.strftime('%Y-%m-%d')
            self._frame = df
            logger.info("Loaded %d price rows from %s", len(df), self.source)
        return self._frame

    def _connect(self) -> sqlite3.Connection:
        if not self.source.exists():
            raise FileNotFoundError(f"Database not found: {self.source}")
        return sqlite3.connect(str(self.source))

    def _query_sqlite(self, ticker: str, start: Optional[str], end: Optional[str]) -> pd.DataFrame:
        query = 'SELECT * FROM stock_data WHERE ticker = ?'
        params: List[str] = [ticker]
        if start:
            query += ' AND date >= ?'
            params.append(start)
        if end:
            query += ' AND date <= ?'
            params.append(end)
        query += ' ORDER BY date ASC'
        with closing(self._connect()) as conn:
            return pd.read_sql_query(query, conn, params=params)

    # ---------- public API ----------
    def get_stock_data(self, ticker: str,
                       start_date: Optional[DateLike] = None,
                       end_date: Optional[DateLike] = None) -> List[Bar]:
        """Bars of ``ticker`` with ``start_date <= date <= end_date``, oldest first.

        Either bound may be omitted. An unknown ticker yields an empty list.
        """
        ticker = str(ticker).strip().upper()
        start = format_date(start_date) if start_date else None
        end = format_date(end_date) if end_date else None
        cache_key = (ticker, start, end)
        if cache_key in self.historical_data:
            return self.historical_data[cache_key]

        if self.kind == 'sqlite':
            df = self._query_sqlite(ticker, start, end)
        else:
            frame = self._load_csv()
            mask = frame['ticker'] == ticker
            if start:
                mask &= frame['date'] >= start
            if end:
                mask &= frame['date'] <= end
            df = frame.loc[mask].sort_values('date', kind='stable')

        bars = [Bar.from_record(row) for row in df.to_dict('records')]
        logger.debug("Fetched %d bars for %s (%s .. %s)", len(bars), ticker, start, end)
        self.historical_data[cache_key] = bars
        return bars

    def get_unique_tickers(self) -> List[str]:
        """Sorted list of available tickers."""
        if self.kind == 'sqlite':
            with closing(self._connect()) as conn:
                tables = pd.read_sql_query("SELECT name FROM sqlite_master WHERE type = 'table'", conn)
                table = 'tickers' if 'tickers' in set(tables['name']) else 'stock_data'
                df = pd.read_sql_query(f'SELECT DISTINCT ticker FROM {table}', conn)
            tickers = df['ticker'].astype(str).str.upper()
        else:
            tickers = self._load_csv()['ticker']
        return sorted(set(tickers))


__all__ = ['MarketDataHandler', 'PRICE_COLUMNS']
