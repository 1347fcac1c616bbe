from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence, Union

from ..util.dates import DateLike, format_date, parse_date
from ..util.logger import get_logger
from .config import ANNUALIZATION_FACTOR, DEFAULT_INITIAL_CAPITAL, RISK_FREE_RATE
from .errors import EmptyRangeError, InvalidParamsError, NoDataError
from .models import Bar, InstrumentSeries, PerformanceReport
from .performance import analyze_performance
from .portfolio import Portfolio

logger = get_logger(__name__)

InstrumentData = Mapping[str, Union[InstrumentSeries, Sequence[Union[Bar, Mapping[str, Any]]]]]


class Backtester:
    """Daily calendar walk of one strategy over one or more instrument series.

    The ``Portfolio`` is local to each ``run``: an instance keeps no ledger
    state, and the ledger comes back as the report's transactions and
    snapshot history. The strategy is called exactly once per simulated date
    and is the only caller of ``buy`` / ``sell``.
    Bars dated before the simulation start are never simulated but remain
    visible to the strategy as indicator warm-up history.
    """

    def __init__(self,
                 strategy,
                 initial_capital: float = DEFAULT_INITIAL_CAPITAL,
                 annualization_factor: int = ANNUALIZATION_FACTOR,
                 risk_free_rate: float = RISK_FREE_RATE):
        self.strategy = strategy
        self.initial_capital = float(initial_capital)
        self.annualization_factor = annualization_factor
        self.risk_free_rate = risk_free_rate

    @staticmethod
    def normalize(data: InstrumentData) -> Dict[str, InstrumentSeries]:
        series: Dict[str, InstrumentSeries] = {}
        for ticker, records in (data or {}).items():
            if isinstance(records, InstrumentSeries):
                series[ticker] = records
            else:
                series[ticker] = InstrumentSeries.from_records(ticker, records)
        return series

    def run(self, data: InstrumentData, simulation_start_date: DateLike) -> PerformanceReport:
        try:
            start = parse_date(simulation_start_date)
        except (TypeError, ValueError) as exc:
            raise InvalidParamsError(f"Invalid simulation start date: {simulation_start_date!r}") from exc

        history = self.normalize(data)
        if not any(len(s) for s in history.values()):
            raise NoDataError("No instrument data provided to the simulation.")

        calendar = sorted({d for s in history.values() for d in s.dates})
        sim_dates = [d for d in calendar if d >= start]
        if not sim_dates:
            raise EmptyRangeError(
                f"No simulation dates found after {format_date(start)} in the fetched data."
            )

        portfolio = Portfolio(self.initial_capital)
        last_close: Dict[str, float] = {}

        logger.info("Simulating %s over %d dates (%s .. %s), %d ticker(s)",
                    getattr(self.strategy, 'name', type(self.strategy).__name__),
                    len(sim_dates), format_date(sim_dates[0]), format_date(sim_dates[-1]), len(history))

        for dt in sim_dates:
            daily_bars: Dict[str, Bar] = {}
            for ticker, series in history.items():
                bar = series.bar_on(dt)
                if bar is not None:
                    daily_bars[ticker] = bar
            if not daily_bars:
                continue
            self.strategy.on_bar(portfolio, dt, daily_bars, history)
            for ticker, bar in daily_bars.items():
                last_close[ticker] = bar.close
            portfolio.mark_to_market(dt, last_close)

        logger.info("Simulation finished: %d transactions, %d snapshots",
                    len(portfolio.transactions), len(portfolio.history))
        return analyze_performance(
            portfolio.history,
            portfolio.transactions,
            start,
            self.annualization_factor,
            self.risk_free_rate,
        )


__all__ = ['Backtester', 'InstrumentData']
