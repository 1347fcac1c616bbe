from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..strategies.registry import get_strategy
from ..util.dates import DateLike, format_date, parse_date
from ..util.logger import get_logger
from .backtester import Backtester, InstrumentData
from .config import DEFAULT_INITIAL_CAPITAL
from .errors import BacktestError, InvalidParamsError

logger = get_logger(__name__)


def run_strategy(strategy_name: str,
                 instrument_data: InstrumentData,
                 simulation_start_date: DateLike,
                 strategy_params: Optional[Mapping[str, Any]] = None,
                 initial_capital: float = DEFAULT_INITIAL_CAPITAL) -> Dict[str, Any]:
    """Run one backtest and return the report dict, or ``{"error": message}``.

    The strategy is resolved and its parameters validated before the
    simulation starts; any ``BacktestError`` ends the run without a report.
    """
    try:
        strategy = get_strategy(strategy_name, params=strategy_params)
        report = Backtester(strategy, initial_capital=initial_capital).run(instrument_data, simulation_start_date)
    except BacktestError as exc:
        logger.warning("Backtest %s failed: %s", strategy_name, exc)
        return {'error': str(exc)}
    return report.as_dict()


@dataclass
class BacktestRequest:
    ticker: str
    strategy: str
    fetch_start: DateLike
    fetch_end: DateLike
    simulation_start: DateLike
    initial_capital: float = DEFAULT_INITIAL_CAPITAL
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'BacktestRequest':
        """Accept both snake_case and the camelCase request body keys."""
        def pick(snake: str, camel: str, default: Any = None) -> Any:
            value = raw.get(snake)
            return raw.get(camel, default) if value is None else value

        return cls(
            ticker=pick('ticker', 'ticker'),
            strategy=pick('strategy', 'strategyName'),
            fetch_start=pick('fetch_start', 'dataFetchStartDate'),
            fetch_end=pick('fetch_end', 'dataFetchEndDate'),
            simulation_start=pick('simulation_start', 'simulationStartDate'),
            initial_capital=pick('initial_capital', 'initialCapital', DEFAULT_INITIAL_CAPITAL),
            params=pick('params', 'strategyParams', {}) or {},
        )

    def validate(self) -> None:
        """Check required fields, capital and date ordering.

        Normalises the dates to ``datetime.date`` and the ticker to upper case.
        Raises:
            InvalidParamsError
        """
        if not all([self.ticker, self.strategy, self.fetch_start, self.fetch_end, self.simulation_start]):
            raise InvalidParamsError('Missing required backtest parameters.')
        try:
            capital = float(self.initial_capital)
        except (TypeError, ValueError):
            capital = float('nan')
        if not capital > 0:
            raise InvalidParamsError('Initial capital must be a positive number.')
        try:
            fetch_start = parse_date(self.fetch_start)
            fetch_end = parse_date(self.fetch_end)
            sim_start = parse_date(self.simulation_start)
        except ValueError as exc:
            raise InvalidParamsError(f"Invalid date: {exc}") from exc
        if fetch_start > fetch_end or sim_start > fetch_end or fetch_start > sim_start:
            raise InvalidParamsError('Invalid date range: Start dates cannot be after end dates.')
        self.ticker = str(self.ticker).strip().upper()
        self.initial_capital = capital
        self.fetch_start, self.fetch_end, self.simulation_start = fetch_start, fetch_end, sim_start


class BacktestEngine:
    """Fetch one ticker's history from a data provider and run a strategy on it."""

    def __init__(self, data_handler):
        self.data_handler = data_handler

    def run(self, request: BacktestRequest) -> Dict[str, Any]:
        try:
            request.validate()
        except InvalidParamsError as exc:
            logger.warning("Rejected backtest request: %s", exc)
            return {'error': str(exc)}

        bars = self.data_handler.get_stock_data(request.ticker, request.fetch_start, request.fetch_end)
        if not bars:
            message = (f"No historical data found for {request.ticker} from "
                       f"{format_date(request.fetch_start)} to {format_date(request.fetch_end)}.")
            logger.warning(message)
            return {'error': message}

        logger.info("Running %s on %s: %d bars fetched (%s .. %s), simulation from %s",
                    request.strategy, request.ticker, len(bars),
                    format_date(request.fetch_start), format_date(request.fetch_end),
                    format_date(request.simulation_start))
        return run_strategy(
            request.strategy,
            {request.ticker: bars},
            request.simulation_start,
            strategy_params=request.params,
            initial_capital=request.initial_capital,
        )


def run_backtest(request, data_handler) -> Dict[str, Any]:
    """Convenience wrapper: ``request`` may be a ``BacktestRequest`` or a request mapping."""
    if not isinstance(request, BacktestRequest):
        request = BacktestRequest.from_dict(request)
    return BacktestEngine(data_handler).run(request)


__all__ = ['run_strategy', 'BacktestRequest', 'BacktestEngine', 'run_backtest']
