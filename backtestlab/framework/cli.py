"""backtestlab command line entry point.

Commands:
  backtest         run one strategy over one ticker
  tickers          list the tickers available in the data source
  data             print the stored bars of a ticker
  list-strategies  list the built-in strategies

Usage examples:
  # moving average crossover, 2022 data, simulate from March
  python -m backtestlab.framework.cli backtest --data data/prices.csv --ticker AAPL \\
      --strategy maCrossover --params '{"shortWindow": 5, "longWindow": 20}' \\
      --fetch-start 2022-01-01 --start 2022-03-01 --fetch-end 2022-12-31

  # YAML config, command line flags override it
  python -m backtestlab.framework.cli backtest --config configs/backtest.yaml --initial 50000
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

import pandas as pd

from ..strategies.registry import list_strategies
from ..util.logger import get_logger, setup_logging
from ..util.market_data_handler import MarketDataHandler
from .config import DEFAULT_INITIAL_CAPITAL, Settings, load_yaml_config, merge_config_and_args
from .engine import BacktestRequest, run_backtest
from .performance import ADVANCED_METRICS
from .visualize import history_frame, plot_equity

logger = get_logger(__name__)

HEADLINE_METRICS = ('initial_capital', 'final_portfolio_value', 'total_return_percent') + ADVANCED_METRICS


def _data_source(args: argparse.Namespace) -> str:
    source = getattr(args, 'data', None) or Settings.from_env().data_path
    if not source:
        raise SystemExit("error: no data source, pass --data or set BACKTEST_DATA_PATH")
    return source


def _parse_params(raw: Any) -> Dict[str, Any]:
    if raw is None or raw == '':
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        params = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"error: --params is not valid JSON: {exc}")
    if not isinstance(params, dict):
        raise SystemExit("error: --params must be a JSON object")
    return params


def print_metrics(result: Dict[str, Any]) -> None:
    print("\n" + "=" * 70)
    print("Backtest metrics")
    print("=" * 70)
    for k in HEADLINE_METRICS:
        v = result.get(k)
        if isinstance(v, float):
            print(f"  {k:<30}: {v:>12.2f}")
        else:
            print(f"  {k:<30}: {v}")
    print(f"  {'transactions':<30}: {len(result.get('transactions', [])):>12}")
    if result.get('message'):
        print(f"\n  {result['message']}")


def export_results(result: Dict[str, Any], export_dir: str) -> None:
    os.makedirs(export_dir, exist_ok=True)
    history = history_frame(result.get('portfolio_history', []))
    history.to_csv(os.path.join(export_dir, 'history.csv'), index=False, encoding='utf-8-sig')
    trades = pd.DataFrame(result.get('transactions', []),
                          columns=['date', 'type', 'ticker', 'shares', 'price', 'cost', 'revenue', 'cash_after'])
    trades.to_csv(os.path.join(export_dir, 'trades.csv'), index=False, encoding='utf-8-sig')
    metrics = {k: result.get(k) for k in HEADLINE_METRICS}
    with open(os.path.join(export_dir, 'metrics.json'), 'w', encoding='utf-8') as f:
        json.dump(metrics, f, ensure_ascii=False, indent=2)
    logger.info("Exported results to %s", export_dir)


def cmd_backtest(args: argparse.Namespace, argv: Optional[List[str]] = None) -> int:
    if getattr(args, 'config', None):
        config = load_yaml_config(args.config)
        args = merge_config_and_args(config, args, 'backtest', argv)

    request = BacktestRequest(
        ticker=args.ticker,
        strategy=args.strategy,
        fetch_start=args.fetch_start,
        fetch_end=args.fetch_end,
        simulation_start=args.start or args.fetch_start,
        initial_capital=args.initial,
        params=_parse_params(args.params),
    )
    result = run_backtest(request, MarketDataHandler(_data_source(args)))
    if 'error' in result:
        print(f"Backtest failed: {result['error']}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result, ensure_ascii=False, indent=2))
    else:
        print_metrics(result)

    if args.plot:
        save_path = os.path.join(args.export, 'equity.png') if args.export else None
        if args.export:
            os.makedirs(args.export, exist_ok=True)
        plot_equity(history_frame(result['portfolio_history']), result['transactions'],
                    title=f"{request.ticker} - {request.strategy}", save_path=save_path)
    if args.export:
        export_results(result, args.export)
    return 0


def cmd_tickers(args: argparse.Namespace, argv: Optional[List[str]] = None) -> int:
    for ticker in MarketDataHandler(_data_source(args)).get_unique_tickers():
        print(ticker)
    return 0


def cmd_data(args: argparse.Namespace, argv: Optional[List[str]] = None) -> int:
    if not args.ticker:
        print("error: Ticker is required.", file=sys.stderr)
        return 1
    bars = MarketDataHandler(_data_source(args)).get_stock_data(args.ticker, args.fetch_start, args.fetch_end)
    df = pd.DataFrame([b.as_dict() for b in bars], columns=['date', 'open', 'high', 'low', 'close', 'volume'])
    if df.empty:
        print(f"No data for {args.ticker.upper()}")
        return 0
    print(df.to_string(index=False))
    return 0


def cmd_list_strategies(args: argparse.Namespace, argv: Optional[List[str]] = None) -> int:
    print("\nAvailable strategies:")
    print("=" * 70)
    for name, desc in list_strategies().items():
        print(f"  {name:<26}: {desc}")
    print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='backtestlab',
        description="Daily price backtesting CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--log-level', type=str, default=None, help='DEBUG / INFO / WARNING (default: $LOG_LEVEL or INFO)')
    parser.add_argument('--log-file', type=str, default=None, help='also log to this file')
    sub = parser.add_subparsers(dest="command", required=True)

    p_bt = sub.add_parser("backtest", help="run a backtest")
    p_bt.add_argument('--config', type=str, help='YAML config file (optional)')
    p_bt.add_argument('--data', type=str, help='CSV file or SQLite database (default: $BACKTEST_DATA_PATH)')
    p_bt.add_argument('--ticker', type=str, help='ticker symbol')
    p_bt.add_argument('--strategy', type=str, default='maCrossover', help='strategy name, see list-strategies')
    p_bt.add_argument('--params', type=str, help='strategy parameters as a JSON object')
    p_bt.add_argument('--initial', type=float, default=DEFAULT_INITIAL_CAPITAL, help='initial capital')
    p_bt.add_argument('--fetch-start', type=str, help='first date of fetched data YYYY-MM-DD')
    p_bt.add_argument('--fetch-end', type=str, help='last date of fetched data YYYY-MM-DD')
    p_bt.add_argument('--start', type=str, help='simulation start date YYYY-MM-DD (default: --fetch-start)')
    p_bt.add_argument('--json', action='store_true', help='print the full report as JSON')
    p_bt.add_argument('--plot', action='store_true', help='plot the equity curve')
    p_bt.add_argument('--export', nargs='?', const='results/backtest', help='export directory')
    p_bt.set_defaults(func=cmd_backtest)

    p_tk = sub.add_parser("tickers", help="list available tickers")
    p_tk.add_argument('--data', type=str, help='CSV file or SQLite database')
    p_tk.set_defaults(func=cmd_tickers)

    p_data = sub.add_parser("data", help="show stored bars of a ticker")
    p_data.add_argument('--data', type=str, help='CSV file or SQLite database')
    p_data.add_argument('--ticker', type=str, help='ticker symbol')
    p_data.add_argument('--fetch-start', type=str, help='first date YYYY-MM-DD')
    p_data.add_argument('--fetch-end', type=str, help='last date YYYY-MM-DD')
    p_data.set_defaults(func=cmd_data)

    p_list = sub.add_parser("list-strategies", help="list the built-in strategies")
    p_list.set_defaults(func=cmd_list_strategies)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    setup_logging(args.log_level or settings.log_level, args.log_file or settings.log_file)
    return args.func(args, argv)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
