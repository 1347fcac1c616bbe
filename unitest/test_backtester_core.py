import datetime as dt
import os
import sys
import unittest
from concurrent.futures import ThreadPoolExecutor

import numpy as np

# Ensure the project root is in sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from backtestlab.framework.backtester import Backtester
from backtestlab.framework.errors import EmptyRangeError, InvalidDataError, InvalidParamsError, NoDataError
from backtestlab.framework.models import InstrumentSeries
from backtestlab.strategies import STRATEGIES, get_strategy
from backtestlab.strategies.base import Signal, Strategy
from backtestlab.strategies.params import MACrossoverParams

START = dt.date(2025, 1, 6)


def make_bars(closes, start=START, step=1):
    return [
        {'date': (start + dt.timedelta(days=i * step)).isoformat(), 'close': c}
        for i, c in enumerate(closes)
    ]


class RecordingStrategy(Strategy):
    """Buys on the first call, records every call."""

    name = 'recording'
    params_type = MACrossoverParams

    def __init__(self):
        super().__init__()
        self.calls = []

    def on_bar(self, portfolio, current_date, daily_bars, history):
        self.calls.append((current_date, dict(daily_bars)))
        super().on_bar(portfolio, current_date, daily_bars, history)

    def generate_signal(self, closes):
        return Signal(buy=True)


def random_walk(n=250, seed=7):
    rng = np.random.RandomState(seed)
    return list(100 * np.exp(np.cumsum(rng.normal(0, 0.02, n))))


class TestBacktesterCore(unittest.TestCase):

    def test_no_data(self):
        bt = Backtester(get_strategy('maCrossover'))
        with self.assertRaises(NoDataError):
            bt.run({}, START)
        with self.assertRaises(NoDataError):
            bt.run({'AAA': []}, START)

    def test_empty_range_boundary(self):
        data = {'AAA': make_bars([10, 11, 12])}
        bt = Backtester(get_strategy('maCrossover'))
        with self.assertRaises(EmptyRangeError) as ctx:
            bt.run(data, START + dt.timedelta(days=3))
        self.assertIn('No simulation dates found after 2025-01-09', str(ctx.exception))
        # the last date itself is still simulable
        report = bt.run(data, START + dt.timedelta(days=2))
        self.assertEqual(len(report.portfolio_history), 1)
        self.assertIsNotNone(report.message)

    def test_invalid_inputs(self):
        bt = Backtester(get_strategy('maCrossover'))
        with self.assertRaises(InvalidParamsError):
            bt.run({'AAA': make_bars([1, 2])}, 'not-a-date')
        with self.assertRaises(InvalidDataError):
            bt.run({'AAA': [{'date': '2025-01-06'}]}, START)

    def test_one_call_and_snapshot_per_date(self):
        strat = RecordingStrategy()
        data = {
            'AAA': make_bars([10, 11, 12, 13], step=2),   # 6, 8, 10, 12
            'BBB': make_bars([20, 21, 22, 23]),           # 6, 7, 8, 9
        }
        report = Backtester(strat, initial_capital=1000).run(data, START)
        dates = [c[0] for c in strat.calls]
        self.assertEqual(dates, sorted(set(dates)))
        self.assertEqual(len(dates), 6)
        self.assertEqual(len(report.portfolio_history), 6)
        # BBB trades alone on the 7th, AAA is missing
        self.assertEqual(set(strat.calls[1][1]), {'BBB'})

    def test_valuation_uses_last_known_close(self):
        strat = RecordingStrategy()
        data = {
            'AAA': make_bars([10, 20], step=2),           # 6, 8
            'BBB': make_bars([5, 5, 5]),                  # 6, 7, 8
        }
        report = Backtester(strat, initial_capital=100).run(data, START)
        # bought 10 AAA at 10 on the 6th; on the 7th AAA has no bar, valued at 10
        values = [s.total_value for s in report.portfolio_history]
        self.assertEqual(values, [100, 100, 200])

    def test_unsorted_and_duplicate_input(self):
        bars = make_bars([10, 11, 12])
        shuffled = [bars[2], bars[0], dict(bars[1], close=99), bars[1]]
        series = InstrumentSeries.from_records('AAA', shuffled)
        self.assertEqual(list(series.closes), [10, 11, 12])

    def test_warmup_bars_feed_indicators(self):
        closes = [10, 10, 10, 12, 8, 15]
        data = {'AAA': make_bars(closes)}
        strat = get_strategy('maCrossover', {'shortWindow': 2, 'longWindow': 3})
        report = Backtester(strat, initial_capital=1000).run(data, START + dt.timedelta(days=3))
        self.assertEqual([t.type for t in report.transactions], ['BUY', 'SELL'])
        self.assertEqual(report.transactions[0].date, START + dt.timedelta(days=3))

    def test_invariants_for_every_strategy(self):
        data = {'AAA': make_bars(random_walk())}
        params = {
            'maCrossover': {},
            'bollingerBands': {'window': 10, 'numStdDev': 1},
            'MACD': {},
            'donchianChannelBreakout': {'window': 10},
            'stochasticOscillator': {},
            'customStrategy': {'rules': {
                'buy': {'operator': 'OR', 'conditions': [{'type': 'rsi', 'period': 14, 'operator': 'lt', 'value': 40}]},
                'sell': {'operator': 'OR', 'conditions': [{'type': 'rsi', 'period': 14, 'operator': 'gt', 'value': 60}]},
            }},
        }
        for name in STRATEGIES:
            with self.subTest(strategy=name):
                bt = Backtester(get_strategy(name, params[name]), initial_capital=10000)
                report = bt.run(data, START + dt.timedelta(days=30))
                for snap in report.portfolio_history:
                    self.assertGreaterEqual(snap.cash, 0)
                    self.assertTrue(all(v > 0 for v in snap.positions.values()))
                # conservation of cash
                spent = sum(t.cost for t in report.transactions if t.type == 'BUY')
                received = sum(t.revenue for t in report.transactions if t.type == 'SELL')
                self.assertAlmostEqual(report.portfolio_history[-1].cash, 10000 - spent + received, places=6)
                # alternating BUY / SELL for all-in / full-exit sizing
                types = [t.type for t in report.transactions]
                self.assertEqual(types, (['BUY', 'SELL'] * len(types))[:len(types)])

    def test_deterministic(self):
        data = {'AAA': make_bars(random_walk(seed=3))}
        first = Backtester(get_strategy('bollingerBands', {'window': 10})).run(data, START).as_dict()
        second = Backtester(get_strategy('bollingerBands', {'window': 10})).run(data, START).as_dict()
        self.assertEqual(first, second)

    def test_fresh_portfolio_per_run(self):
        data = {'AAA': make_bars([10, 11, 12])}
        bt = Backtester(RecordingStrategy(), initial_capital=100)
        bt.run(data, START)
        report = bt.run(data, START)
        self.assertEqual(len(report.transactions), 1)
        self.assertEqual(report.initial_capital, 100)

    def test_shared_backtester_keeps_runs_apart(self):
        bt = Backtester(get_strategy('bollingerBands', {'window': 10}), initial_capital=5000)
        datasets = [{'AAA': make_bars(random_walk(seed=s))} for s in (1, 2, 3, 4)]
        expected = [bt.run(data, START).as_dict() for data in datasets]
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda data: bt.run(data, START).as_dict(), datasets * 3))
        self.assertEqual(results, expected * 3)
        self.assertFalse(hasattr(bt, 'portfolio'))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
