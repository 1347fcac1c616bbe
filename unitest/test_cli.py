import argparse
import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

import pandas as pd

# Ensure the project root is in sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from backtestlab.framework.cli import build_parser, main
from backtestlab.framework.config import load_yaml_config, merge_config_and_args

CLOSES = [10, 10, 10, 10, 10, 12, 8, 15]


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.data = os.path.join(self.tmp.name, 'prices.csv')
        dates = pd.date_range('2024-01-01', periods=len(CLOSES), freq='D').strftime('%Y-%m-%d')
        pd.DataFrame({
            'ticker': 'AAA', 'date': dates, 'open': CLOSES, 'high': CLOSES, 'low': CLOSES, 'close': CLOSES,
        }).to_csv(self.data, index=False)
        self.default_args = argparse.Namespace(
            ticker=None, strategy='maCrossover', params=None, initial=100000.0,
            fetch_start=None, fetch_end=None, start=None,
        )

    def tearDown(self):
        self.tmp.cleanup()

    def _run(self, argv):
        out = io.StringIO()
        with patch('backtestlab.framework.cli.setup_logging'), redirect_stdout(out):
            code = main(argv)
        return code, out.getvalue()

    def test_merge_config_and_args(self):
        config = {'backtest': {'ticker': 'AAA', 'initial': 2000, 'params': {'shortWindow': 2}, 'unknown': 1}}
        merged = merge_config_and_args(config, self.default_args, 'backtest', argv=['backtest'])
        self.assertEqual(merged.ticker, 'AAA')
        self.assertEqual(merged.initial, 2000)
        self.assertEqual(merged.params, {'shortWindow': 2})
        self.assertFalse(hasattr(merged, 'unknown'))

    def test_command_line_overrides_config(self):
        config = {'backtest': {'initial': 2000, 'fetch-start': '2024-01-01'}}
        self.default_args.initial = 5000.0
        merged = merge_config_and_args(config, self.default_args, 'backtest',
                                       argv=['backtest', '--initial', '5000'])
        self.assertEqual(merged.initial, 5000.0)
        self.assertEqual(merged.fetch_start, '2024-01-01')

    def test_load_yaml_config(self):
        path = os.path.join(self.tmp.name, 'bt.yaml')
        with open(path, 'w', encoding='utf-8') as f:
            f.write('backtest:\n  ticker: AAA\n  fetch_start: 2024-01-01\n')
        config = load_yaml_config(path)
        self.assertEqual(config['backtest']['ticker'], 'AAA')
        with self.assertRaises(FileNotFoundError):
            load_yaml_config(os.path.join(self.tmp.name, 'missing.yaml'))

    def test_parser_defaults(self):
        args = build_parser().parse_args(['backtest'])
        self.assertEqual(args.strategy, 'maCrossover')
        self.assertEqual(args.initial, 100000.0)
        self.assertIsNone(args.export)

    def test_backtest_json(self):
        code, out = self._run([
            'backtest', '--data', self.data, '--ticker', 'aaa', '--params', '{"shortWindow": 2, "longWindow": 3}',
            '--fetch-start', '2024-01-01', '--fetch-end', '2024-01-08', '--start', '2024-01-05', '--initial', '1000',
            '--json',
        ])
        self.assertEqual(code, 0)
        report = json.loads(out)
        self.assertEqual([t['type'] for t in report['transactions']], ['BUY', 'SELL'])

    def test_backtest_with_config_and_export(self):
        config = os.path.join(self.tmp.name, 'bt.yaml')
        export = os.path.join(self.tmp.name, 'out')
        with open(config, 'w', encoding='utf-8') as f:
            f.write(
                f"backtest:\n  data: {self.data}\n  ticker: AAA\n  params: {{shortWindow: 2, longWindow: 3}}\n"
                f"  fetch_start: 2024-01-01\n  fetch_end: 2024-01-08\n  start: 2024-01-05\n"
            )
        code, out = self._run(['backtest', '--config', config, '--export', export])
        self.assertEqual(code, 0)
        self.assertIn('total_return_percent', out)
        trades = pd.read_csv(os.path.join(export, 'trades.csv'))
        self.assertEqual(list(trades['type']), ['BUY', 'SELL'])
        self.assertTrue(os.path.exists(os.path.join(export, 'history.csv')))
        with open(os.path.join(export, 'metrics.json'), encoding='utf-8') as f:
            self.assertIn('sharpe_ratio', json.load(f))

    def test_backtest_error_exit_code(self):
        code, _ = self._run([
            'backtest', '--data', self.data, '--ticker', 'AAA', '--strategy', 'nope',
            '--fetch-start', '2024-01-01', '--fetch-end', '2024-01-08',
        ])
        self.assertEqual(code, 1)

    def test_bad_params_json(self):
        with self.assertRaises(SystemExit):
            self._run(['backtest', '--data', self.data, '--ticker', 'AAA', '--params', '{oops'])

    def test_tickers_and_data(self):
        code, out = self._run(['tickers', '--data', self.data])
        self.assertEqual((code, out.split()), (0, ['AAA']))
        code, out = self._run(['data', '--data', self.data, '--ticker', 'aaa', '--fetch-start', '2024-01-07'])
        self.assertEqual(code, 0)
        self.assertIn('2024-01-08', out)
        self.assertNotIn('2024-01-06', out)

    def test_list_strategies(self):
        code, out = self._run(['list-strategies'])
        self.assertEqual(code, 0)
        for name in ('maCrossover', 'bollingerBands', 'MACD', 'donchianChannelBreakout',
                     'stochasticOscillator', 'customStrategy'):
            self.assertIn(name, out)


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
