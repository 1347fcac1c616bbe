import datetime as dt
import os
import sys
import unittest

# Ensure the project root is in sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from backtestlab.framework.models import BUY, SELL
from backtestlab.framework.portfolio import Portfolio

D1 = dt.date(2024, 1, 2)
D2 = dt.date(2024, 1, 3)


class TestPortfolio(unittest.TestCase):

    def setUp(self):
        self.pf = Portfolio(1000)

    def test_buy_debits_cash_and_logs(self):
        self.assertTrue(self.pf.buy('AAA', 10, 25.5, D1))
        self.assertAlmostEqual(self.pf.cash, 745.0)
        self.assertEqual(self.pf.positions, {'AAA': 10})
        tx = self.pf.transactions[0]
        self.assertEqual(tx.type, BUY)
        self.assertAlmostEqual(tx.cost, 255.0)
        self.assertIsNone(tx.revenue)
        self.assertAlmostEqual(tx.cash_after, 745.0)

    def test_buy_insufficient_cash_is_noop(self):
        self.assertFalse(self.pf.buy('AAA', 11, 100, D1))
        self.assertEqual(self.pf.cash, 1000)
        self.assertEqual(self.pf.positions, {})
        self.assertEqual(self.pf.transactions, [])

    def test_buy_exact_cash_allowed(self):
        self.assertTrue(self.pf.buy('AAA', 10, 100, D1))
        self.assertEqual(self.pf.cash, 0)

    def test_sell_full_position_removes_entry(self):
        self.pf.buy('AAA', 10, 50, D1)
        self.assertTrue(self.pf.sell('AAA', 10, 60, D2))
        self.assertAlmostEqual(self.pf.cash, 1100.0)
        self.assertNotIn('AAA', self.pf.positions)
        tx = self.pf.transactions[-1]
        self.assertEqual(tx.type, SELL)
        self.assertAlmostEqual(tx.revenue, 600.0)
        self.assertIsNone(tx.cost)

    def test_partial_sell_keeps_remainder(self):
        self.pf.buy('AAA', 10, 50, D1)
        self.pf.sell('AAA', 4, 50, D2)
        self.assertEqual(self.pf.shares_held('AAA'), 6)

    def test_oversell_and_unknown_ticker_are_noops(self):
        self.pf.buy('AAA', 5, 10, D1)
        self.assertFalse(self.pf.sell('AAA', 6, 10, D2))
        self.assertFalse(self.pf.sell('BBB', 1, 10, D2))
        self.assertFalse(self.pf.sell('AAA', 0, 10, D2))
        self.assertEqual(len(self.pf.transactions), 1)
        self.assertEqual(self.pf.shares_held('AAA'), 5)

    def test_mark_to_market_snapshot(self):
        self.pf.buy('AAA', 10, 50, D1)
        snap = self.pf.mark_to_market(D1, {'AAA': 55})
        self.assertAlmostEqual(snap.total_value, 500 + 550)
        self.assertEqual(snap.positions, {'AAA': 10})
        # snapshot holds a copy of the positions
        self.pf.sell('AAA', 10, 55, D2)
        self.assertEqual(snap.positions, {'AAA': 10})
        self.assertEqual(len(self.pf.history), 1)

    def test_transaction_serialisation_rounding(self):
        self.pf.buy('AAA', 3, 33.333333, D1)
        row = self.pf.transactions[0].as_dict()
        self.assertEqual(row['date'], '2024-01-02')
        self.assertEqual(row['price'], 33.3333)
        self.assertEqual(row['cost'], 100.0)
        self.assertIsNone(row['revenue'])


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
