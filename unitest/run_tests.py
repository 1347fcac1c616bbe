# Runs every test_*.py in this directory
import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

if __name__ == '__main__':
    print("=" * 60)
    print("Running backtestlab unit tests")
    print("=" * 60)

    suite = unittest.defaultTestLoader.discover(os.path.dirname(os.path.abspath(__file__)), pattern='test_*.py')
    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    sys.exit(0 if result.wasSuccessful() else 1)
