import logging
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

# Ensure the project root is in sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from backtestlab.util.logger import get_logger, setup_logging


class TestLogger(unittest.TestCase):

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_level = self.root.level
        self.saved_handlers = list(self.root.handlers)
        self.saved_quiet = {name: logging.getLogger(name).level for name in ('matplotlib', 'PIL')}
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        for handler in list(self.root.handlers):
            if handler not in self.saved_handlers:
                self.root.removeHandler(handler)
                handler.close()
        self.root.setLevel(self.saved_level)
        for name, level in self.saved_quiet.items():
            logging.getLogger(name).setLevel(level)
        self.tmp.cleanup()

    def _own_handlers(self):
        return [h for h in self.root.handlers if h not in self.saved_handlers]

    def test_repeat_setup_replaces_own_handlers_only(self):
        foreign = logging.NullHandler()
        self.root.addHandler(foreign)
        setup_logging('INFO')
        setup_logging('DEBUG')
        self.assertIn(foreign, self.root.handlers)
        self.assertEqual(len(self._own_handlers()), 2)   # foreign + one console handler
        self.assertEqual(self.root.level, logging.DEBUG)

    def test_file_handler_writes_utf8(self):
        path = os.path.join(self.tmp.name, 'logs', 'run.log')
        setup_logging('INFO', path)
        get_logger('backtestlab.test').info('équité %s', 42)
        for handler in self._own_handlers():
            handler.flush()
        with open(path, encoding='utf-8') as f:
            line = f.read()
        self.assertIn('backtestlab.test - INFO - équité 42', line)

    def test_environment_fallback(self):
        path = os.path.join(self.tmp.name, 'env.log')
        with patch.dict(os.environ, {'LOG_LEVEL': 'warning', 'LOG_FILE': path}):
            setup_logging()
        self.assertEqual(self.root.level, logging.WARNING)
        self.assertTrue(any(isinstance(h, logging.FileHandler) for h in self._own_handlers()))

    def test_unknown_level_means_info(self):
        setup_logging('chatty')
        self.assertEqual(self.root.level, logging.INFO)

    def test_plotting_loggers_quieted(self):
        setup_logging('DEBUG')
        self.assertEqual(logging.getLogger('matplotlib').level, logging.WARNING)
        setup_logging('ERROR', quiet=('PIL',))
        self.assertEqual(logging.getLogger('PIL').level, logging.ERROR)


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
