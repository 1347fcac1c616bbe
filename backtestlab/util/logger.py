from __future__ import annotations

"""Log setup for the command line and library loggers.

Library modules only call ``get_logger(__name__)`` and never configure
anything. ``setup_logging`` is called once by the CLI: it installs a console
handler and optionally a UTF-8 file handler on the root logger, and turns down
the plotting stack, which logs font and image details at DEBUG.

Calling it again replaces only the handlers it installed earlier; handlers
added by someone else (a test runner, an embedding application) stay.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
NOISY_LOGGERS = ('matplotlib', 'PIL')

_OWN_HANDLER = '_backtestlab_handler'


def _level(value) -> int:
    if isinstance(value, int):
        return value
    return getattr(logging, str(value).upper(), logging.INFO)


def _own(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    setattr(handler, _OWN_HANDLER, True)
    return handler


def setup_logging(level=None,
                  log_file: Optional[str] = None,
                  quiet: Iterable[str] = NOISY_LOGGERS) -> logging.Logger:
    """Configure the root logger and return it.

    ``level`` (name or number) and ``log_file`` fall back to ``LOG_LEVEL`` and
    ``LOG_FILE``; unknown level names mean INFO. Loggers named in ``quiet``
    are held at WARNING unless ``level`` is stricter.
    """
    level = _level(level or os.getenv('LOG_LEVEL', 'INFO'))
    log_file = log_file or os.getenv('LOG_FILE')

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _OWN_HANDLER, False)]:
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    root.setLevel(level)
    root.addHandler(_own(logging.StreamHandler(), formatter))
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        root.addHandler(_own(logging.FileHandler(log_file, encoding='utf-8'), formatter))

    for name in quiet:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ['LOG_FORMAT', 'DATE_FORMAT', 'NOISY_LOGGERS', 'setup_logging', 'get_logger']
