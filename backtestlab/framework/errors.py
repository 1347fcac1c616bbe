"""Failures that stop a backtest before (or instead of) producing a report.

Only these are surfaced to callers, as ``{"error": message}``. Trading no-ops
(insufficient cash, oversell) and indicator warm-up are never errors.
"""


class BacktestError(Exception):
    """Base class for all backtest failures."""


class NoDataError(BacktestError):
    """No instrument with a usable (non-empty) price series."""


class EmptyRangeError(BacktestError):
    """No calendar dates on or after the simulation start date."""


class EmptyHistoryError(BacktestError):
    """Nothing left to analyze after filtering the snapshot history."""


class InvalidParamsError(BacktestError):
    """Strategy parameters or request fields failed validation."""


class InvalidDataError(BacktestError):
    """A price record could not be parsed into a bar."""


class UnknownStrategyError(BacktestError):
    """Strategy name is not in the registry."""


__all__ = [
    'BacktestError',
    'NoDataError',
    'EmptyRangeError',
    'EmptyHistoryError',
    'InvalidParamsError',
    'InvalidDataError',
    'UnknownStrategyError',
]
