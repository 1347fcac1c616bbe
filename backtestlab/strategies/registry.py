from __future__ import annotations

"""Registry of the built-in strategies, keyed by their wire names."""

from typing import Any, Dict, Mapping, Optional, Type

from ..framework.errors import UnknownStrategyError
from .base import Strategy
from .bollinger import BollingerBandsStrategy
from .custom_rule import CustomRuleStrategy
from .donchian import DonchianBreakoutStrategy
from .ma_crossover import MACrossoverStrategy
from .macd import MACDStrategy
from .stochastic import StochasticOscillatorStrategy

STRATEGIES: Dict[str, Type[Strategy]] = {
    'maCrossover': MACrossoverStrategy,
    'bollingerBands': BollingerBandsStrategy,
    'MACD': MACDStrategy,
    'donchianChannelBreakout': DonchianBreakoutStrategy,
    'stochasticOscillator': StochasticOscillatorStrategy,
    'customStrategy': CustomRuleStrategy,
}

# case-insensitive lookup
_BY_KEY = {name.lower(): cls for name, cls in STRATEGIES.items()}


def get_strategy(name: str, params: Optional[Mapping[str, Any]] = None) -> Strategy:
    cls = _BY_KEY.get(str(name).lower())
    if cls is None:
        raise UnknownStrategyError(f'Strategy "{name}" not found or not implemented.')
    return cls(params=params)


def list_strategies() -> Dict[str, str]:
    return {name: cls.description for name, cls in STRATEGIES.items()}


__all__ = ['STRATEGIES', 'get_strategy', 'list_strategies']
