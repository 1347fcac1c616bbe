"""Strategy layer: evaluation contract, parameter variants and the six built-ins.

  * ``base``       Strategy contract + shared all-in / full-exit sizing
  * ``params``     tagged parameter variants and custom-rule conditions
  * ``registry``   name -> strategy class dispatch table
"""

from .base import Signal, Strategy  # noqa: F401
from .registry import STRATEGIES, get_strategy, list_strategies  # noqa: F401

__all__ = ["Signal", "Strategy", "STRATEGIES", "get_strategy", "list_strategies"]
