"""backtestlab: replay daily price series through trading strategies.

Layers:
  * ``util``        indicators, condition helpers, data provider, logging
  * ``strategies``  strategy contract, parameter variants, registry
  * ``framework``   ledger, simulation driver, performance analyzer, CLI
"""

__version__ = "0.1.0"

__all__ = [
    "util",
    "strategies",
    "framework",
]
