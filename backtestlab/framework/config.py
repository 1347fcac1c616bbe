from __future__ import annotations

"""Configuration: constants, ``.env`` settings and YAML run configs.

A YAML config holds one section per CLI command, e.g.::

    backtest:
      data: data/prices.csv
      ticker: AAPL
      strategy: maCrossover
      params: {shortWindow: 5, longWindow: 20}
      initial: 100000
      fetch_start: 2022-01-01
      start: 2022-03-01
      fetch_end: 2022-12-31

Explicit command line flags always win over the file.
"""

import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

ANNUALIZATION_FACTOR = 252
RISK_FREE_RATE = 0.02
DEFAULT_INITIAL_CAPITAL = 100000.0


@dataclass(frozen=True)
class Settings:
    data_path: Optional[str] = None
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'Settings':
        """Read settings from the environment, loading ``env_file`` (or ./.env) first."""
        if env_file:
            load_dotenv(env_file)
        elif Path('.env').exists():
            load_dotenv('.env')
        return cls(
            data_path=os.getenv('BACKTEST_DATA_PATH') or None,
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_file=os.getenv('LOG_FILE') or None,
        )


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """Load a YAML config file; an empty file yields ``{}``."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(path, 'r', encoding='utf-8') as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"Could not parse YAML config {config_path}: {exc}") from exc
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"YAML config {config_path} must contain a mapping at top level")
    return config


def _provided_flags(argv: List[str]) -> set:
    provided = set()
    for arg in argv:
        if arg.startswith('--'):
            provided.add(arg[2:].split('=', 1)[0].replace('-', '_'))
    return provided


def merge_config_and_args(config: Dict[str, Any],
                          args: argparse.Namespace,
                          command: str,
                          argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Fill ``args`` from the ``command`` section of ``config``; flags given on the command line win."""
    if not config:
        return args
    cmd_config = config.get(command) or {}
    provided = _provided_flags(sys.argv if argv is None else argv)

    for key, value in cmd_config.items():
        attr_key = key.replace('-', '_')
        if attr_key in provided or not hasattr(args, attr_key):
            continue
        current_value = getattr(args, attr_key)
        if current_value is None or isinstance(current_value, (int, float, str, bool, dict)):
            setattr(args, attr_key, value)
    return args


__all__ = [
    'ANNUALIZATION_FACTOR',
    'RISK_FREE_RATE',
    'DEFAULT_INITIAL_CAPITAL',
    'Settings',
    'load_yaml_config',
    'merge_config_and_args',
]
