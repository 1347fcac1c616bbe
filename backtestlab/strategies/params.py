from __future__ import annotations

"""Strategy parameter variants and the custom-rule condition types.

Every strategy owns exactly one frozen params dataclass. ``from_dict``
accepts the camelCase wire keys (``shortWindow``, ``numStdDev``, ...) as well
as snake_case, applies defaults for missing keys and validates the result;
any problem raises ``InvalidParamsError``.

Custom rules are single level: ``Rule(operator, conditions)`` where each
condition is one of the four ``*Condition`` dataclasses.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ..framework.errors import InvalidParamsError
from ..util.conditions import BANDS, COMPARISON_OPERATORS, CROSS_DIRECTIONS, MA_DIRECTIONS

RULE_OPERATORS = frozenset({'AND', 'OR'})


def _pick(raw: Mapping[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in raw and raw[snake] is not None:
        return raw[snake]
    if camel in raw and raw[camel] is not None:
        return raw[camel]
    return default


def _coerce(value: Any, cast: Callable[[Any], Any], label: str) -> Any:
    if isinstance(value, bool):
        raise InvalidParamsError(f"{label} must be a number, got {value!r}")
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParamsError(f"{label} must be a number, got {value!r}") from exc


def _int(raw: Mapping[str, Any], snake: str, camel: str, default: Any) -> int:
    value = _pick(raw, snake, camel, default)
    number = _coerce(value, float, camel)
    if not number.is_integer():
        raise InvalidParamsError(f"{camel} must be a whole number, got {value!r}")
    return int(number)


def _float(raw: Mapping[str, Any], snake: str, camel: str, default: Any) -> float:
    return _coerce(_pick(raw, snake, camel, default), float, camel)


def _choice(raw: Mapping[str, Any], key: str, allowed: frozenset, default: Any = None) -> str:
    value = raw.get(key, default)
    if value not in allowed:
        raise InvalidParamsError(f"{key} must be one of {sorted(allowed)}, got {value!r}")
    return value


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise InvalidParamsError(message)


# ---------- strategy params ----------

@dataclass(frozen=True)
class MACrossoverParams:
    short_window: int = 5
    long_window: int = 20

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'MACrossoverParams':
        params = cls(
            short_window=_int(raw, 'short_window', 'shortWindow', cls.short_window),
            long_window=_int(raw, 'long_window', 'longWindow', cls.long_window),
        )
        params.validate()
        return params

    def validate(self) -> None:
        _require(self.short_window > 0, 'Short window must be greater than 0')
        _require(self.long_window > 0, 'Long window must be greater than 0')
        _require(self.short_window < self.long_window, 'Short window must be less than long window')


@dataclass(frozen=True)
class BollingerParams:
    window: int = 20
    num_std_dev: float = 2.0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'BollingerParams':
        params = cls(
            window=_int(raw, 'window', 'window', cls.window),
            num_std_dev=_float(raw, 'num_std_dev', 'numStdDev', cls.num_std_dev),
        )
        params.validate()
        return params

    def validate(self) -> None:
        _require(self.window > 0, 'Window must be greater than 0')
        _require(self.num_std_dev > 0, 'Number of standard deviations must be greater than 0')


@dataclass(frozen=True)
class MACDParams:
    fast: int = 12
    slow: int = 26
    signal: int = 9

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'MACDParams':
        params = cls(
            fast=_int(raw, 'fast', 'fast', cls.fast),
            slow=_int(raw, 'slow', 'slow', cls.slow),
            signal=_int(raw, 'signal', 'signal', cls.signal),
        )
        params.validate()
        return params

    def validate(self) -> None:
        _require(self.fast > 0, 'Fast period must be greater than 0')
        _require(self.slow > 0, 'Slow period must be greater than 0')
        _require(self.signal > 0, 'Signal period must be greater than 0')
        _require(self.fast < self.slow, 'Fast period must be less than slow period')


@dataclass(frozen=True)
class DonchianParams:
    window: int = 20

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'DonchianParams':
        params = cls(window=_int(raw, 'window', 'window', cls.window))
        params.validate()
        return params

    def validate(self) -> None:
        _require(self.window > 0, 'Window must be greater than 0')


@dataclass(frozen=True)
class StochasticParams:
    k_period: int = 14
    d_period: int = 3
    oversold: float = 20.0
    overbought: float = 80.0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'StochasticParams':
        params = cls(
            k_period=_int(raw, 'k_period', 'kPeriod', cls.k_period),
            d_period=_int(raw, 'd_period', 'dPeriod', cls.d_period),
            oversold=_float(raw, 'oversold', 'oversold', cls.oversold),
            overbought=_float(raw, 'overbought', 'overbought', cls.overbought),
        )
        params.validate()
        return params

    def validate(self) -> None:
        _require(self.k_period > 0, 'K period must be greater than 0')
        _require(self.d_period > 0, 'D period must be greater than 0')
        _require(0 <= self.oversold <= 100, 'Oversold must be between 0 and 100')
        _require(0 <= self.overbought <= 100, 'Overbought must be between 0 and 100')
        _require(self.oversold < self.overbought, 'Oversold must be less than overbought')


# ---------- custom rule conditions ----------

@dataclass(frozen=True)
class PriceThresholdCondition:
    operator: str
    value: float

    def validate(self) -> None:
        _require(self.value > 0, 'Price threshold must be greater than 0')


@dataclass(frozen=True)
class MACrossoverCondition:
    short_window: int
    long_window: int
    direction: str

    def validate(self) -> None:
        _require(self.short_window > 0, 'Short window must be greater than 0')
        _require(self.long_window > 0, 'Long window must be greater than 0')
        _require(self.short_window < self.long_window, 'Short window must be less than long window')


@dataclass(frozen=True)
class RSICondition:
    period: int
    operator: str
    value: float

    def validate(self) -> None:
        _require(self.period > 0, 'Period must be greater than 0')
        _require(0 <= self.value <= 100, 'RSI value must be between 0 and 100')


@dataclass(frozen=True)
class BollingerBandCondition:
    window: int
    num_std_dev: float
    band: str
    direction: str

    def validate(self) -> None:
        _require(self.window > 0, 'Window must be greater than 0')
        _require(self.num_std_dev > 0, 'Number of standard deviations must be greater than 0')


Condition = Union[PriceThresholdCondition, MACrossoverCondition, RSICondition, BollingerBandCondition]


def _price_threshold(raw: Mapping[str, Any]) -> Condition:
    return PriceThresholdCondition(
        operator=_choice(raw, 'operator', COMPARISON_OPERATORS),
        value=_float(raw, 'value', 'value', None),
    )


def _ma_crossover(raw: Mapping[str, Any]) -> Condition:
    return MACrossoverCondition(
        short_window=_int(raw, 'short_window', 'shortWindow', None),
        long_window=_int(raw, 'long_window', 'longWindow', None),
        direction=_choice(raw, 'direction', MA_DIRECTIONS),
    )


def _rsi(raw: Mapping[str, Any]) -> Condition:
    return RSICondition(
        period=_int(raw, 'period', 'period', None),
        operator=_choice(raw, 'operator', COMPARISON_OPERATORS),
        value=_float(raw, 'value', 'value', None),
    )


def _bollinger_band(raw: Mapping[str, Any]) -> Condition:
    return BollingerBandCondition(
        window=_int(raw, 'window', 'window', None),
        num_std_dev=_float(raw, 'num_std_dev', 'numStdDev', None),
        band=_choice(raw, 'band', BANDS),
        direction=_choice(raw, 'direction', CROSS_DIRECTIONS),
    )


CONDITION_PARSERS: Dict[str, Callable[[Mapping[str, Any]], Condition]] = {
    'priceThreshold': _price_threshold,
    'maCrossover': _ma_crossover,
    'rsi': _rsi,
    'bollingerBands': _bollinger_band,
}


def parse_condition(raw: Union[Condition, Mapping[str, Any]]) -> Condition:
    if isinstance(raw, (PriceThresholdCondition, MACrossoverCondition, RSICondition, BollingerBandCondition)):
        condition = raw
    else:
        if not isinstance(raw, Mapping):
            raise InvalidParamsError(f"Condition must be a mapping, got {raw!r}")
        kind = raw.get('type')
        if kind not in CONDITION_PARSERS:
            raise InvalidParamsError(f"Unknown condition type: {kind!r}")
        condition = CONDITION_PARSERS[kind](raw)
    condition.validate()
    return condition


@dataclass(frozen=True)
class Rule:
    operator: str
    conditions: Tuple[Condition, ...]

    @classmethod
    def from_dict(cls, raw: Union['Rule', Mapping[str, Any]], side: str) -> 'Rule':
        if isinstance(raw, Rule):
            return raw
        if not isinstance(raw, Mapping):
            raise InvalidParamsError(f"{side} rule must be a mapping")
        operator = str(raw.get('operator', 'AND')).upper()
        _require(operator in RULE_OPERATORS, f"{side} rule operator must be AND or OR, got {raw.get('operator')!r}")
        conditions = tuple(parse_condition(c) for c in raw.get('conditions') or ())
        _require(len(conditions) > 0, f"At least one {side} condition is required")
        return cls(operator=operator, conditions=conditions)


@dataclass(frozen=True)
class CustomRuleParams:
    buy: Rule
    sell: Rule

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'CustomRuleParams':
        # wire format wraps both rules in {"rules": {...}}
        rules = raw.get('rules', raw)
        if not isinstance(rules, Mapping) or 'buy' not in rules or 'sell' not in rules:
            raise InvalidParamsError('Custom strategy requires both buy and sell rules')
        return cls(buy=Rule.from_dict(rules['buy'], 'buy'), sell=Rule.from_dict(rules['sell'], 'sell'))


StrategyParams = Union[
    MACrossoverParams,
    BollingerParams,
    MACDParams,
    DonchianParams,
    StochasticParams,
    CustomRuleParams,
]


def coerce_params(params_type: type, params: Optional[Union[StrategyParams, Mapping[str, Any]]]) -> StrategyParams:
    """Turn ``None`` / a mapping / an instance into a validated ``params_type``."""
    if isinstance(params, params_type):
        if hasattr(params, 'validate'):
            params.validate()
        return params
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise InvalidParamsError(f"Strategy parameters must be a mapping, got {type(params).__name__}")
    return params_type.from_dict(params)


__all__ = [
    'RULE_OPERATORS',
    'MACrossoverParams',
    'BollingerParams',
    'MACDParams',
    'DonchianParams',
    'StochasticParams',
    'PriceThresholdCondition',
    'MACrossoverCondition',
    'RSICondition',
    'BollingerBandCondition',
    'Condition',
    'CONDITION_PARSERS',
    'parse_condition',
    'Rule',
    'CustomRuleParams',
    'StrategyParams',
    'coerce_params',
]
