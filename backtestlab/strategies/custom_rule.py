from __future__ import annotations

from typing import Callable, Dict

import numpy as np

from ..util.conditions import is_band_cross, is_ma_aligned, is_price_threshold, is_rsi
from .base import Signal, Strategy
from .params import (
    BollingerBandCondition,
    Condition,
    CustomRuleParams,
    MACrossoverCondition,
    PriceThresholdCondition,
    RSICondition,
    Rule,
)

CONDITION_EVALUATORS: Dict[type, Callable[[np.ndarray, Condition], bool]] = {
    PriceThresholdCondition: lambda closes, c: is_price_threshold(closes, c.operator, c.value),
    MACrossoverCondition: lambda closes, c: is_ma_aligned(closes, c.short_window, c.long_window, c.direction),
    RSICondition: lambda closes, c: is_rsi(closes, c.period, c.operator, c.value),
    BollingerBandCondition: lambda closes, c: is_band_cross(closes, c.window, c.num_std_dev, c.band, c.direction),
}


def evaluate_condition(closes: np.ndarray, condition: Condition) -> bool:
    evaluator = CONDITION_EVALUATORS.get(type(condition))
    if evaluator is None:
        raise TypeError(f"Unsupported condition: {condition!r}")
    return evaluator(closes, condition)


def evaluate_rule(closes: np.ndarray, rule: Rule) -> bool:
    """Fold the rule's conditions: AND starts True, OR starts False; all are evaluated."""
    if rule.operator == 'AND':
        result = True
        for condition in rule.conditions:
            result = evaluate_condition(closes, condition) and result
        return result
    result = False
    for condition in rule.conditions:
        result = evaluate_condition(closes, condition) or result
    return result


class CustomRuleStrategy(Strategy):
    """User-defined buy / sell rules, each an AND/OR over simple conditions."""

    name = "customStrategy"
    description = "Buy / sell when the configured AND/OR rules hold"
    params_type = CustomRuleParams

    def generate_signal(self, closes: np.ndarray) -> Signal:
        return Signal(
            buy=evaluate_rule(closes, self.params.buy),
            sell=evaluate_rule(closes, self.params.sell),
        )


__all__ = ['CONDITION_EVALUATORS', 'evaluate_condition', 'evaluate_rule', 'CustomRuleStrategy']
