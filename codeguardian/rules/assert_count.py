"""Count assertion over a list item."""

from __future__ import annotations

from typing import Any

from codeguardian.context import EvaluationContext
from codeguardian.rules.base import AssertionRule
from codeguardian.rules.patterns import compare_numbers


class AssertCountRule(AssertionRule):
    def __init__(self, rule_id: str, *, condition: str, value: float) -> None:
        super().__init__(rule_id)
        self._condition = condition
        self._value = value

    def check(self, item: Any, context: EvaluationContext) -> bool:
        count = len(item) if isinstance(item, (list, tuple)) else 0
        return compare_numbers(count, self._value, self._condition)
