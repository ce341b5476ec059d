"""Assertion on a dotted property path of an item."""

from __future__ import annotations

import re
from typing import Any

from codeguardian.context import EvaluationContext
from codeguardian.models import AssertionResult, ViolationContext, get_field
from codeguardian.rules.base import AssertionRule
from codeguardian.rules.patterns import compare_values


class AssertPropertyRule(AssertionRule):
    """Compares ``item.<property_path>`` with an expected value.

    When `extract_pattern` is set, the property is first reduced to the
    first capture group (or whole match) of that regex, with thousands
    separators removed, so values like ``"Coverage: 1,234 lines"`` can be
    compared numerically.
    """

    def __init__(
        self,
        rule_id: str,
        *,
        property_path: str,
        expected_value: Any,
        operator: str = "==",
        extract_pattern: re.Pattern[str] | None = None,
    ) -> None:
        super().__init__(rule_id)
        self._property_path = property_path
        self._expected_value = expected_value
        self._operator = operator
        self._extract_pattern = extract_pattern

    def check(self, item: Any, context: EvaluationContext) -> bool:
        return compare_values(self._actual_value(item), self._expected_value, self._operator)

    def check_with_details(self, item: Any, context: EvaluationContext) -> AssertionResult:
        actual = self._actual_value(item)
        if compare_values(actual, self._expected_value, self._operator):
            return AssertionResult(passed=True)
        return AssertionResult(
            passed=False,
            message=(
                f"Property '{self._property_path}' is {actual!r}, "
                f"expected {self._operator} {self._expected_value!r}"
            ),
            context=ViolationContext(code=f"{self._property_path} = {actual!r}"),
        )

    def _actual_value(self, item: Any) -> Any:
        value = resolve_path(item, self._property_path)
        if self._extract_pattern is None:
            return value
        if value is None:
            return None
        match = self._extract_pattern.search(str(value))
        if match is None:
            return None
        extracted = match.group(1) if match.groups() else match.group(0)
        return extracted.replace(",", "") if extracted is not None else None


def resolve_path(item: Any, path: str) -> Any:
    current = item
    for segment in path.split("."):
        current = get_field(current, segment)
        if current is None:
            return None
    return current
