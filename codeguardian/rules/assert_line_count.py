"""Line-count assertion over files and text."""

from __future__ import annotations

import re
from typing import Any

from codeguardian.context import EvaluationContext
from codeguardian.models import AssertionResult, ViolationContext, get_field
from codeguardian.rules.base import AssertionRule
from codeguardian.rules.patterns import compare_numbers, describe_item

_LINE_BREAK_RE = re.compile(r"\r?\n")


class AssertLineCountRule(AssertionRule):
    def __init__(
        self,
        rule_id: str,
        *,
        value: int,
        operator: str = "<=",
        message: str | None = None,
        suggestion: str | None = None,
        documentation: str | None = None,
    ) -> None:
        super().__init__(rule_id)
        self._value = value
        self._operator = operator
        self._message = message
        self._suggestion = suggestion
        self._documentation = documentation

    def check(self, item: Any, context: EvaluationContext) -> bool:
        return compare_numbers(line_count(item), self._value, self._operator)

    def check_with_details(self, item: Any, context: EvaluationContext) -> AssertionResult:
        count = line_count(item)
        if compare_numbers(count, self._value, self._operator):
            return AssertionResult(passed=True)

        path = get_field(item, "path")
        suggestion = self._suggestion
        if suggestion is None and count > self._value:
            suggestion = "Consider breaking this file into smaller modules"
        return AssertionResult(
            passed=False,
            message=self._message
            or (
                f"{describe_item(item, line_count=True)} has {count} lines, "
                f"expected {self._operator} {self._value}"
            ),
            context=ViolationContext(
                code=f"File: {path} ({count} lines)" if path is not None else f"Lines: {count}",
                suggestion=suggestion,
                documentation=self._documentation,
            ),
        )


def line_count(item: Any) -> int:
    """Count lines, ignoring trailing empty lines but keeping blank lines inside."""
    if isinstance(item, str):
        return count_lines(item)
    for name in ("content", "text"):
        value = get_field(item, name)
        if isinstance(value, str):
            return count_lines(value)
    value = get_field(item, "line_count")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def count_lines(text: str) -> int:
    if not text:
        return 0
    lines = _LINE_BREAK_RE.split(text)
    while lines and lines[-1] == "":
        lines.pop()
    return len(lines)
