"""Assertions on captured command output."""

from __future__ import annotations

import re
from typing import Any, cast

from codeguardian.context import EvaluationContext
from codeguardian.errors import ConfigurationError
from codeguardian.models import get_field
from codeguardian.rules.base import AssertionRule
from codeguardian.rules.patterns import compare_numbers

TARGETS: frozenset[str] = frozenset({"exit_code", "stdout", "stderr"})


class AssertCommandOutputRule(AssertionRule):
    """Checks an exit code against a condition, or a stream against a pattern."""

    def __init__(
        self,
        rule_id: str,
        *,
        target: str,
        pattern: re.Pattern[str] | None = None,
        condition: str | None = None,
        value: float | None = None,
        first_lines: int | None = None,
        last_lines: int | None = None,
        should_match: bool = True,
    ) -> None:
        super().__init__(rule_id)
        if target not in TARGETS:
            raise ConfigurationError(f"Unknown command output target: {target}")
        if first_lines and last_lines:
            raise ConfigurationError("Cannot use first_lines and last_lines simultaneously.")
        if target == "exit_code" and (condition is None or value is None):
            raise ConfigurationError('Asserting against exit_code requires "condition" and "value"')
        if target != "exit_code" and pattern is None:
            raise ConfigurationError('Asserting against stdout/stderr requires a "pattern"')
        self._target = target
        self._pattern = pattern
        self._condition = condition
        self._value = value
        self._first_lines = first_lines
        self._last_lines = last_lines
        self._should_match = should_match

    def check(self, item: Any, context: EvaluationContext) -> bool:
        exit_code = get_field(item, "exit_code")
        if not isinstance(exit_code, int) or isinstance(exit_code, bool):
            return False
        if self._target == "exit_code":
            return compare_numbers(exit_code, cast(float, self._value), cast(str, self._condition))
        return self._check_text(str(get_field(item, self._target) or ""))

    def _check_text(self, text: str) -> bool:
        pattern = cast(re.Pattern[str], self._pattern)
        lines = text.split("\n")
        if self._first_lines:
            text = "\n".join(lines[: self._first_lines])
        elif self._last_lines:
            text = "\n".join(lines[-self._last_lines :])
        matched = pattern.search(text) is not None
        return matched == self._should_match
