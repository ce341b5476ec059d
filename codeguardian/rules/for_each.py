"""Fan-out combinator: apply a rule to every selected item."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, cast

from codeguardian.context import EvaluationContext
from codeguardian.errors import FATAL_ERRORS, ConfigurationError, ContentUnavailableError
from codeguardian.models import FileInfo, RuleResult, Violation, get_field
from codeguardian.rules.base import AssertionRule, CombinatorRule, Rule, RuleKind, SelectorRule

logger = logging.getLogger(__name__)


class ForEachRule(CombinatorRule):
    """Select items, then check each one with an assertion or combinator.

    Every item is visited. File references without content get their text
    loaded from the repository before the check; deleted files pass through
    unchanged so assertions can report on them. Each item runs in its own
    forked context.
    """

    def __init__(self, rule_id: str, selector: Rule, check: Rule) -> None:
        if selector.kind is not RuleKind.SELECTOR:
            raise ConfigurationError(f"for_each '{rule_id}' requires a selector, got {selector!r}")
        if check.kind is RuleKind.SELECTOR:
            raise ConfigurationError(
                f"for_each '{rule_id}' requires an assertion or combinator, got {check!r}"
            )
        super().__init__(rule_id, [selector, check])
        self._selector = cast(SelectorRule, selector)
        self._check = check

    def count_rules(self) -> int:
        return 1

    def evaluate(self, context: EvaluationContext) -> RuleResult:
        items = self._selector.select(context)
        violations: list[Violation] = []
        for item in items:
            prepared = _with_content(item, context)
            try:
                violations.extend(self._check_item(prepared, context.with_item(prepared)))
            except FATAL_ERRORS:
                raise
            except Exception as exc:
                violations.append(
                    Violation(
                        message=f"Error evaluating assertion: {exc}",
                        file=item_file(item),
                        line=item_line(item),
                    )
                )
        return RuleResult(passed=not violations, violations=violations)

    def _check_item(self, item: Any, item_context: EvaluationContext) -> list[Violation]:
        if self._check.kind is RuleKind.ASSERTION:
            assertion = cast(AssertionRule, self._check)
            result = assertion.check_with_details(item, item_context)
            if result.passed:
                return []
            return [
                Violation(
                    message=result.message or f"Assertion '{assertion.id}' failed",
                    file=item_file(item),
                    line=item_line(item),
                    context=result.context,
                )
            ]

        result = self._check.evaluate(item_context)
        if result.passed:
            return []
        return [
            replace(
                violation,
                file=violation.file or item_file(item),
                line=violation.line or item_line(item),
            )
            for violation in result.violations
        ]


def _with_content(item: Any, context: EvaluationContext) -> Any:
    path = get_field(item, "path")
    if not isinstance(path, str) or get_field(item, "content") or get_field(item, "status") == "deleted":
        return item
    try:
        content = context.repository.get_file_content(path)
    except ContentUnavailableError as exc:
        logger.debug("could not load %s: %s", path, exc)
        return item
    if isinstance(item, FileInfo):
        return item.with_content(content)
    if isinstance(item, dict):
        return {**item, "content": content}
    return item


def item_file(item: Any) -> str | None:
    for name in ("file", "path"):
        value = get_field(item, name)
        if value is not None:
            return str(value)
    return None


def item_line(item: Any) -> int | None:
    for name in ("line", "line_number"):
        value = get_field(item, name)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None
