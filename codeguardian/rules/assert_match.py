"""Regex assertion over an item's text."""

from __future__ import annotations

import re
from typing import Any

from codeguardian.context import EvaluationContext
from codeguardian.models import AssertionResult, ViolationContext, is_deleted_without_content
from codeguardian.rules.base import AssertionRule
from codeguardian.rules.patterns import describe_item, extract_text

DELETED_FILE_MESSAGE = "Cannot match pattern against deleted file"
DELETED_FILE_SUGGESTION = (
    "Deleted files have no content to match against. "
    "Use assert_property to check file status instead."
)

_SNIPPET_LIMIT = 200
_SNIPPET_RADIUS = 50
_SNIPPET_HEAD = 150


class AssertMatchRule(AssertionRule):
    """Passes when the item's text matches (or, negated, does not match) a pattern."""

    def __init__(
        self,
        rule_id: str,
        *,
        pattern: re.Pattern[str],
        should_match: bool = True,
        message: str | None = None,
        suggestion: str | None = None,
        documentation: str | None = None,
    ) -> None:
        super().__init__(rule_id)
        self._pattern = pattern
        self._should_match = should_match
        self._message = message
        self._suggestion = suggestion
        self._documentation = documentation

    def check(self, item: Any, context: EvaluationContext) -> bool:
        return self.check_with_details(item, context).passed

    def check_with_details(self, item: Any, context: EvaluationContext) -> AssertionResult:
        if is_deleted_without_content(item):
            if not self._should_match:
                return AssertionResult(passed=True)
            return AssertionResult(
                passed=False,
                message=DELETED_FILE_MESSAGE,
                context=ViolationContext(
                    suggestion=DELETED_FILE_SUGGESTION,
                    documentation=self._documentation,
                ),
            )

        text = extract_text(item)
        match = self._pattern.search(text)
        if (match is not None) == self._should_match:
            return AssertionResult(passed=True)

        if self._message:
            message = self._message
        elif self._should_match:
            message = (
                f"Expected {describe_item(item)} to match pattern "
                f"'{self._pattern.pattern}' but it didn't"
            )
        else:
            message = (
                f"Expected {describe_item(item)} NOT to match pattern "
                f"'{self._pattern.pattern}' but it did"
            )
        return AssertionResult(
            passed=False,
            message=message,
            context=ViolationContext(
                code=_snippet(text, match),
                suggestion=self._suggestion,
                documentation=self._documentation,
            ),
        )


def _snippet(text: str, match: re.Match[str] | None) -> str | None:
    if not text:
        return None
    if len(text) < _SNIPPET_LIMIT:
        return text
    if match is not None:
        start = max(0, match.start() - _SNIPPET_RADIUS)
        end = min(len(text), match.end() + _SNIPPET_RADIUS)
        return f"...{text[start:end]}..."
    return f"{text[:_SNIPPET_HEAD]}..."
