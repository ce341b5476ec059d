"""Select matching lines from the current file text."""

from __future__ import annotations

import re

from codeguardian.context import EvaluationContext
from codeguardian.models import LineInfo, get_field
from codeguardian.rules.base import SelectorRule


class SelectLinesRule(SelectorRule):
    """Emits every line of the current item that matches a pattern."""

    def __init__(self, rule_id: str, *, pattern: re.Pattern[str], include_context: int = 0) -> None:
        super().__init__(rule_id)
        self._pattern = pattern
        self._include_context = include_context

    def select(self, context: EvaluationContext) -> list[LineInfo]:
        content = _current_text(context.current_item)
        if not content:
            return []

        lines = content.split("\n")
        matches: list[LineInfo] = []
        for index, line in enumerate(lines):
            if self._pattern.search(line) is None:
                continue
            matches.append(
                LineInfo(
                    line_number=index + 1,
                    content=line,
                    context=_window(lines, index, self._include_context),
                )
            )
        return matches


def _current_text(item: object) -> str | None:
    if isinstance(item, str):
        return item
    content = get_field(item, "content")
    return content if isinstance(content, str) else None


def _window(lines: list[str], index: int, size: int) -> tuple[str, ...]:
    if size <= 0:
        return ()
    start = max(0, index - size)
    end = min(len(lines) - 1, index + size)
    return tuple(lines[position] for position in range(start, end + 1) if position != index)
