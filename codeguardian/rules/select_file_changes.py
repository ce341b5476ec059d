"""Select files whose changed-line share falls within a range."""

from __future__ import annotations

import logging

from codeguardian.context import EvaluationContext
from codeguardian.errors import ContentUnavailableError
from codeguardian.models import FileInfo
from codeguardian.rules.base import SelectorRule

logger = logging.getLogger(__name__)


class SelectFileChangesRule(SelectorRule):
    def __init__(
        self,
        rule_id: str,
        *,
        min_percentage: float | None = None,
        max_percentage: float | None = None,
    ) -> None:
        super().__init__(rule_id)
        self._min_percentage = min_percentage
        self._max_percentage = max_percentage

    def select(self, context: EvaluationContext) -> list[FileInfo]:
        files = context.repository.get_files(context.diff, context.mode)
        selected: list[FileInfo] = []
        for file_info in files:
            if file_info.status not in {"added", "modified"}:
                continue
            try:
                content = context.repository.get_file_content(file_info.path)
            except ContentUnavailableError as exc:
                logger.debug("skipping %s: %s", file_info.path, exc)
                continue

            percentage = change_percentage(file_info, len(content.split("\n")))
            if self._min_percentage is not None and percentage < self._min_percentage:
                continue
            if self._max_percentage is not None and percentage > self._max_percentage:
                continue
            selected.append(file_info)
        return selected


def change_percentage(file_info: FileInfo, total_lines: int) -> float:
    changed = file_info.insertions + file_info.deletions
    if total_lines > 0:
        return changed / total_lines * 100
    return 100.0 if changed > 0 else 0.0
