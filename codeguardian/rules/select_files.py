"""Select changed (or all) files by glob and status."""

from __future__ import annotations

from codeguardian.context import EvaluationContext
from codeguardian.models import FileInfo
from codeguardian.rules.base import SelectorRule
from codeguardian.rules.patterns import match_glob


class SelectFilesRule(SelectorRule):
    """Filters the file set by path glob, status and exclude glob."""

    def __init__(
        self,
        rule_id: str,
        *,
        path_pattern: str | None = None,
        status: tuple[str, ...] | None = None,
        exclude_pattern: str | None = None,
        select_all: bool = False,
    ) -> None:
        super().__init__(rule_id)
        self._path_pattern = path_pattern
        self._status = frozenset(status) if status is not None else None
        self._exclude_pattern = exclude_pattern
        self._select_all = select_all

    def select(self, context: EvaluationContext) -> list[FileInfo]:
        if self._select_all:
            files = context.repository.get_all_files()
        else:
            files = context.repository.get_files(context.diff, context.mode)

        selected: list[FileInfo] = []
        for file_info in files:
            if self._path_pattern and not match_glob(file_info.path, self._path_pattern):
                continue
            # Every file from get_all_files() carries the placeholder status "modified".
            if (
                not self._select_all
                and self._status is not None
                and file_info.status not in self._status
            ):
                continue
            if self._exclude_pattern and match_glob(file_info.path, self._exclude_pattern):
                continue
            selected.append(file_info)
        return selected
