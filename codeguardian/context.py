"""Evaluation context handed through a rule tree."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Protocol, TypeVar

from codeguardian.models import DiffSnapshot, FileInfo, Mode

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Repository(Protocol):
    """Source of changed files and their content."""

    def get_files(self, diff: DiffSnapshot, mode: Mode = "diff") -> list[FileInfo]:
        """Return the files to check for the given mode."""

    def get_all_files(self) -> list[FileInfo]:
        """Return every file of the working tree."""

    def get_file_content(self, path: str) -> str:
        """Return file text; raise `ContentUnavailableError` when unreadable."""

    def get_diff(self, base_branch: str, head_branch: str) -> DiffSnapshot:
        """Return the files changed between two revisions."""


class ResultCache:
    """Memo table scoped to one evaluation run."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def get(self, key: str, factory: Callable[[], T]) -> T:
        if key in self._values:
            return self._values[key]
        value = factory()
        logger.debug("cache miss for %s", key)
        self._values[key] = value
        return value

    def has(self, key: str) -> bool:
        return key in self._values

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()


@dataclass(frozen=True, slots=True)
class RunFlags:
    """Per-run switches coming from the command line."""

    skip_missing_ast_grep: bool = False
    working_directory: Path | None = None


@dataclass(frozen=True, slots=True)
class EvaluationContext:
    """Capabilities and current scope for one rule evaluation.

    Contexts are never mutated. `ForEach` forks a new context per item with
    :meth:`with_item`, so sibling items never observe each other's scope.
    """

    repository: Repository
    diff: DiffSnapshot
    cache: ResultCache = field(default_factory=ResultCache)
    config: Mapping[str, Any] = field(default_factory=dict)
    mode: Mode = "diff"
    current_item: Any = None
    flags: RunFlags = field(default_factory=RunFlags)

    @property
    def has_item(self) -> bool:
        return self.current_item is not None

    def with_item(self, item: Any) -> EvaluationContext:
        return replace(self, current_item=item)

    def with_config(self, config: Mapping[str, Any]) -> EvaluationContext:
        return replace(self, config=config)
