"""Data model shared by rules, repository adapters and reporters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal

FileStatus = Literal["added", "modified", "deleted", "renamed"]
Severity = Literal["error", "warning"]
Mode = Literal["diff", "all", "staged"]

FILE_STATUSES: frozenset[str] = frozenset({"added", "modified", "deleted", "renamed"})
MODES: frozenset[str] = frozenset({"diff", "all", "staged"})


@dataclass(frozen=True, slots=True)
class FileInfo:
    """A changed (or, in `all` mode, tracked) file."""

    path: str
    status: FileStatus
    content: str | None = None
    old_path: str | None = None
    insertions: int = 0
    deletions: int = 0

    def with_content(self, content: str) -> FileInfo:
        return replace(self, content=content)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "path": self.path,
            "status": self.status,
            "insertions": self.insertions,
            "deletions": self.deletions,
        }
        if self.old_path is not None:
            payload["old_path"] = self.old_path
        return payload


@dataclass(frozen=True, slots=True)
class DiffSnapshot:
    """Files changed between two revisions."""

    base_branch: str
    head_branch: str
    files: tuple[FileInfo, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_branch": self.base_branch,
            "head_branch": self.head_branch,
            "files": [item.to_dict() for item in self.files],
        }


@dataclass(frozen=True, slots=True)
class LineInfo:
    """A line selected from file text."""

    line_number: int
    content: str
    context: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Position:
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class ASTNode:
    """A structural-search match."""

    type: str
    text: str
    range: tuple[int, int] | None = None
    start: Position | None = None
    end: Position | None = None

    @property
    def line(self) -> int | None:
        return self.start.line if self.start is not None else None


@dataclass(frozen=True, slots=True)
class CommandOutput:
    """Captured result of a shell command."""

    command: str
    exit_code: int
    stdout: str
    stderr: str


@dataclass(slots=True)
class ViolationContext:
    """Remediation hints attached to a violation."""

    code: str | None = None
    suggestion: str | None = None
    documentation: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload: dict[str, str] = {}
        if self.code is not None:
            payload["code"] = self.code
        if self.suggestion is not None:
            payload["suggestion"] = self.suggestion
        if self.documentation is not None:
            payload["documentation"] = self.documentation
        return payload


@dataclass(slots=True)
class Violation:
    """A structured report of one failed check."""

    message: str
    severity: Severity = "error"
    file: str | None = None
    line: int | None = None
    column: int | None = None
    context: ViolationContext | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message, "severity": self.severity}
        if self.file is not None:
            payload["file"] = self.file
        if self.line is not None:
            payload["line"] = self.line
        if self.column is not None:
            payload["column"] = self.column
        if self.context is not None:
            context = self.context.to_dict()
            if context:
                payload["context"] = context
        return payload


@dataclass(slots=True)
class AssertionResult:
    """Outcome of an assertion with optional diagnostics."""

    passed: bool
    message: str | None = None
    context: ViolationContext | None = None


@dataclass(slots=True)
class SubResult:
    """Outcome of one child evaluated by a combinator."""

    rule_id: str
    passed: bool
    violations: list[Violation] = field(default_factory=list)


@dataclass(slots=True)
class RuleResult:
    """Outcome of evaluating a rule."""

    passed: bool
    message: str | None = None
    violations: list[Violation] = field(default_factory=list)
    sub_results: list[SubResult] | None = None
    details: dict[str, Any] | None = None


def get_field(item: Any, name: str) -> Any:
    """Read a key of a mapping or an attribute of an object; `None` when absent."""
    if isinstance(item, Mapping):
        return item.get(name)
    if item is None or isinstance(item, (str, bytes, int, float, bool)):
        return None
    return getattr(item, name, None)


def is_deleted_without_content(item: Any) -> bool:
    return get_field(item, "status") == "deleted" and not get_field(item, "content")
