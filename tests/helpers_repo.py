"""In-memory repository and stub rules for engine tests."""

from __future__ import annotations

from typing import Any

from codeguardian.context import EvaluationContext, RunFlags
from codeguardian.errors import ContentUnavailableError
from codeguardian.models import (
    AssertionResult,
    DiffSnapshot,
    FileInfo,
    Mode,
    RuleResult,
    Violation,
)
from codeguardian.rules.base import AssertionRule, Rule, RuleKind, SelectorRule


class FakeRepository:
    """Serves a fixed file list and content table."""

    def __init__(
        self,
        files: list[FileInfo] | None = None,
        *,
        contents: dict[str, str] | None = None,
        all_files: list[FileInfo] | None = None,
        staged: list[FileInfo] | None = None,
    ) -> None:
        self.files = list(files or [])
        self.contents = dict(contents or {})
        self.all_files = list(all_files or [])
        self.staged = list(staged or [])
        self.content_reads: list[str] = []

    def get_files(self, diff: DiffSnapshot, mode: Mode = "diff") -> list[FileInfo]:
        if mode == "all":
            return self.get_all_files()
        if mode == "staged":
            return list(self.staged)
        return list(diff.files)

    def get_all_files(self) -> list[FileInfo]:
        return list(self.all_files)

    def get_file_content(self, path: str) -> str:
        self.content_reads.append(path)
        if path not in self.contents:
            raise ContentUnavailableError(f"Cannot read {path}")
        return self.contents[path]

    def get_diff(self, base_branch: str, head_branch: str) -> DiffSnapshot:
        return DiffSnapshot(base_branch, head_branch, tuple(self.files))


def make_context(
    repository: FakeRepository | None = None,
    *,
    item: Any = None,
    mode: Mode = "diff",
    flags: RunFlags | None = None,
) -> EvaluationContext:
    repository = repository or FakeRepository()
    context = EvaluationContext(
        repository=repository,
        diff=repository.get_diff("main", "HEAD"),
        mode=mode,
        flags=flags or RunFlags(),
    )
    return context.with_item(item) if item is not None else context


class StubRule(Rule):
    """Rule with a fixed result that counts its evaluations."""

    kind = RuleKind.COMBINATOR

    def __init__(
        self,
        rule_id: str,
        passed: bool,
        violations: list[Violation] | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(rule_id)
        self.passed = passed
        self.violations = violations if violations is not None else (
            [] if passed else [Violation(message=f"{rule_id} violated")]
        )
        self.message = message
        self.calls = 0

    def evaluate(self, context: EvaluationContext) -> RuleResult:
        self.calls += 1
        return RuleResult(passed=self.passed, message=self.message, violations=list(self.violations))


class StubSelector(SelectorRule):
    def __init__(self, rule_id: str, items: list[Any]) -> None:
        super().__init__(rule_id)
        self.items = items

    def select(self, context: EvaluationContext) -> list[Any]:
        return list(self.items)


class StubAssertion(AssertionRule):
    """Assertion driven by a predicate, recording every item it sees."""

    def __init__(self, rule_id: str, predicate: Any = None, message: str | None = None) -> None:
        super().__init__(rule_id)
        self.predicate = predicate or (lambda item: True)
        self.message = message
        self.seen: list[Any] = []

    def check(self, item: Any, context: EvaluationContext) -> bool:
        return self.check_with_details(item, context).passed

    def check_with_details(self, item: Any, context: EvaluationContext) -> AssertionResult:
        self.seen.append(item)
        passed = bool(self.predicate(item))
        return AssertionResult(passed=passed, message=None if passed else self.message)


class RaisingAssertion(AssertionRule):
    def __init__(self, rule_id: str, error: Exception) -> None:
        super().__init__(rule_id)
        self.error = error

    def check(self, item: Any, context: EvaluationContext) -> bool:
        raise self.error
