"""Evaluate rule files against a repository and aggregate a report."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from codeguardian.context import EvaluationContext, Repository, ResultCache, RunFlags
from codeguardian.loader import LoadedConfiguration, display_path
from codeguardian.models import DiffSnapshot, Mode, RuleResult, Violation
from codeguardian.rules import RuleFactory, create_rule_factory

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RuleFileResult:
    """Outcome of one rule file."""

    rule_id: str
    description: str
    config_file: str
    passed: bool
    violations: list[Violation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "description": self.description,
            "config_file": self.config_file,
            "passed": self.passed,
            "violations": [violation.to_dict() for violation in self.violations],
        }


@dataclass(slots=True)
class ValidationSummary:
    total_files: int = 0
    passed_rules: int = 0
    failed_rules: int = 0
    violations: int = 0
    total_individual_rules: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_files": self.total_files,
            "passed_rules": self.passed_rules,
            "failed_rules": self.failed_rules,
            "violations": self.violations,
            "total_individual_rules": self.total_individual_rules,
        }


@dataclass(slots=True)
class ValidationReport:
    """Aggregated result of a validation run."""

    passed: bool
    summary: ValidationSummary
    results: list[RuleFileResult]
    diff: DiffSnapshot
    duration_seconds: float

    @property
    def config_files(self) -> list[str]:
        return sorted(result.config_file for result in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "summary": self.summary.to_dict(),
            "results": [result.to_dict() for result in self.results],
            "diff": self.diff.to_dict(),
            "duration_seconds": round(self.duration_seconds, 3),
        }


def run_validation(
    configurations: Sequence[LoadedConfiguration],
    *,
    repository: Repository,
    diff: DiffSnapshot,
    mode: Mode = "diff",
    flags: RunFlags | None = None,
    base_path: Path | None = None,
    factory: RuleFactory | None = None,
) -> ValidationReport:
    """Build and evaluate every rule file against one shared context.

    Configuration and external-tool errors propagate and abort the run.
    """
    started = time.perf_counter()
    factory = factory or create_rule_factory()
    context = EvaluationContext(
        repository=repository,
        diff=diff,
        cache=ResultCache(),
        mode=mode,
        flags=flags or RunFlags(),
    )

    summary = ValidationSummary()
    results: list[RuleFileResult] = []
    all_passed = True
    for configuration in configurations:
        rule = factory.load_from_mapping(configuration.content)
        summary.total_individual_rules += rule.count_rules()
        logger.debug("evaluating %s from %s", rule.id, configuration.path)

        result = rule.evaluate(context.with_config(configuration.content))
        passed_count, failed_count = _count_outcomes(result)
        summary.passed_rules += passed_count
        summary.failed_rules += failed_count
        summary.violations += len(result.violations)
        all_passed = all_passed and result.passed

        results.append(
            RuleFileResult(
                rule_id=configuration.rule_id or rule.id,
                description=configuration.description
                or f"Rules from {configuration.path.name}",
                config_file=display_path(configuration.path, base_path),
                passed=result.passed,
                violations=list(result.violations),
            )
        )

    if mode == "diff":
        summary.total_files = len(diff.files)
    else:
        summary.total_files = len(repository.get_files(diff, mode))

    return ValidationReport(
        passed=all_passed,
        summary=summary,
        results=results,
        diff=diff,
        duration_seconds=time.perf_counter() - started,
    )


def _count_outcomes(result: RuleResult) -> tuple[int, int]:
    if result.sub_results:
        passed = sum(1 for item in result.sub_results if item.passed)
        return passed, len(result.sub_results) - passed
    return (1, 0) if result.passed else (0, 1)
