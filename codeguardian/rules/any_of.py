"""Disjunction combinator."""

from __future__ import annotations

from codeguardian.context import EvaluationContext
from codeguardian.models import RuleResult, SubResult, Violation
from codeguardian.rules.base import CombinatorRule, run_child


class AnyOfRule(CombinatorRule):
    """Passes as soon as one child passes; otherwise reports every child's violations."""

    def evaluate(self, context: EvaluationContext) -> RuleResult:
        violations: list[Violation] = []
        sub_results: list[SubResult] = []
        for rule in self.rules:
            outcome = run_child(rule, context)
            sub_results.append(SubResult(rule.id, outcome.passed, list(outcome.violations)))
            if outcome.passed:
                return RuleResult(passed=True, sub_results=sub_results)
            violations.extend(outcome.violations)
        return RuleResult(
            passed=False,
            message="None of the rules passed",
            violations=violations,
            sub_results=sub_results,
        )
