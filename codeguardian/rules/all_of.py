"""Conjunction combinator."""

from __future__ import annotations

from codeguardian.context import EvaluationContext
from codeguardian.models import RuleResult, SubResult
from codeguardian.rules.base import CombinatorRule, run_child


class AllOfRule(CombinatorRule):
    """Passes when every child passes; stops at the first failing child."""

    def evaluate(self, context: EvaluationContext) -> RuleResult:
        sub_results: list[SubResult] = []
        for rule in self.rules:
            outcome = run_child(rule, context)
            sub_results.append(SubResult(rule.id, outcome.passed, list(outcome.violations)))
            if not outcome.passed:
                return RuleResult(
                    passed=False,
                    message=f"Rule '{rule.id}' failed",
                    violations=list(outcome.violations),
                    sub_results=sub_results,
                )
        return RuleResult(passed=True, sub_results=sub_results)
