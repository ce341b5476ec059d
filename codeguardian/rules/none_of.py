"""Negated disjunction combinator."""

from __future__ import annotations

from codeguardian.context import EvaluationContext
from codeguardian.models import RuleResult, SubResult, Violation
from codeguardian.rules.base import CombinatorRule, run_child


class NoneOfRule(CombinatorRule):
    """Passes when no child passes.

    A child that raises counts as failing, which is what this combinator
    wants, so it does not turn the run into a failure.
    """

    def evaluate(self, context: EvaluationContext) -> RuleResult:
        sub_results: list[SubResult] = []
        for rule in self.rules:
            outcome = run_child(rule, context)
            sub_results.append(SubResult(rule.id, outcome.passed, list(outcome.violations)))
            if outcome.passed:
                message = f"Rule '{rule.id}' should have failed but passed"
                return RuleResult(
                    passed=False,
                    message=message,
                    violations=[Violation(message=outcome.message or message, context=outcome.context)],
                    sub_results=sub_results,
                )
        return RuleResult(passed=True, sub_results=sub_results)
