"""Rule kinds and the shared evaluation protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, cast

from codeguardian.context import EvaluationContext
from codeguardian.errors import FATAL_ERRORS, RuleContractError
from codeguardian.models import AssertionResult, RuleResult, Violation, ViolationContext


class RuleKind(str, Enum):
    SELECTOR = "selector"
    ASSERTION = "assertion"
    COMBINATOR = "combinator"


class Rule:
    """A named, composable evaluation unit."""

    kind: RuleKind

    def __init__(self, rule_id: str) -> None:
        if not rule_id:
            raise ValueError("Rule must define an id")
        self._id = rule_id

    @property
    def id(self) -> str:
        return self._id

    def evaluate(self, context: EvaluationContext) -> RuleResult:
        raise NotImplementedError

    def count_rules(self) -> int:
        """Number of logical rules in this tree; leaf rules count as one."""
        return 1

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id!r})"


class SelectorRule(Rule):
    """Produces candidate items from the context; never fails."""

    kind = RuleKind.SELECTOR

    def select(self, context: EvaluationContext) -> list[Any]:
        """Query the source again and return the selected items."""
        raise NotImplementedError

    def evaluate(self, context: EvaluationContext) -> RuleResult:
        return RuleResult(passed=True, details={"items": self.select(context)})


class AssertionRule(Rule):
    """Tests one item against a predicate."""

    kind = RuleKind.ASSERTION

    def check(self, item: Any, context: EvaluationContext) -> bool:
        raise NotImplementedError

    def check_with_details(self, item: Any, context: EvaluationContext) -> AssertionResult:
        """Like :meth:`check`, with a message and remediation context on failure."""
        return AssertionResult(passed=self.check(item, context))

    def evaluate(self, context: EvaluationContext) -> RuleResult:
        raise RuleContractError(
            f"Assertion '{self.id}' cannot be evaluated directly: "
            "assertions require a combinator and an item to check"
        )


class CombinatorRule(Rule):
    """Composes other rules."""

    kind = RuleKind.COMBINATOR

    def __init__(self, rule_id: str, rules: list[Rule] | tuple[Rule, ...]) -> None:
        super().__init__(rule_id)
        self._rules: tuple[Rule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def count_rules(self) -> int:
        return sum(rule.count_rules() for rule in self._rules)


@dataclass(slots=True)
class ChildOutcome:
    """Result of running one combinator child against the current scope."""

    passed: bool
    message: str | None = None
    violations: list[Violation] = field(default_factory=list)
    context: ViolationContext | None = None
    raised: bool = False


def run_child(rule: Rule, context: EvaluationContext) -> ChildOutcome:
    """Evaluate a child the way AllOf/AnyOf/NoneOf need it.

    Assertion children are checked against ``context.current_item``. Errors
    raised inside an assertion become failing outcomes carrying the error
    text; fatal errors propagate.
    """
    if rule.kind is RuleKind.ASSERTION and context.has_item:
        assertion = cast(AssertionRule, rule)
        try:
            result = assertion.check_with_details(context.current_item, context)
        except FATAL_ERRORS:
            raise
        except Exception as exc:
            message = f"Assertion '{rule.id}' error: {exc}"
            return ChildOutcome(
                passed=False,
                message=message,
                violations=[Violation(message=message)],
                raised=True,
            )
        if result.passed:
            return ChildOutcome(passed=True, message=result.message, context=result.context)
        message = result.message or f"Assertion '{rule.id}' failed"
        return ChildOutcome(
            passed=False,
            message=message,
            violations=[Violation(message=message, context=result.context)],
            context=result.context,
        )

    evaluated = rule.evaluate(context)
    return ChildOutcome(
        passed=evaluated.passed,
        message=evaluated.message,
        violations=list(evaluated.violations),
    )
