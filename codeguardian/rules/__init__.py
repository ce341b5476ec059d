"""Rules package: rule types and the builder registry that creates them from configuration."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

import yaml

from codeguardian.errors import ConfigurationError
from codeguardian.models import FILE_STATUSES
from codeguardian.rules.all_of import AllOfRule
from codeguardian.rules.any_of import AnyOfRule
from codeguardian.rules.assert_command_output import TARGETS, AssertCommandOutputRule
from codeguardian.rules.assert_count import AssertCountRule
from codeguardian.rules.assert_line_count import AssertLineCountRule
from codeguardian.rules.assert_match import AssertMatchRule
from codeguardian.rules.assert_property import AssertPropertyRule
from codeguardian.rules.base import (
    AssertionRule,
    CombinatorRule,
    Rule,
    RuleKind,
    SelectorRule,
)
from codeguardian.rules.for_each import ForEachRule
from codeguardian.rules.none_of import NoneOfRule
from codeguardian.rules.patterns import CONDITIONS, OPERATORS, compile_pattern
from codeguardian.rules.select_ast_nodes import AST_GREP_LANGUAGES, SelectASTNodesRule
from codeguardian.rules.select_command_output import SelectCommandOutputRule
from codeguardian.rules.select_file_changes import SelectFileChangesRule
from codeguardian.rules.select_files import SelectFilesRule
from codeguardian.rules.select_lines import SelectLinesRule

__all__ = [
    "AssertionRule",
    "CombinatorRule",
    "Rule",
    "RuleBuilder",
    "RuleFactory",
    "RuleKind",
    "SelectorRule",
    "create_rule_factory",
]

RuleBuilder = Callable[[Mapping[str, Any], "RuleFactory"], Rule]


class RuleFactory:
    """Builder registry turning configuration nodes into rule trees."""

    def __init__(self) -> None:
        self._builders: dict[str, RuleBuilder] = {}
        self._id_counter = 0

    def register(self, type_name: str, builder: RuleBuilder) -> None:
        self._builders[type_name] = builder

    def types(self) -> list[str]:
        return list(self._builders)

    def create(self, node: Any) -> Rule:
        if not isinstance(node, Mapping):
            raise ConfigurationError(f"Rule configuration must be a mapping, got {type(node).__name__}")
        type_name = node.get("type")
        builder = self._builders.get(type_name) if isinstance(type_name, str) else None
        if builder is None:
            raise ConfigurationError(f"Unknown rule type: {type_name}")
        return builder(node, self)

    def load_from_yaml(self, text: str) -> Rule:
        """Parse a rule document and build its root rule."""
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML: {exc}") from exc
        return self.load_from_mapping(document)

    def load_from_mapping(self, document: Any) -> Rule:
        """Build a rule from a parsed document.

        Accepts the legacy form ``{id, description, rule: {...}}`` and the
        direct form ``{type, id?, ...}``.
        """
        if isinstance(document, Mapping) and isinstance(document.get("rule"), Mapping):
            node = dict(document["rule"])
        elif isinstance(document, Mapping) and document.get("type"):
            node = dict(document)
        else:
            raise ConfigurationError('Invalid configuration: missing "type" property')
        node["id"] = document.get("id") or self._next_rule_id()
        return self.create(node)

    def _next_rule_id(self) -> str:
        self._id_counter += 1
        return f"rule_{self._id_counter}"


def create_rule_factory() -> RuleFactory:
    """Return a factory with every built-in rule type registered."""
    factory = RuleFactory()
    for type_name, builder in BUILTIN_BUILDERS.items():
        factory.register(type_name, builder)
    return factory


def _build_select_files(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    raw_status = node.get("status")
    status: tuple[str, ...] | None = None
    if raw_status is not None:
        values = raw_status if isinstance(raw_status, list) else [raw_status]
        status = tuple(_as_choice(value, FILE_STATUSES, "status") for value in values)
    return SelectFilesRule(
        _rule_id(node, "select_files"),
        path_pattern=_as_optional_str(node.get("path_pattern"), "path_pattern"),
        status=status,
        exclude_pattern=_as_optional_str(node.get("exclude_pattern"), "exclude_pattern"),
        select_all=_as_bool(node.get("select_all", False), "select_all"),
    )


def _build_select_lines(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    return SelectLinesRule(
        _rule_id(node, "select_lines"),
        pattern=_pattern(node),
        include_context=_as_int(node.get("include_context", 0), "include_context"),
    )


def _build_select_ast_nodes(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    return SelectASTNodesRule(
        _rule_id(node, "select_ast_nodes"),
        query=_as_str(node.get("query"), "query"),
        language=_as_choice(node.get("language"), set(AST_GREP_LANGUAGES), "language"),
    )


def _build_select_file_changes(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    return SelectFileChangesRule(
        _rule_id(node, "select_file_changes"),
        min_percentage=_as_optional_number(node.get("min_percentage"), "min_percentage"),
        max_percentage=_as_optional_number(node.get("max_percentage"), "max_percentage"),
    )


def _build_select_command_output(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    return SelectCommandOutputRule(
        _rule_id(node, "select_command_output"),
        command=_as_str(node.get("command"), "command"),
    )


def _build_assert_match(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    pattern = _as_str(node.get("pattern"), "pattern")
    return AssertMatchRule(
        _rule_id(node, f"assert_match_{pattern[:20]}"),
        pattern=_pattern(node),
        should_match=_as_bool(node.get("should_match", True), "should_match"),
        message=_as_optional_str(node.get("message"), "message"),
        suggestion=_as_optional_str(node.get("suggestion"), "suggestion"),
        documentation=_as_optional_str(node.get("documentation"), "documentation"),
    )


def _build_assert_count(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    return AssertCountRule(
        _rule_id(node, "assert_count"),
        condition=_as_choice(node.get("condition"), CONDITIONS, "condition"),
        value=_as_number(node.get("value"), "value"),
    )


def _build_assert_property(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    operator = _as_choice(node.get("operator", "=="), OPERATORS, "operator")
    expected = node.get("expected_value")
    if operator == "matches" and isinstance(expected, str):
        compile_pattern(expected)
    extract = _as_optional_str(node.get("extract_pattern"), "extract_pattern")
    return AssertPropertyRule(
        _rule_id(node, "assert_property"),
        property_path=_as_str(node.get("property_path"), "property_path"),
        expected_value=expected,
        operator=operator,
        extract_pattern=compile_pattern(extract) if extract is not None else None,
    )


def _build_assert_command_output(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    target = node.get("target")
    if target == "exitCode":
        target = "exit_code"
    condition = node.get("condition")
    raw_value = node.get("value")
    return AssertCommandOutputRule(
        _rule_id(node, "assert_command_output"),
        target=_as_choice(target, TARGETS, "target"),
        pattern=_pattern(node) if node.get("pattern") is not None else None,
        condition=_as_choice(condition, CONDITIONS, "condition") if condition is not None else None,
        value=_as_number(raw_value, "value") if raw_value is not None else None,
        first_lines=_as_optional_int(node.get("first_lines"), "first_lines"),
        last_lines=_as_optional_int(node.get("last_lines"), "last_lines"),
        should_match=_as_bool(node.get("should_match", True), "should_match"),
    )


def _build_assert_line_count(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    raw_value = node.get("value", node.get("max_lines"))
    return AssertLineCountRule(
        _rule_id(node, "assert_line_count"),
        value=_as_int(raw_value, "value"),
        operator=_as_choice(node.get("operator", "<="), CONDITIONS, "operator"),
        message=_as_optional_str(node.get("message"), "message"),
        suggestion=_as_optional_str(node.get("suggestion"), "suggestion"),
        documentation=_as_optional_str(node.get("documentation"), "documentation"),
    )


def _children(node: Mapping[str, Any], factory: RuleFactory) -> list[Rule]:
    raw = node.get("rules")
    if not isinstance(raw, list):
        raise ConfigurationError(f"{node.get('type')} requires a list of rules")
    return [factory.create(child) for child in raw]


def _build_all_of(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    return AllOfRule(_rule_id(node, "all_of"), _children(node, factory))


def _build_any_of(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    return AnyOfRule(_rule_id(node, "any_of"), _children(node, factory))


def _build_none_of(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    return NoneOfRule(_rule_id(node, "none_of"), _children(node, factory))


def _build_for_each(node: Mapping[str, Any], factory: RuleFactory) -> Rule:
    if node.get("select") is None or node.get("assert") is None:
        raise ConfigurationError('for_each requires "select" and "assert"')
    return ForEachRule(
        _rule_id(node, "for_each"),
        factory.create(node["select"]),
        factory.create(node["assert"]),
    )


BUILTIN_BUILDERS: dict[str, RuleBuilder] = {
    "select_files": _build_select_files,
    "select_lines": _build_select_lines,
    "select_ast_nodes": _build_select_ast_nodes,
    "select_file_changes": _build_select_file_changes,
    "select_command_output": _build_select_command_output,
    "assert_match": _build_assert_match,
    "assert_count": _build_assert_count,
    "assert_property": _build_assert_property,
    "assert_command_output": _build_assert_command_output,
    "assert_line_count": _build_assert_line_count,
    "all_of": _build_all_of,
    "any_of": _build_any_of,
    "none_of": _build_none_of,
    "for_each": _build_for_each,
}


def _rule_id(node: Mapping[str, Any], default: str) -> str:
    value = node.get("id")
    if value is None or value == "":
        return default
    return str(value)


def _pattern(node: Mapping[str, Any]) -> re.Pattern[str]:
    return compile_pattern(
        _as_str(node.get("pattern"), "pattern"),
        _as_optional_str(node.get("flags"), "flags") or "",
    )


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"{field_name} must be a non-empty string")
    return value


def _as_optional_str(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str] | frozenset[str], field_name: str) -> str:
    if raw not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ConfigurationError(f"{field_name} must be one of: {choices} (got {raw!r})")
    return raw


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ConfigurationError(f"{field_name} must be an integer")
    return raw


def _as_optional_int(raw: Any, field_name: str) -> int | None:
    return None if raw is None else _as_int(raw, field_name)


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ConfigurationError(f"{field_name} must be a boolean")
    return raw


def _as_number(raw: Any, field_name: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ConfigurationError(f"{field_name} must be a number")
    return raw


def _as_optional_number(raw: Any, field_name: str) -> float | None:
    return None if raw is None else _as_number(raw, field_name)
