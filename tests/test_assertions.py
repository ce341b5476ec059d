"""Tests for the assertion rules."""

from __future__ import annotations

import math
from typing import Any

import pytest

from codeguardian.errors import ConfigurationError
from codeguardian.models import ASTNode, CommandOutput, FileInfo, LineInfo
from codeguardian.rules.assert_command_output import AssertCommandOutputRule
from codeguardian.rules.assert_count import AssertCountRule
from codeguardian.rules.assert_line_count import AssertLineCountRule, count_lines
from codeguardian.rules.assert_match import AssertMatchRule
from codeguardian.rules.assert_property import AssertPropertyRule
from codeguardian.rules.patterns import compile_pattern, to_number
from tests.helpers_repo import make_context

CTX = make_context()


def _match(pattern: str, **kwargs: Any) -> AssertMatchRule:
    return AssertMatchRule("m", pattern=compile_pattern(pattern), **kwargs)


def test_match_on_deleted_file_fails_when_match_expected() -> None:
    deleted = FileInfo(path="old.py", status="deleted")

    result = _match("anything").check_with_details(deleted, CTX)

    assert result.passed is False
    assert result.message == "Cannot match pattern against deleted file"
    assert result.context is not None
    assert "assert_property" in (result.context.suggestion or "")


def test_match_on_deleted_file_passes_when_no_match_expected() -> None:
    deleted = FileInfo(path="old.py", status="deleted")

    assert _match("anything", should_match=False).check_with_details(deleted, CTX).passed is True


def test_match_messages_name_the_item_kind() -> None:
    file_info = FileInfo(path="a.ts", status="added", content="console.log('x')")
    line = LineInfo(line_number=3, content="print('x')")
    node = ASTNode(type="match", text="eval(x)")

    assert (
        _match("console", should_match=False).check_with_details(file_info, CTX).message
        == "Expected file content NOT to match pattern 'console' but it did"
    )
    assert (
        _match("TODO").check_with_details(line, CTX).message
        == "Expected line to match pattern 'TODO' but it didn't"
    )
    assert "AST node" in (_match("exec").check_with_details(node, CTX).message or "")
    assert "text" in (_match("nope").check_with_details("plain", CTX).message or "")


def test_match_uses_path_when_no_content() -> None:
    info = {"path": "src/components/Button.tsx"}

    assert _match("\\.tsx$").check(info, CTX) is True


def test_match_custom_message_and_remediation() -> None:
    rule = _match("secret", should_match=False, message="No secrets", suggestion="Use env vars")

    result = rule.check_with_details("my secret", CTX)

    assert result.message == "No secrets"
    assert result.context is not None
    assert result.context.code == "my secret"
    assert result.context.suggestion == "Use env vars"


def test_match_snippet_is_windowed_for_long_text() -> None:
    text = "a" * 300 + "FORBIDDEN" + "b" * 300

    result = _match("FORBIDDEN", should_match=False).check_with_details(text, CTX)

    assert result.context is not None
    code = result.context.code or ""
    assert code.startswith("...") and code.endswith("...")
    assert "FORBIDDEN" in code
    assert len(code) == 3 + 50 + len("FORBIDDEN") + 50 + 3


def test_count_compares_list_length() -> None:
    assert AssertCountRule("c", condition=">=", value=2).check([1, 2], CTX) is True
    assert AssertCountRule("c", condition="==", value=0).check("not a list", CTX) is True
    assert AssertCountRule("c", condition="<", value=1).check([1], CTX) is False


def test_property_uses_loose_equality() -> None:
    rule = AssertPropertyRule("p", property_path="value", expected_value=5, operator="==")

    assert rule.check({"value": "5"}, CTX) is True
    assert rule.check({"value": "6"}, CTX) is False
    assert rule.check({}, CTX) is False


def test_property_resolves_dotted_paths_on_mappings_and_objects() -> None:
    item = {"meta": {"owner": {"name": "core"}}}
    file_info = FileInfo(path="a.py", status="added")

    assert AssertPropertyRule(
        "p", property_path="meta.owner.name", expected_value="core"
    ).check(item, CTX)
    assert AssertPropertyRule("p", property_path="status", expected_value="added").check(
        file_info, CTX
    )
    assert AssertPropertyRule(
        "p", property_path="meta.missing.name", expected_value=None
    ).check(item, CTX)


def test_property_matches_builds_regex_from_expected_string() -> None:
    rule = AssertPropertyRule(
        "p", property_path="path", expected_value="^src/.*\\.ts$", operator="matches"
    )

    assert rule.check({"path": "src/app.ts"}, CTX) is True
    assert rule.check({"path": "lib/app.ts"}, CTX) is False


def test_property_ordering_and_includes() -> None:
    bigger = AssertPropertyRule("p", property_path="n", expected_value="10", operator=">")
    includes = AssertPropertyRule("p", property_path="tags", expected_value="x", operator="includes")

    assert bigger.check({"n": 11}, CTX) is True
    assert bigger.check({"n": "abc"}, CTX) is False
    assert includes.check({"tags": ["x", "y"]}, CTX) is True
    assert includes.check({"tags": "xyz"}, CTX) is True
    assert includes.check({"tags": 5}, CTX) is False


def test_property_extract_pattern_strips_thousands_separators() -> None:
    rule = AssertPropertyRule(
        "p",
        property_path="stdout",
        expected_value=1000,
        operator=">=",
        extract_pattern=compile_pattern("Total: ([\\d,]+)"),
    )

    assert rule.check({"stdout": "Total: 1,234 lines"}, CTX) is True
    assert rule.check({"stdout": "Total: 999 lines"}, CTX) is False
    assert rule.check({"stdout": "nothing here"}, CTX) is False


def test_property_failure_names_property_and_values() -> None:
    rule = AssertPropertyRule("p", property_path="status", expected_value="added")

    result = rule.check_with_details({"status": "deleted"}, CTX)

    assert result.passed is False
    assert "status" in (result.message or "")
    assert "'deleted'" in (result.message or "")


def test_line_count_ignores_trailing_but_keeps_inner_blank_lines() -> None:
    assert count_lines("a\n\nb\n\n\n") == 3
    assert count_lines("a\r\nb") == 2
    assert count_lines("") == 0


def test_line_count_failure_details() -> None:
    rule = AssertLineCountRule("lines", value=2)
    file_info = FileInfo(path="big.py", status="modified", content="1\n2\n3\n")

    result = rule.check_with_details(file_info, CTX)

    assert result.passed is False
    assert result.message == "file has 3 lines, expected <= 2"
    assert result.context is not None
    assert result.context.code == "File: big.py (3 lines)"
    assert result.context.suggestion == "Consider breaking this file into smaller modules"


def test_line_count_on_text_and_line_count_field() -> None:
    at_least = AssertLineCountRule("lines", value=3, operator=">=")

    result = at_least.check_with_details("one\ntwo", CTX)

    assert result.context is not None
    assert result.context.code == "Lines: 2"
    assert result.context.suggestion is None
    assert at_least.check({"line_count": 7}, CTX) is True


def test_command_output_exit_code_condition() -> None:
    rule = AssertCommandOutputRule("cmd", target="exit_code", condition="==", value=0)

    assert rule.check(CommandOutput("true", 0, "", ""), CTX) is True
    assert rule.check(CommandOutput("false", 1, "", ""), CTX) is False
    assert rule.check({"stdout": "no exit code"}, CTX) is False


def test_command_output_stream_windows() -> None:
    output = CommandOutput("test", 0, "header\nok 1\nok 2\nPASSED", "")
    last = AssertCommandOutputRule(
        "cmd", target="stdout", pattern=compile_pattern("PASSED"), last_lines=1
    )
    first = AssertCommandOutputRule(
        "cmd", target="stdout", pattern=compile_pattern("PASSED"), first_lines=2
    )
    absent = AssertCommandOutputRule(
        "cmd", target="stderr", pattern=compile_pattern("error", "i"), should_match=False
    )

    assert last.check(output, CTX) is True
    assert first.check(output, CTX) is False
    assert absent.check(output, CTX) is True


def test_command_output_rejects_inconsistent_configuration() -> None:
    with pytest.raises(ConfigurationError, match="Cannot use first_lines and last_lines"):
        AssertCommandOutputRule(
            "cmd", target="stdout", pattern=compile_pattern("x"), first_lines=1, last_lines=1
        )
    with pytest.raises(ConfigurationError, match="condition"):
        AssertCommandOutputRule("cmd", target="exit_code")
    with pytest.raises(ConfigurationError, match="pattern"):
        AssertCommandOutputRule("cmd", target="stderr")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("42", 42.0), (" 7.5 ", 7.5), ("", 0.0), ("0x1A", 26.0), ("0b101", 5.0), ("1e3", 1000.0)],
)
def test_to_number_converts_numeric_strings(raw: str, expected: float) -> None:
    assert to_number(raw) == expected


def test_to_number_accepts_only_spelled_out_infinity() -> None:
    assert to_number("Infinity") == math.inf
    assert to_number("-Infinity") == -math.inf


@pytest.mark.parametrize(
    "raw", ["1_000", "inf", "-inf", "nan", "NaN", "infinity", "0x", "0x-1", "abc"]
)
def test_to_number_rejects_python_only_spellings(raw: str) -> None:
    assert math.isnan(to_number(raw))


def test_assert_property_ordering_on_underscored_number_fails() -> None:
    rule = AssertPropertyRule("size", property_path="size", expected_value=5, operator=">")

    assert rule.check({"size": "1_000"}, CTX) is False
    assert rule.check({"size": "1000"}, CTX) is True
