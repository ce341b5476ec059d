"""Glob, regex and comparison helpers shared by rules and builders."""

from __future__ import annotations

import fnmatch
import math
import re
from functools import lru_cache
from typing import Any

from codeguardian.errors import ConfigurationError
from codeguardian.models import get_field

CONDITIONS: frozenset[str] = frozenset({">", ">=", "<", "<=", "==", "!="})
OPERATORS: frozenset[str] = CONDITIONS | {"includes", "matches"}

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}
# JavaScript-only flags with no effect on a single search.
_IGNORED_FLAGS = frozenset("guy")

_INFINITIES = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}
_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def compile_pattern(pattern: str, flags: str = "") -> re.Pattern[str]:
    """Compile a rule regex; `flags` uses the single-letter JavaScript spelling."""
    compiled_flags = 0
    for letter in flags or "":
        if letter in _IGNORED_FLAGS:
            continue
        if letter not in _REGEX_FLAGS:
            raise ConfigurationError(f"Unsupported regex flag '{letter}' in '{flags}'")
        compiled_flags |= _REGEX_FLAGS[letter]
    try:
        return re.compile(pattern, compiled_flags)
    except re.error as exc:
        raise ConfigurationError(f"Invalid regex '{pattern}': {exc}") from exc


def match_glob(path: str, pattern: str) -> bool:
    """Match a repository-relative path where `**/` may also match no directory."""
    return any(fnmatch.fnmatch(path, variant) for variant in _glob_variants(pattern))


@lru_cache(maxsize=256)
def _glob_variants(pattern: str) -> tuple[str, ...]:
    variants = {pattern}
    pending = [pattern]
    while pending:
        current = pending.pop()
        start = current.find("**/")
        while start != -1:
            collapsed = current[:start] + current[start + 3 :]
            if collapsed not in variants:
                variants.add(collapsed)
                pending.append(collapsed)
            start = current.find("**/", start + 1)
    return tuple(sorted(variants))


def compare_numbers(actual: float, expected: float, condition: str) -> bool:
    if condition == ">":
        return actual > expected
    if condition == ">=":
        return actual >= expected
    if condition == "<":
        return actual < expected
    if condition == "<=":
        return actual <= expected
    if condition == "==":
        return actual == expected
    if condition == "!=":
        return actual != expected
    raise ConfigurationError(f"Unknown condition: {condition}")


def compare_values(actual: Any, expected: Any, operator: str) -> bool:
    """Compare with loose equality, numeric ordering, `includes` and `matches`."""
    if operator == "==":
        return loose_equals(actual, expected)
    if operator == "!=":
        return not loose_equals(actual, expected)
    if operator in {">", "<", ">=", "<="}:
        return compare_numbers(to_number(actual), to_number(expected), operator)
    if operator == "includes":
        if isinstance(actual, str) and isinstance(expected, str):
            return expected in actual
        if isinstance(actual, (list, tuple)):
            return expected in actual
        return False
    if operator == "matches":
        if isinstance(actual, str) and isinstance(expected, str):
            return compile_pattern(expected).search(actual) is not None
        return False
    raise ConfigurationError(f"Unknown operator: {operator}")


def to_number(value: Any) -> float:
    """Numeric conversion with JavaScript `Number()` semantics."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        if stripped in _INFINITIES:
            return _INFINITIES[stripped]
        lowered = stripped.lower()
        # float() also takes "1_000", "inf" and "nan"; Number() does not.
        if "_" in stripped or "inf" in lowered or "nan" in lowered:
            return math.nan
        radix = _RADIX_PREFIXES.get(lowered[:2])
        if radix is not None:
            digits = stripped[2:]
            if not digits or not digits.isalnum():
                return math.nan
            try:
                return float(int(digits, radix))
            except ValueError:
                return math.nan
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    return math.nan


def loose_equals(left: Any, right: Any) -> bool:
    """Equality where numbers and numeric strings compare by value."""
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if _is_scalar(left) and _is_scalar(right):
        return to_number(left) == to_number(right)
    return left == right


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def extract_text(item: Any) -> str:
    """Text a pattern applies to: the item itself, or its content, text or path."""
    if isinstance(item, str):
        return item
    for name in ("content", "text", "path"):
        value = get_field(item, name)
        if value is not None:
            return str(value)
    return str(item)


def describe_item(item: Any, *, line_count: bool = False) -> str:
    """Short noun for an item, used in failure messages."""
    if isinstance(item, str):
        return "text"
    has_path = get_field(item, "path") is not None
    if get_field(item, "content") is not None and has_path:
        return "file" if line_count else "file content"
    if line_count:
        if has_path:
            return "file path"
        if get_field(item, "text") is not None:
            return "text content"
        return "item"
    if get_field(item, "line_number") is not None:
        return "line"
    if get_field(item, "type"):
        return "AST node"
    if has_path:
        return "file path"
    return "item"
