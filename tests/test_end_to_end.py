"""Rule documents evaluated through the runner against an in-memory repository."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from codeguardian.errors import ConfigurationError
from codeguardian.loader import LoadedConfiguration
from codeguardian.models import DiffSnapshot, FileInfo
from codeguardian.runner import run_validation
from tests.helpers_repo import FakeRepository

NO_CONSOLE = """
id: no-console-log
description: Disallow console.log in TypeScript
rule:
  type: for_each
  select:
    type: select_files
    path_pattern: "**/*.ts"
    status: [added, modified]
  assert:
    type: assert_match
    pattern: "console\\\\.log"
    should_match: false
    suggestion: Use the logger instead
"""

TODO_LINES = """
id: no-todo
type: for_each
select:
  type: select_files
  path_pattern: "*.txt"
assert:
  type: for_each
  select:
    type: select_lines
    pattern: TODO
  assert:
    type: assert_match
    pattern: "TODO\\\\(\\\\w+\\\\)"
"""

BOTH = """
id: both
type: all_of
rules:
  - type: for_each
    select:
      type: select_files
      path_pattern: "**/*.md"
    assert:
      type: assert_line_count
      max_lines: 100
  - type: for_each
    select:
      type: select_files
      path_pattern: "**/*.ts"
    assert:
      type: assert_property
      property_path: status
      expected_value: deleted
      operator: "!="
"""


def _configuration(name: str, text: str) -> LoadedConfiguration:
    return LoadedConfiguration(path=Path("/work") / name, content=yaml.safe_load(text))


def _repository() -> tuple[FakeRepository, DiffSnapshot]:
    files = [
        FileInfo("src/a.ts", "modified", insertions=1),
        FileInfo("src/b.ts", "added", insertions=2),
        FileInfo("README.md", "modified", insertions=1),
    ]
    repository = FakeRepository(
        files,
        contents={
            "src/a.ts": "const x = 1;\nconsole.log(x);\n",
            "src/b.ts": "export const y = 2;\n",
            "README.md": "# Title\n",
        },
    )
    return repository, repository.get_diff("main", "HEAD")


def test_console_log_is_reported_for_offending_file_only() -> None:
    repository, diff = _repository()

    report = run_validation(
        [_configuration("no-console.cg.yaml", NO_CONSOLE)],
        repository=repository,
        diff=diff,
        base_path=Path("/work"),
    )

    assert report.passed is False
    [result] = report.results
    assert result.rule_id == "no-console-log"
    assert result.config_file == "no-console.cg.yaml"
    assert result.description == "Disallow console.log in TypeScript"
    [violation] = result.violations
    assert violation.file == "src/a.ts"
    assert "NOT to match pattern" in violation.message
    assert violation.context is not None
    assert violation.context.suggestion == "Use the logger instead"
    assert sorted(repository.content_reads) == ["src/a.ts", "src/b.ts"]


def test_summary_counts_rule_files_and_violations() -> None:
    repository, diff = _repository()

    report = run_validation(
        [_configuration("no-console.cg.yaml", NO_CONSOLE), _configuration("both.cg.yaml", BOTH)],
        repository=repository,
        diff=diff,
    )

    summary = report.summary
    assert summary.total_files == 3
    assert summary.failed_rules == 1
    assert summary.passed_rules == 2
    assert summary.violations == 1
    assert summary.total_individual_rules == 3
    assert [item.passed for item in report.results] == [False, True]


def test_passing_run_has_no_violations() -> None:
    repository, diff = _repository()

    report = run_validation(
        [_configuration("both.cg.yaml", BOTH)], repository=repository, diff=diff
    )

    assert report.passed is True
    assert report.summary.violations == 0
    assert report.to_dict()["passed"] is True


def test_nested_line_selection_reports_file_and_line() -> None:
    repository = FakeRepository(
        [FileInfo("notes.txt", "modified", content="ok\nTODO fix\nTODO(ana) later\n")]
    )

    report = run_validation(
        [_configuration("todo.cg.yaml", TODO_LINES)],
        repository=repository,
        diff=repository.get_diff("main", "HEAD"),
    )

    assert report.passed is False
    [violation] = report.results[0].violations
    assert (violation.file, violation.line) == ("notes.txt", 2)
    assert violation.message.startswith("Expected line to match pattern")


def test_all_mode_counts_every_repository_file() -> None:
    repository = FakeRepository(
        [],
        all_files=[
            FileInfo("src/a.ts", "modified", content="console.log(1)\n"),
            FileInfo("src/c.ts", "modified", content="ok\n"),
        ],
    )
    diff = repository.get_diff("main", "HEAD")

    report = run_validation(
        [_configuration("no-console.cg.yaml", NO_CONSOLE)],
        repository=repository,
        diff=diff,
        mode="all",
    )

    assert report.summary.total_files == 2
    assert [v.file for v in report.results[0].violations] == ["src/a.ts"]


def test_broken_rule_document_aborts_the_run() -> None:
    repository, diff = _repository()

    with pytest.raises(ConfigurationError, match="Unknown rule type"):
        run_validation(
            [_configuration("bad.cg.yaml", "type: select_everything\n")],
            repository=repository,
            diff=diff,
        )
