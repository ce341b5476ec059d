"""Output rendering."""

from __future__ import annotations

import json
import platform
from datetime import UTC, datetime
from typing import Any

import click

from codeguardian import __version__
from codeguardian.models import Violation
from codeguardian.runner import RuleFileResult, ValidationReport

WIDTH = 80


def render_human(report: ValidationReport, *, rootdir: str) -> str:
    """Render a pytest-style colorized report."""
    summary = report.summary
    lines: list[str] = [
        click.style("=" * WIDTH, fg="cyan"),
        click.style("validation session starts", fg="cyan", bold=True),
        f"platform {platform.system().lower()} -- Python {platform.python_version()}, "
        f"codeguardian-{__version__}",
        f"rootdir: {rootdir}",
        f"collected {_plural(summary.total_files, 'file')}, "
        f"{_plural(summary.total_individual_rules, 'rule')} "
        f"({_plural(len(report.results), 'config file')})",
        "",
    ]

    failed = [result for result in report.results if not result.passed]
    if failed:
        lines.append(click.style("FAILURES", fg="red", bold=True))
        lines.append(click.style("=" * WIDTH, fg="red"))
        for index, result in enumerate(failed):
            if index:
                lines.append("")
            lines.extend(_render_failure(result))

    lines.append("")
    lines.append(click.style("=" * WIDTH, fg="green" if report.passed else "red"))
    lines.append(_summary_line(report))
    lines.append("")

    counts = f"Validated {_plural(summary.total_files, 'file')}"
    if summary.violations:
        counts += f", found {_plural(summary.violations, 'violation')}"
    lines.append(click.style(counts, dim=True))
    if not report.passed:
        lines.append("")
        lines.append(
            click.style("Hint: ", fg="yellow") + "use --format=json for machine-readable output"
        )
    return "\n".join(lines)


def render_config_files(config_files: list[str]) -> str:
    lines = [f"Found {len(config_files)} configuration file(s):"]
    lines.extend(f"  - {path}" for path in sorted(config_files))
    return "\n".join(lines) + "\n"


def render_json(report: ValidationReport) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(report), sort_keys=True)


def build_json_payload(report: ValidationReport) -> dict[str, Any]:
    payload = report.to_dict()
    payload["meta"] = {
        "generated_at": datetime.now(tz=UTC)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        "version": __version__,
    }
    return payload


def _render_failure(result: RuleFileResult) -> list[str]:
    lines = [click.style(result.rule_id, fg="red", bold=True)]
    if result.config_file:
        lines.append(click.style(f"From: {result.config_file}", fg="cyan"))
    if result.description:
        lines.append(click.style(result.description, dim=True))
    lines.append("")
    for violation in result.violations:
        lines.extend(_render_violation(violation))
    return lines


def _render_violation(violation: Violation) -> list[str]:
    lines = [
        click.style(f"> {_location(violation)}", bold=True),
        click.style(f"[CHECK FAIL] {violation.message}", fg="red", bold=True),
    ]
    context = violation.context
    if context is not None:
        if context.code:
            lines.append("")
            for code_line in context.code.split("\n")[:3]:
                lines.append(click.style(f"  {code_line}", dim=True))
        if context.suggestion:
            lines.append("")
            lines.append(click.style("  Suggestion: ", fg="yellow") + context.suggestion)
        if context.documentation:
            lines.append(click.style("  See: ", fg="cyan") + context.documentation)
    lines.append("")
    return lines


def _location(violation: Violation) -> str:
    if not violation.file:
        return "General"
    location = violation.file
    if violation.line is not None:
        location += f":{violation.line}"
        if violation.column is not None:
            location += f":{violation.column}"
    return location


def _summary_line(report: ValidationReport) -> str:
    summary = report.summary
    duration = f"in {report.duration_seconds:.2f}s"
    if report.passed:
        text = f"{_plural(summary.passed_rules, 'rule')} passed {duration}"
        return click.style(f"==== {text} {'=' * max(0, WIDTH - len(text) - 6)}", fg="green", bold=True)

    parts: list[str] = []
    plain: list[str] = []
    if summary.failed_rules:
        text = f"{_plural(summary.failed_rules, 'rule')} failed"
        parts.append(click.style(text, fg="red", bold=True))
        plain.append(text)
    if summary.passed_rules:
        text = f"{_plural(summary.passed_rules, 'rule')} passed"
        parts.append(click.style(text, fg="green"))
        plain.append(text)
    padding = max(0, WIDTH - len(", ".join(plain)) - len(duration) - 7)
    return f"==== {', '.join(parts)} {duration} {'=' * padding}"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"
