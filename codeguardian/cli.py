"""CLI entrypoint for codeguardian."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, cast

import typer

from codeguardian import __version__
from codeguardian.config import FORMATS, load_app_config
from codeguardian.context import RunFlags
from codeguardian.errors import CodeGuardianError
from codeguardian.git import GitRepository, default_branch, resolve_repository_path
from codeguardian.loader import display_path, load_configurations
from codeguardian.models import MODES, Mode
from codeguardian.output import render_config_files, render_human, render_json
from codeguardian.rules import create_rule_factory
from codeguardian.runner import run_validation

logger = logging.getLogger(__name__)

HOOK_EXIT_CODE = 2

app = typer.Typer(
    name="codeguardian",
    no_args_is_help=True,
    help="Validate code changes against declarative YAML rules.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("check")
def check_command(
    config: Annotated[
        str | None,
        typer.Option("--config", "-c", help="Rule file path or glob (default: auto-discover)."),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-e", help="Glob of rule files to skip (repeatable)."),
    ] = None,
    repo: Annotated[
        Path | None,
        typer.Option("--repo", "-r", help="Repository path (disables auto-discovery)."),
    ] = None,
    directory: Annotated[
        Path | None,
        typer.Option("-C", help="Run as if started in this directory."),
    ] = None,
    base: Annotated[
        str | None,
        typer.Option("--base", "-b", help="Base branch/commit.", show_default="main"),
    ] = None,
    head: Annotated[
        str | None,
        typer.Option("--head", help="Head branch/commit.", show_default="HEAD"),
    ] = None,
    format: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Output format: console|json.", show_default="console"),
    ] = None,
    mode: Annotated[
        str | None,
        typer.Option("--mode", "-m", help="What to check: diff|all|staged.", show_default="diff"),
    ] = None,
    skip_missing_ast_grep: Annotated[
        bool,
        typer.Option(
            "--skip-missing-ast-grep",
            help="Warn and skip AST rules when the ast-grep CLI is not installed.",
        ),
    ] = False,
    agent_hook: Annotated[
        bool,
        typer.Option(
            "--agent-hook",
            help="Coding-agent hook mode: silent on success, exit code 2 on violations.",
        ),
    ] = False,
    settings: Annotated[
        Path | None,
        typer.Option("--settings", help="Path to settings TOML file."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Validate changes against the discovered rule files."""
    _configure_logging(verbose)
    try:
        repo_path = resolve_repository_path(repo, cwd=directory)
        app_config = load_app_config(repo_path, settings)
        output_format = _resolve_choice(format, app_config.format, FORMATS, "--format")
        run_mode = _resolve_choice(mode, app_config.mode, set(MODES), "--mode")

        configurations = load_configurations(
            repo_path,
            pattern=config or app_config.config,
            exclude=[*app_config.exclude, *(exclude or [])],
        )
        repository = GitRepository(repo_path)
        base_branch = base or default_branch(repo_path, app_config.base or "main")
        diff = repository.get_diff(base_branch, head or app_config.head)
        logger.debug("checking %d file(s) against %s", len(diff.files), base_branch)
        report = run_validation(
            configurations,
            repository=repository,
            diff=diff,
            mode=cast(Mode, run_mode),
            flags=RunFlags(
                skip_missing_ast_grep=skip_missing_ast_grep or app_config.skip_missing_ast_grep,
                working_directory=repo_path,
            ),
            base_path=repo_path,
        )
    except CodeGuardianError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if output_format == "json":
        typer.echo(render_json(report))
    elif not agent_hook or not report.passed:
        to_stderr = agent_hook
        typer.echo(render_config_files(report.config_files), err=to_stderr)
        typer.echo(render_human(report, rootdir=str(repo_path)), err=to_stderr)

    if not report.passed:
        raise typer.Exit(code=HOOK_EXIT_CODE if agent_hook else 1)


@app.command("rules")
def rules_command(
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """List available rule types."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    types = create_rule_factory().types()
    if output_format == "json":
        typer.echo(json.dumps({"rule_types": types}, sort_keys=True))
        return
    lines = ["Available rule types:"]
    lines.extend(f"- {name}" for name in types)
    typer.echo("\n".join(lines))


@app.command("config-validate")
def config_validate_command(
    config: Annotated[
        str | None,
        typer.Option("--config", "-c", help="Rule file path or glob (default: auto-discover)."),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-e", help="Glob of rule files to skip (repeatable)."),
    ] = None,
    repo: Annotated[Path | None, typer.Option("--repo", "-r", help="Repository path.")] = None,
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Load and build every rule file without evaluating it."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    repo_path = resolve_repository_path(repo)
    factory = create_rule_factory()
    entries: list[dict[str, object]] = []
    try:
        app_config = load_app_config(repo_path)
        configurations = load_configurations(
            repo_path,
            pattern=config or app_config.config,
            exclude=[*app_config.exclude, *(exclude or [])],
        )
        for configuration in configurations:
            rule = factory.load_from_mapping(configuration.content)
            entries.append(
                {
                    "config_file": display_path(configuration.path, repo_path),
                    "rule_id": configuration.rule_id or rule.id,
                    "rules": rule.count_rules(),
                }
            )
    except CodeGuardianError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if output_format == "json":
        typer.echo(json.dumps({"ok": True, "files": entries}, sort_keys=True))
        return
    lines = [f"Configuration is valid ({len(entries)} file(s)):"]
    lines.extend(f"- {item['config_file']}: {item['rule_id']} ({item['rules']} rules)" for item in entries)
    typer.echo("\n".join(lines))


def main() -> None:
    """Console script entrypoint."""
    app()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_choice(value: str | None, default: str, allowed: set[str], param_hint: str) -> str:
    resolved = (value or default).lower()
    if resolved not in allowed:
        choices = ", ".join(sorted(allowed))
        raise typer.BadParameter(f"must be one of: {choices}", param_hint=param_hint)
    return resolved

