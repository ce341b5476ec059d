"""Structural code search through the ast-grep CLI."""

from __future__ import annotations

import json
import logging
from typing import Any

from codeguardian.context import EvaluationContext
from codeguardian.errors import ConfigurationError, ExternalToolError
from codeguardian.models import ASTNode, Position, get_field
from codeguardian.process import run_process
from codeguardian.rules.base import SelectorRule

logger = logging.getLogger(__name__)

AST_GREP_LANGUAGES: dict[str, str] = {
    "typescript": "ts",
    "javascript": "js",
    "tsx": "tsx",
    "html": "html",
    "css": "css",
    "python": "py",
}

AVAILABILITY_CACHE_KEY = "ast_grep_available"
INSTALL_HINT = "https://ast-grep.github.io"


class SelectASTNodesRule(SelectorRule):
    """Matches an ast-grep pattern against the current item's text."""

    def __init__(self, rule_id: str, *, query: str, language: str) -> None:
        super().__init__(rule_id)
        if language not in AST_GREP_LANGUAGES:
            raise ConfigurationError(f"Unsupported language: {language}")
        self._query = query
        self._language = language

    def select(self, context: EvaluationContext) -> list[ASTNode]:
        content = context.current_item
        if not isinstance(content, str):
            content = get_field(content, "content")
        if not content or not isinstance(content, str):
            return []

        if not context.cache.get(AVAILABILITY_CACHE_KEY, ast_grep_available):
            if context.flags.skip_missing_ast_grep:
                logger.warning(
                    "ast-grep CLI is not installed; skipping AST-based rule checks (see %s)",
                    INSTALL_HINT,
                )
                return []
            raise ExternalToolError(
                f"ast-grep CLI is not installed. Install it from {INSTALL_HINT} "
                "or run with --skip-missing-ast-grep to skip AST-based rules."
            )

        result = run_process(
            [
                "ast-grep",
                "run",
                "--pattern",
                self._query,
                "--lang",
                AST_GREP_LANGUAGES[self._language],
                "--json=compact",
                "--stdin",
            ],
            input_text=content,
        )
        stdout = result.stdout.strip()
        if not stdout:
            if result.returncode != 0 and result.stderr.strip():
                raise ExternalToolError(f"ast-grep error: {result.stderr.strip()}")
            return []
        try:
            matches = json.loads(stdout)
        except json.JSONDecodeError:
            logger.debug("ast-grep produced non-JSON output for %s", self.id)
            return []
        return [_to_node(match) for match in matches]


def ast_grep_available() -> bool:
    try:
        return run_process(["ast-grep", "--version"]).returncode == 0
    except OSError:
        return False


def _to_node(match: dict[str, Any]) -> ASTNode:
    span = match.get("range")
    if not span:
        return ASTNode(type="match", text=match.get("text", ""))
    # ast-grep lines are 0-based.
    return ASTNode(
        type="match",
        text=match.get("text", ""),
        range=(span["byteOffset"]["start"], span["byteOffset"]["end"]),
        start=Position(line=span["start"]["line"] + 1, column=span["start"]["column"]),
        end=Position(line=span["end"]["line"] + 1, column=span["end"]["column"]),
    )
