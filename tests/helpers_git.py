"""Helpers for tests that run against a throwaway git repository."""

from __future__ import annotations

import subprocess
from pathlib import Path


def init_repo(tmp_path: Path) -> Path:
    """Create an empty repository whose first branch is ``main``."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "config", "commit.gpgsign", "false")
    return repo


def git(repo: Path, *args: str) -> str:
    completed = subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout


def write_file(repo: Path, rel_path: str, content: str) -> None:
    target = repo / rel_path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")


def commit_all(repo: Path, message: str) -> None:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)


def numbered_lines(prefix: str, count: int) -> str:
    return "\n".join(f"{prefix}-{idx}" for idx in range(1, count + 1)) + "\n"


def repo_on_feature_branch(tmp_path: Path) -> Path:
    """Repository with a ``main`` commit and a checked-out ``feature`` branch."""
    repo = init_repo(tmp_path)
    write_file(repo, "src/keep.ts", "export const keep = 1;\n")
    write_file(repo, "src/old.ts", "export const old = 1;\n")
    write_file(repo, "docs/guide.md", numbered_lines("guide", 20))
    commit_all(repo, "initial")
    git(repo, "checkout", "-q", "-b", "feature")
    return repo
