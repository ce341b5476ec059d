"""Git-backed repository capability."""

from __future__ import annotations

import logging
from pathlib import Path
from subprocess import CalledProcessError, run

from codeguardian.diff_parser import parse_unified_diff
from codeguardian.errors import ContentUnavailableError, GitError
from codeguardian.models import DiffSnapshot, FileInfo, Mode

logger = logging.getLogger(__name__)

__all__ = [
    "GitError",
    "GitRepository",
    "default_branch",
    "find_git_root",
    "resolve_repository_path",
]


class GitRepository:
    """Reads changed files and their content from a git work tree."""

    def __init__(self, repo: Path) -> None:
        self.repo = Path(repo)

    def get_files(self, diff: DiffSnapshot, mode: Mode = "diff") -> list[FileInfo]:
        if mode == "all":
            return self.get_all_files()
        if mode == "staged":
            return self.get_staged_files()
        return list(diff.files)

    def get_all_files(self) -> list[FileInfo]:
        """Tracked files plus untracked files that are not ignored."""
        output = _run_git(
            self.repo, ["ls-files", "--cached", "--others", "--exclude-standard", "-z"]
        )
        paths = sorted({path for path in output.split("\0") if path})
        files: list[FileInfo] = []
        for path in paths:
            file_info = FileInfo(path=path, status="modified")
            try:
                file_info = file_info.with_content(self.get_file_content(path))
            except ContentUnavailableError as exc:
                logger.debug("no content for %s: %s", path, exc)
            files.append(file_info)
        return files

    def get_staged_files(self) -> list[FileInfo]:
        diff_text = _run_git(self.repo, ["diff", "--cached", "--no-color", "-M"])
        return [
            self._with_content(file_diff.to_file_info(), binary=file_diff.binary, staged=True)
            for file_diff in parse_unified_diff(diff_text)
        ]

    def get_file_content(self, path: str) -> str:
        full_path = self.repo / path
        try:
            return full_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ContentUnavailableError(f"Cannot read {path}: {exc}") from exc

    def get_diff(self, base_branch: str, head_branch: str) -> DiffSnapshot:
        """Files changed between two revisions.

        With ``head_branch == "HEAD"`` uncommitted changes against ``HEAD`` are
        merged over the committed range, and the working-tree record wins for a
        path present in both.
        """
        file_diffs = {
            file_diff.path: file_diff
            for file_diff in parse_unified_diff(
                _run_git(self.repo, ["diff", "--no-color", "-M", f"{base_branch}...{head_branch}"])
            )
        }
        if head_branch == "HEAD":
            working = parse_unified_diff(_run_git(self.repo, ["diff", "--no-color", "-M", "HEAD"]))
            for file_diff in working:
                file_diffs[file_diff.path] = file_diff

        files = tuple(
            self._with_content(file_diff.to_file_info(), binary=file_diff.binary)
            for file_diff in file_diffs.values()
        )
        return DiffSnapshot(base_branch=base_branch, head_branch=head_branch, files=files)

    def _with_content(self, file_info: FileInfo, *, binary: bool, staged: bool = False) -> FileInfo:
        if binary or file_info.status not in {"added", "modified"}:
            return file_info
        try:
            if staged:
                content = _run_git(self.repo, ["show", f":{file_info.path}"])
            else:
                content = self.get_file_content(file_info.path)
        except (GitError, ContentUnavailableError) as exc:
            logger.debug("no content for %s: %s", file_info.path, exc)
            return file_info
        return file_info.with_content(content)


def find_git_root(start: Path) -> Path | None:
    """Return the top-level directory of the work tree containing `start`."""
    try:
        return Path(_run_git(start, ["rev-parse", "--show-toplevel"]).strip())
    except GitError:
        return None


def resolve_repository_path(repo: Path | None, cwd: Path | None = None) -> Path:
    """Pick the repository to check: explicit path first, then the enclosing work tree."""
    if repo is not None:
        return repo.resolve()
    start = (cwd or Path.cwd()).resolve()
    return find_git_root(start) or start


def default_branch(repo: Path, preferred: str = "main") -> str:
    """Return `preferred` when it exists, else the remote default or ``master``."""
    if _revision_exists(repo, preferred):
        return preferred
    try:
        remote_head = _run_git(repo, ["symbolic-ref", "--quiet", "refs/remotes/origin/HEAD"]).strip()
    except GitError:
        remote_head = ""
    if remote_head:
        return remote_head.removeprefix("refs/remotes/")
    if _revision_exists(repo, "master"):
        return "master"
    return preferred


def _revision_exists(repo: Path, revision: str) -> bool:
    try:
        _run_git(repo, ["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"])
    except GitError:
        return False
    return True


def _run_git(repo: Path, args: list[str]) -> str:
    logger.debug("git %s", " ".join(args))
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc
    except FileNotFoundError as exc:
        raise GitError(f"git could not be started: {exc}") from exc

    return completed.stdout
