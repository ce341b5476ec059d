"""Unified diff parser producing per-file change records."""

from __future__ import annotations

from dataclasses import dataclass, field
from re import Match, compile

from codeguardian.models import FileInfo, FileStatus

HUNK_HEADER_RE = compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@(?P<section>.*)$"
)

DEV_NULL = "/dev/null"


@dataclass(slots=True)
class HunkHeader:
    """Parsed hunk header values."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str


@dataclass(slots=True)
class FileDiff:
    """A parsed file-level diff."""

    old_path: str | None
    new_path: str | None
    insertions: int = 0
    deletions: int = 0
    binary: bool = False
    new_file: bool = False
    deleted_file: bool = False
    renamed: bool = False
    hunks: list[HunkHeader] = field(default_factory=list)

    @property
    def path(self) -> str:
        """Best-effort canonical path for reporting."""
        if self.new_path and self.new_path != DEV_NULL:
            return self.new_path
        if self.old_path and self.old_path != DEV_NULL:
            return self.old_path
        return "<unknown>"

    @property
    def status(self) -> FileStatus:
        if self.new_file or self.old_path == DEV_NULL:
            return "added"
        if self.deleted_file or self.new_path == DEV_NULL:
            return "deleted"
        if self.renamed or (self.old_path and self.new_path and self.old_path != self.new_path):
            return "renamed"
        return "modified"

    def to_file_info(self) -> FileInfo:
        status = self.status
        return FileInfo(
            path=self.path,
            status=status,
            old_path=self.old_path if status == "renamed" else None,
            insertions=self.insertions,
            deletions=self.deletions,
        )


def parse_unified_diff(diff_text: str) -> list[FileDiff]:
    """Parse `git diff` output into one record per file.

    Hunk bodies are consumed using the line counts of their headers, so
    removed lines that themselves start with ``--`` are never mistaken for
    file headers.
    """
    files: list[FileDiff] = []
    current: FileDiff | None = None
    old_remaining = 0
    new_remaining = 0

    lines = diff_text.split("\n")
    if lines and not lines[-1]:
        lines.pop()

    for raw_line in lines:
        if current is not None and (old_remaining > 0 or new_remaining > 0):
            if raw_line.startswith("+"):
                current.insertions += 1
                new_remaining -= 1
            elif raw_line.startswith("-"):
                current.deletions += 1
                old_remaining -= 1
            elif raw_line.startswith("\\"):
                pass
            else:
                old_remaining -= 1
                new_remaining -= 1
            continue

        if raw_line.startswith("diff --git "):
            current = _start_file_from_diff_header(raw_line)
            files.append(current)
            continue
        if current is None:
            current = FileDiff(old_path=None, new_path=None)
            files.append(current)

        if raw_line.startswith("@@ "):
            header = parse_hunk_header(raw_line)
            current.hunks.append(header)
            old_remaining = header.old_count
            new_remaining = header.new_count
        elif raw_line.startswith("--- "):
            current.old_path = _parse_path(raw_line[4:])
        elif raw_line.startswith("+++ "):
            current.new_path = _parse_path(raw_line[4:])
        elif raw_line.startswith("new file mode"):
            current.new_file = True
        elif raw_line.startswith("deleted file mode"):
            current.deleted_file = True
        elif raw_line.startswith("rename from "):
            current.renamed = True
            current.old_path = raw_line[len("rename from ") :]
        elif raw_line.startswith("rename to "):
            current.renamed = True
            current.new_path = raw_line[len("rename to ") :]
        elif raw_line.startswith("Binary files ") or raw_line.startswith("GIT binary patch"):
            current.binary = True

    return files


def extract_file_infos(diff_text: str) -> list[FileInfo]:
    """Return a `FileInfo` (without content) for every file in a diff."""
    return [file_diff.to_file_info() for file_diff in parse_unified_diff(diff_text)]


def _start_file_from_diff_header(line: str) -> FileDiff:
    parts = line.split(maxsplit=3)
    old_path = _strip_ab_prefix(parts[2]) if len(parts) > 2 else None
    new_path = _strip_ab_prefix(parts[3]) if len(parts) > 3 else None
    return FileDiff(old_path=old_path, new_path=new_path)


def _parse_path(value: str) -> str:
    token = value.strip().split("\t", 1)[0]
    return _strip_ab_prefix(token)


def _strip_ab_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def parse_hunk_header(header: str) -> HunkHeader:
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        raise ValueError(f"Invalid hunk header: {header}")

    return HunkHeader(
        old_start=int(match.group("old_start")),
        old_count=int(match.group("old_count")) if match.group("old_count") else 1,
        new_start=int(match.group("new_start")),
        new_count=int(match.group("new_count")) if match.group("new_count") else 1,
        section=match.group("section").strip(),
    )
