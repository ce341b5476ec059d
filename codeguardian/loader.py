"""Rule-file discovery, loading and merging."""

from __future__ import annotations

import glob
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from codeguardian.errors import ConfigurationError
from codeguardian.rules.patterns import match_glob

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS: tuple[str, ...] = (
    "**/*.codeguardian.yaml",
    "**/*.codeguardian.yml",
    "**/*.cg.yaml",
    "**/*.cg.yml",
    ".codeguardian.yaml",
    ".codeguardian.yml",
    ".cg.yaml",
    ".cg.yml",
    ".codeguardian/*.yaml",
    ".codeguardian/*.yml",
)
IGNORED_DIRECTORIES = frozenset({"node_modules", "dist", ".git"})
IGNORE_MARKER = ".cg-ignore"
MERGED_RULE_ID = "merged-configuration"


@dataclass(frozen=True, slots=True)
class LoadedConfiguration:
    """A parsed rule document and the file it came from."""

    path: Path
    content: dict[str, Any]

    @property
    def rule_id(self) -> str | None:
        value = self.content.get("id")
        return str(value) if value is not None else None

    @property
    def description(self) -> str | None:
        value = self.content.get("description")
        return str(value) if value is not None else None


def discover_rule_files(
    base_path: Path,
    pattern: str | None = None,
    exclude: Sequence[str] = (),
) -> list[Path]:
    """Find rule files under `base_path`, sorted and without duplicates.

    `pattern` may name one file or be a glob; without it the default rule
    file names are searched.
    """
    base = base_path.resolve()
    if pattern:
        candidate = Path(pattern)
        if not candidate.is_absolute():
            candidate = base / pattern
        if candidate.is_file():
            return [candidate.resolve()]
        patterns: Iterable[str] = (pattern,)
    else:
        patterns = DEFAULT_PATTERNS

    skip_dirs = _ignored_by_marker(base)
    found: set[Path] = set()
    for item in patterns:
        for match in glob.glob(item, root_dir=base, recursive=True):
            path = (base / match).resolve()
            if not path.is_file():
                continue
            relative = display_path(path, base)
            if _is_excluded(relative, skip_dirs, exclude):
                logger.debug("skipping rule file %s", relative)
                continue
            found.add(path)
    return sorted(found)


def load_configurations(
    base_path: Path,
    pattern: str | None = None,
    exclude: Sequence[str] = (),
) -> list[LoadedConfiguration]:
    """Discover and parse rule files; raise when none exist or one is invalid."""
    paths = discover_rule_files(base_path, pattern, exclude)
    if not paths:
        if pattern:
            raise ConfigurationError(f"No configuration files found matching pattern: {pattern}")
        raise ConfigurationError(
            "No configuration files found. Looked for: " + ", ".join(DEFAULT_PATTERNS)
        )
    return [load_configuration_file(path) for path in paths]


def load_configuration_file(path: Path) -> LoadedConfiguration:
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to load configuration from {path}: {exc}") from exc
    if not isinstance(content, dict):
        raise ConfigurationError(f"Failed to load configuration from {path}: expected a mapping")
    return LoadedConfiguration(path=path, content=content)


def merge_configurations(configurations: Sequence[LoadedConfiguration]) -> dict[str, Any]:
    """Combine several rule documents into one `all_of` document."""
    if not configurations:
        raise ConfigurationError("No configurations to merge")
    if len(configurations) == 1:
        return configurations[0].content
    return {
        "id": MERGED_RULE_ID,
        "description": f"Merged configuration from {len(configurations)} files",
        "type": "all_of",
        "rules": [_as_rule_node(item.content) for item in configurations],
    }


def _as_rule_node(document: dict[str, Any]) -> dict[str, Any]:
    if isinstance(document.get("rule"), dict):
        node = dict(document["rule"])
        if document.get("id") is not None:
            node["id"] = document["id"]
        return node
    return dict(document)


def _ignored_by_marker(base: Path) -> list[str]:
    skip: list[str] = []
    for marker in glob.glob(f"**/{IGNORE_MARKER}", root_dir=base, recursive=True):
        parent = Path(marker).parent.as_posix()
        if _has_ignored_part(parent):
            continue
        skip.append("" if parent == "." else parent)
    return skip


def _is_excluded(relative: str, skip_dirs: list[str], exclude: Sequence[str]) -> bool:
    if _has_ignored_part(relative):
        return True
    for directory in skip_dirs:
        if not directory or relative.startswith(f"{directory}/"):
            return True
    return any(match_glob(relative, item) for item in exclude)


def _has_ignored_part(relative: str) -> bool:
    return any(part in IGNORED_DIRECTORIES for part in relative.split("/"))


def display_path(path: Path, base_path: Path | None) -> str:
    """Path relative to `base_path` when inside it, else as given."""
    if base_path is not None:
        try:
            return path.resolve().relative_to(base_path.resolve()).as_posix()
        except ValueError:
            pass
    return path.as_posix()
