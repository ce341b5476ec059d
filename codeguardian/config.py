"""Run settings loaded from project TOML files."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from codeguardian.errors import ConfigurationError
from codeguardian.models import MODES

CONFIG_FILENAMES = (".codeguardian.toml", "codeguardian.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("codeguardian", "code-guardian")
FORMATS = {"console", "json"}


@dataclass(slots=True)
class AppConfig:
    """Run settings resolved from project files; CLI options override them."""

    base: str | None = None
    head: str = "HEAD"
    mode: str = "diff"
    format: str = "console"
    config: str | None = None
    exclude: list[str] = field(default_factory=list)
    skip_missing_ast_grep: bool = False
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "base": self.base,
            "head": self.head,
            "mode": self.mode,
            "format": self.format,
            "config": self.config,
            "exclude": list(self.exclude),
            "skip_missing_ast_grep": self.skip_missing_ast_grep,
            "source": self.source,
        }


def load_app_config(repo: Path, settings_path: Path | None = None) -> AppConfig:
    """Load settings from an explicit file or repository-local files with precedence."""
    repo = repo.resolve()
    if settings_path is not None:
        resolved = settings_path if settings_path.is_absolute() else (repo / settings_path)
        if not resolved.exists():
            raise ConfigurationError(f"Settings file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            return tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    section = _find_pyproject_tool_section(loaded)
    if source_path.name == PYPROJECT_FILENAME:
        return section if section is not None else {}
    return section if section is not None else loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    base = mapping.get("base")
    config = mapping.get("config")
    return AppConfig(
        base=_as_str(base, "base") if base is not None else None,
        head=_as_str(mapping.get("head", "HEAD"), "head"),
        mode=_as_choice(mapping.get("mode", "diff"), set(MODES), "mode"),
        format=_as_choice(mapping.get("format", "console"), FORMATS, "format"),
        config=_as_str(config, "config") if config is not None else None,
        exclude=_as_str_list(mapping.get("exclude"), "exclude"),
        skip_missing_ast_grep=_as_bool(
            mapping.get("skip_missing_ast_grep", False), "skip_missing_ast_grep"
        ),
        source=source,
    )


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"{field_name} must be a list of strings")
    return list(value)


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ConfigurationError(f"{field_name} must be one of: {choices}")
    return value


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ConfigurationError(f"{field_name} must be a boolean")
    return raw
