"""Error taxonomy shared by the engine, adapters and CLI."""

from __future__ import annotations


class CodeGuardianError(Exception):
    """Base class for codeguardian errors."""


class ConfigurationError(CodeGuardianError, ValueError):
    """Raised when rule or run configuration is broken."""


class ContentUnavailableError(CodeGuardianError, OSError):
    """Raised when file content cannot be read."""


class ExternalToolError(CodeGuardianError, RuntimeError):
    """Raised when an external tool is missing or fails."""


class GitError(ExternalToolError):
    """Raised when git command execution fails."""


class RuleContractError(CodeGuardianError, TypeError):
    """Raised when a rule is used in a way its kind does not allow."""


FATAL_ERRORS: tuple[type[Exception], ...] = (
    ConfigurationError,
    ExternalToolError,
    RuleContractError,
)
