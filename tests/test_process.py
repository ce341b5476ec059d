"""Tests for bounded external process execution."""

from __future__ import annotations

import pytest

from codeguardian import process
from codeguardian.errors import ExternalToolError
from codeguardian.process import run_process


def test_run_process_returns_nonzero_exit_without_raising() -> None:
    result = run_process("printf out; printf err 1>&2; exit 4", shell=True)

    assert (result.returncode, result.stdout, result.stderr) == (4, "out", "err")


def test_run_process_feeds_stdin() -> None:
    assert run_process(["cat"], input_text="piped\n").stdout == "piped\n"


def test_run_process_replaces_undecodable_bytes() -> None:
    result = run_process("printf 'caf\\351'", shell=True)

    assert result.stdout == "caf\ufffd"


def test_run_process_fails_closed_on_oversized_output(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(process, "MAX_OUTPUT_BYTES", 4)

    with pytest.raises(ExternalToolError, match="stdout of printf 12345 exceeded 4 bytes"):
        run_process("printf 12345", shell=True)


def test_run_process_limit_applies_to_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(process, "MAX_OUTPUT_BYTES", 4)

    with pytest.raises(ExternalToolError, match="stderr"):
        run_process("printf 12345 1>&2", shell=True)
    assert run_process("printf 1234", shell=True).stdout == "1234"
