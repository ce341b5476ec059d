"""Bounded external process execution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from subprocess import run

from codeguardian.errors import ExternalToolError

logger = logging.getLogger(__name__)

MAX_OUTPUT_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str


def run_process(
    args: list[str] | str,
    *,
    input_text: str | None = None,
    cwd: Path | None = None,
    shell: bool = False,
) -> ProcessResult:
    """Run a command to completion and capture its output.

    A non-zero exit status is returned, not raised. Output larger than
    ``MAX_OUTPUT_BYTES`` on either stream raises `ExternalToolError`.
    """
    logger.debug("running %s", args)
    completed = run(
        args,
        input=input_text.encode("utf-8") if input_text is not None else None,
        cwd=cwd,
        shell=shell,
        capture_output=True,
        check=False,
    )
    for name, data in (("stdout", completed.stdout), ("stderr", completed.stderr)):
        if len(data) > MAX_OUTPUT_BYTES:
            raise ExternalToolError(
                f"{name} of {_describe(args)} exceeded {MAX_OUTPUT_BYTES} bytes"
            )
    return ProcessResult(
        returncode=completed.returncode,
        stdout=completed.stdout.decode("utf-8", errors="replace"),
        stderr=completed.stderr.decode("utf-8", errors="replace"),
    )


def _describe(args: list[str] | str) -> str:
    return args if isinstance(args, str) else " ".join(args)
