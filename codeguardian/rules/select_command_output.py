"""Run a shell command and select its captured output."""

from __future__ import annotations

from codeguardian.context import EvaluationContext
from codeguardian.models import CommandOutput
from codeguardian.process import run_process
from codeguardian.rules.base import SelectorRule


class SelectCommandOutputRule(SelectorRule):
    """Emits exactly one `CommandOutput`; a failing command is data, not an error."""

    def __init__(self, rule_id: str, *, command: str) -> None:
        super().__init__(rule_id)
        self._command = command

    def select(self, context: EvaluationContext) -> list[CommandOutput]:
        result = run_process(self._command, shell=True, cwd=context.flags.working_directory)
        return [
            CommandOutput(
                command=self._command,
                exit_code=result.returncode,
                stdout=result.stdout.strip(),
                stderr=result.stderr.strip(),
            )
        ]
