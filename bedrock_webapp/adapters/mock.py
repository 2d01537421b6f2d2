"""
Mock command runner — test double for every tool adapter.

Stands in for CommandRunner so composer, wp-cli, sed and mysql calls
can be asserted on without touching external tools. Succeeds by
default; failures and side effects are keyed on an argv token.
"""

from __future__ import annotations

from typing import Callable

from bedrock_webapp.core.models.command import CommandResult


class MockCommandRunner:
    """Records argv lists and returns configured results."""

    def __init__(self, default_output: str = ""):
        self._default_output = default_output
        self._failures: dict[str, CommandResult] = {}
        self._side_effects: dict[str, Callable[[list[str], str | None], None]] = {}
        self._call_log: list[tuple[list[str], str | None]] = []

    @property
    def call_log(self) -> list[tuple[list[str], str | None]]:
        """All (argv, cwd) pairs this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def set_failure(
        self,
        token: str,
        stderr: str = "Mock failure",
        stdout: str = "",
        return_code: int = 1,
    ) -> None:
        """Fail any command whose argv contains ``token``."""
        self._failures[token] = CommandResult.failure(
            stderr, stdout=stdout, return_code=return_code
        )

    def set_side_effect(
        self,
        token: str,
        effect: Callable[[list[str], str | None], None],
    ) -> None:
        """Run ``effect(argv, cwd)`` for any command containing ``token``."""
        self._side_effects[token] = effect

    def calls_matching(self, token: str) -> list[list[str]]:
        """argv lists that contain ``token``."""
        return [argv for argv, _ in self._call_log if token in argv]

    def run(
        self,
        argv: list[str],
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        argv = list(argv)
        self._call_log.append((argv, cwd))

        for token, effect in self._side_effects.items():
            if token in argv:
                effect(argv, cwd)

        for token, failure in self._failures.items():
            if token in argv:
                return failure.model_copy(update={"command": argv})

        return CommandResult.ok_result(
            self._default_output,
            command=argv,
            return_code=0,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log, failures and side effects."""
        self._call_log.clear()
        self._failures.clear()
        self._side_effects.clear()
