"""
Adapter base — the contract between services and external tools.

Services only talk to composer, wp-cli, sed and friends through a
ToolAdapter. Each adapter renders a CommandTemplate into argv and hands
it to the CommandRunner, which is the single place a process is spawned.
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from typing import Any, Mapping

from bedrock_webapp.adapters.shell.command import CommandRunner, CommandTemplate
from bedrock_webapp.core.models.command import CommandResult

logger = logging.getLogger(__name__)


class ToolAdapter(ABC):
    """Abstract base class for tool adapters.

    Adapters perform external side effects and return CommandResults.
    They NEVER raise for a tool failure — failures are captured in the
    result. Malformed templates or parameters raise ValueError before
    anything runs.

    To create a new adapter:
        1. Subclass ToolAdapter
        2. Implement ``name``
        3. Add domain methods that call ``run`` with module-level templates
    """

    def __init__(self, runner: CommandRunner, binary: str):
        self._runner = runner
        self._binary = binary

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'composer', 'wp')."""

    @property
    def binary(self) -> str:
        return self._binary

    def is_available(self) -> bool:
        """Check if the underlying tool is on PATH. Fast, never raises."""
        return shutil.which(self._binary) is not None

    def run(
        self,
        template: CommandTemplate,
        params: Mapping[str, Any] | None = None,
        cwd: str | None = None,
    ) -> CommandResult:
        """Render ``template`` with ``params`` and execute it.

        Arguments that cannot be rendered come back as a failed result;
        nothing is executed.
        """
        try:
            argv = [self._binary, *template.render(params or {})]
        except ValueError as e:
            logger.error("%s: cannot render command: %s", self.name, e)
            return CommandResult.failure(str(e), command=[self._binary])
        result = self._runner.run(argv, cwd=cwd)
        if result.failed:
            logger.error(
                "%s exit=%s: %s", self.name, result.return_code, result.message[:500]
            )
        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} binary={self._binary!r}>"
