"""
Composer adapter — dependency-package manager bindings.
"""

from __future__ import annotations

from bedrock_webapp.adapters.base import ToolAdapter
from bedrock_webapp.adapters.shell.command import CommandTemplate
from bedrock_webapp.core.models.command import CommandResult

CREATE_PROJECT = CommandTemplate(
    "create-project",
    "--prefer-dist",
    "--no-interaction",
    "{package}",
    "{target}",
    "{version}",
    optional={"version"},
)


class ComposerAdapter(ToolAdapter):
    """Run composer subcommands."""

    @property
    def name(self) -> str:
        return "composer"

    def create_project(
        self,
        package: str,
        target: str,
        version: str = "",
        cwd: str | None = None,
    ) -> CommandResult:
        """Create a new project from ``package`` into ``target``.

        An empty ``version`` lets composer pick the latest stable release.
        """
        return self.run(
            CREATE_PROJECT,
            {"package": package, "target": target, "version": version},
            cwd=cwd,
        )
