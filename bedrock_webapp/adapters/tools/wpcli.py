"""
WP-CLI adapter — CMS command-line tool bindings.

Commands run with the Bedrock app root as working directory so the
project's own ``wp-cli.yml`` (``path: web/wp``) is honored.
"""

from __future__ import annotations

import logging
from typing import Any

import yaml

from bedrock_webapp.adapters.base import ToolAdapter
from bedrock_webapp.adapters.shell.command import CommandTemplate
from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem
from bedrock_webapp.core.models.command import CommandResult

logger = logging.getLogger(__name__)

WP_CLI_CONFIG = "wp-cli.yml"

# mysqli 8.1+ throws on warnings; silence the driver before bootstrap
MYSQLI_REPORT_SHIM = 'function_exists("mysqli_report") && mysqli_report(0);'

CORE_INSTALL = CommandTemplate(
    "core",
    "{mode}",
    "--admin_email={email}",
    "--skip-email",
    "--url={proto}{url}",
    "--title={title}",
    "--admin_user={user}",
    "--exec={mysqli81}",
    "--admin_password={password}",
)

REWRITE_STRUCTURE = CommandTemplate("rewrite", "structure", "--hard", "{structure}")


class WpCliAdapter(ToolAdapter):
    """Run wp-cli commands against an app root."""

    @property
    def name(self) -> str:
        return "wp"

    def core_install(
        self,
        app_root: str,
        *,
        email: str,
        url: str,
        proto: str,
        title: str,
        user: str,
        password: str,
    ) -> CommandResult:
        return self.run(
            CORE_INSTALL,
            {
                "mode": "install",
                "email": email,
                "proto": proto,
                "url": url,
                "title": title,
                "user": user,
                "mysqli81": MYSQLI_REPORT_SHIM,
                "password": password,
            },
            cwd=app_root,
        )

    def rewrite_structure(self, app_root: str, structure: str) -> CommandResult:
        """Set the permalink structure and flush rewrite rules (``--hard``)."""
        return self.run(REWRITE_STRUCTURE, {"structure": structure}, cwd=app_root)


def merge_configuration(
    fs: AccountFilesystem,
    app_root: str,
    settings: dict[str, Any],
) -> dict[str, Any]:
    """Merge ``settings`` into ``<app_root>/wp-cli.yml``.

    Existing keys are preserved unless overridden. A corrupt file is
    replaced rather than blocking the install.

    Returns:
        The configuration as written.
    """
    path = f"{app_root.rstrip('/')}/{WP_CLI_CONFIG}"
    current: dict[str, Any] = {}
    if fs.is_file(path):
        try:
            loaded = yaml.safe_load(fs.read_text(path))
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Replacing unreadable %s: %s", path, e)
            loaded = None
        if isinstance(loaded, dict):
            current = loaded

    current.update(settings)
    fs.write_text(path, yaml.safe_dump(current, default_flow_style=False, sort_keys=False))
    logger.debug("wp-cli configuration written to %s", path)
    return current
