"""Adapters — tool bindings for external integrations.

Public re-exports for convenient access.
"""

from bedrock_webapp.adapters.base import ToolAdapter
from bedrock_webapp.adapters.database.mysql import (
    CredentialHandle,
    MysqlCredential,
    MysqlCredentialFactory,
)
from bedrock_webapp.adapters.http import RegistryFetcher
from bedrock_webapp.adapters.mock import MockCommandRunner
from bedrock_webapp.adapters.shell.command import CommandRunner, CommandTemplate
from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem, DirEntry
from bedrock_webapp.adapters.shell.privileged import PrivilegedShell
from bedrock_webapp.adapters.tools.composer import ComposerAdapter
from bedrock_webapp.adapters.tools.wpcli import WpCliAdapter

__all__ = [
    "AccountFilesystem",
    "CommandRunner",
    "CommandTemplate",
    "ComposerAdapter",
    "CredentialHandle",
    "DirEntry",
    "MockCommandRunner",
    "MysqlCredential",
    "MysqlCredentialFactory",
    "PrivilegedShell",
    "RegistryFetcher",
    "ToolAdapter",
    "WpCliAdapter",
]
