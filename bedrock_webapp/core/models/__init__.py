"""
Domain models — Pydantic types for the Bedrock plugin.

All models are re-exported here for convenient access:

    from bedrock_webapp.core.models import CommandResult, InstallTarget, PanelConfig
"""

from bedrock_webapp.core.models.command import CommandResult
from bedrock_webapp.core.models.panel import (
    AccountFeatures,
    AccountSettings,
    DatabaseSettings,
    PanelConfig,
    RegistrySettings,
    ToolSettings,
    WebSettings,
)
from bedrock_webapp.core.models.target import (
    EnvironmentProfile,
    InstallOptions,
    InstallTarget,
    ResolvedInstallOptions,
)

__all__ = [
    # panel.py
    "AccountFeatures",
    "AccountSettings",
    # command.py
    "CommandResult",
    "DatabaseSettings",
    # target.py
    "EnvironmentProfile",
    "InstallOptions",
    "InstallTarget",
    "PanelConfig",
    "RegistrySettings",
    "ResolvedInstallOptions",
    "ToolSettings",
    "WebSettings",
]
