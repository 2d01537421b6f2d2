"""
Error taxonomy for the Bedrock plugin.

Adapters never raise for tool failures — they return a CommandResult.
Services raise these exceptions at the step level and the install
orchestrator converts every ``BedrockError`` into a report at its
boundary. Anything that is not a ``BedrockError`` (resource exhaustion,
programming errors) propagates untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bedrock_webapp.core.models.command import CommandResult


class BedrockError(Exception):
    """Base class for all plugin errors."""


class PreconditionError(BedrockError):
    """A required feature, tool or argument is missing. Nothing was touched."""


class ResolutionError(BedrockError):
    """A hostname, path or app root could not be resolved."""


class TransientFetchError(BedrockError):
    """The version registry could not be reached or parsed."""


class ConfigurationError(BedrockError):
    """The framework configuration could not be generated."""


class ExternalToolError(BedrockError):
    """An external tool (composer, wp-cli, sed, mysql) exited non-zero.

    The captured result is kept so callers can surface the tool's own
    output verbatim.
    """

    def __init__(self, message: str, result: CommandResult | None = None):
        self.result = result
        if result is not None and result.message:
            message = f"{message}: {result.message}"
        super().__init__(message)
