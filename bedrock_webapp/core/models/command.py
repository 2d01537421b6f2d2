"""
CommandResult — the uniform outcome of an external process invocation.

Every adapter (composer, wp-cli, sed, mysql) returns one of these.
Adapters NEVER raise for a tool failure — the failure is captured here
and the calling service decides what it means.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class CommandResult(BaseModel):
    """Result of running one external command."""

    success: bool
    stdout: str = ""
    stderr: str = ""

    command: list[str] = Field(default_factory=list)
    return_code: int | None = None
    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.success

    @property
    def failed(self) -> bool:
        return not self.success

    @property
    def message(self) -> str:
        """Diagnostic text: stderr when present, otherwise stdout."""
        text = (self.stderr.strip() or self.stdout.strip())
        if not text and not self.success and self.return_code is not None:
            return f"exited with code {self.return_code}"
        return text

    @classmethod
    def ok_result(cls, stdout: str = "", **kwargs: Any) -> CommandResult:
        """Create a success result."""
        return cls(success=True, stdout=stdout, **kwargs)

    @classmethod
    def failure(cls, stderr: str, stdout: str = "", **kwargs: Any) -> CommandResult:
        """Create a failure result."""
        return cls(success=False, stdout=stdout, stderr=stderr, **kwargs)
