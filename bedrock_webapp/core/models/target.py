"""
Target and option models — what is being installed, where, and how.

InstallTarget identifies one logical application instance. It is built
per call and never persisted here; what is installed where lives in the
install metadata store.

InstallOptions is what the caller passes in. It is normalized exactly
once into a frozen ResolvedInstallOptions before the orchestrator's
first side-effecting step, so no step ever sees a half-filled record.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class InstallTarget(BaseModel):
    """One application instance, addressed by hostname (+ sub-path) or raw path."""

    hostname: str
    sub_path: str = ""
    resolved_app_root: str | None = None
    resolved_fs_path: str | None = None

    @property
    def is_raw_path(self) -> bool:
        """A hostname that starts with a separator is a filesystem path."""
        return self.hostname.startswith("/")

    @property
    def resolved(self) -> bool:
        return self.resolved_fs_path is not None

    @property
    def key(self) -> str:
        """Stable identifier used by the state files."""
        return f"{self.hostname}/{self.sub_path.strip('/')}".rstrip("/")


class InstallOptions(BaseModel):
    """Caller-supplied install options. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    version: str = ""               # empty = latest
    title: str | None = None
    email: str | None = None
    user: str | None = None
    password: str | None = None
    ssl: bool = False
    hold: bool = False              # keep resources on failure for inspection


class ResolvedInstallOptions(BaseModel):
    """Fully populated install options. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    version: str = ""
    title: str
    email: str
    user: str
    password: str
    password_generated: bool = False
    ssl: bool = False
    hold: bool = False
    url: str

    @property
    def scheme(self) -> str:
        return "https://" if self.ssl else "http://"

    @property
    def full_url(self) -> str:
        return f"{self.scheme}{self.url}"


class EnvironmentProfile(BaseModel):
    """One entry under ``config/environments/``. Derived, never stored."""

    name: str
    is_active: bool = False
