"""
Panel configuration model — loaded from bedrock.yml.

Describes the tenant account the plugin operates on and where its
external tools live. Every section has defaults, so an empty mapping
plus ``account.user`` is a usable configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

PACKAGIST_NAME = "roots/bedrock"
VERSION_CHECK_URL = "https://repo.packagist.org/p2/roots/bedrock.json"


class AccountFeatures(BaseModel):
    """Service features enabled on the account."""

    mysql: bool = True


class AccountSettings(BaseModel):
    """The tenant account that owns the installs."""

    user: str
    fs_root: str = "/"              # host path of the account namespace
    admin_email: str = ""
    primary_domain: str = ""
    features: AccountFeatures = Field(default_factory=AccountFeatures)


class ToolSettings(BaseModel):
    """External binaries. ``run_as`` prefixes commands with ``sudo -u``."""

    composer: str = "composer"
    wp: str = "wp"
    sed: str = "sed"
    mysql: str = "mysql"
    run_as: str | None = None
    timeout: int | None = None      # composer/wp-cli are unbounded by default


class WebSettings(BaseModel):
    """Document root layout for hostnames on the account."""

    primary_docroot: str = "/var/www/html"
    docroot_template: str = "/var/www/{hostname}"
    public_subdir: str = "web/"


class RegistrySettings(BaseModel):
    """Upstream package registry used for version checks."""

    url: str = VERSION_CHECK_URL
    timeout: int = 5
    cache_ttl: int = 43200


class DatabaseSettings(BaseModel):
    host: str = "localhost"
    prefix: str | None = None       # defaults to "<user>_"


class PanelConfig(BaseModel):
    """Root configuration — loaded from bedrock.yml."""

    account: AccountSettings
    tools: ToolSettings = Field(default_factory=ToolSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    state_dir: str = "/.panel"

    @model_validator(mode="after")
    def _default_db_prefix(self) -> PanelConfig:
        if self.database.prefix is None:
            self.database.prefix = f"{self.account.user}_"
        return self
