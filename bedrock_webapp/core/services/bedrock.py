"""
Bedrock module — the plugin surface the control panel calls.

Wires adapters and services from a PanelConfig and exposes:

    install            provision a new site
    get_versions       upstream versions (cached)
    valid              structural install check
    get_version        pinned WordPress core constraint
    get_environment    active WP_ENV
    set_environment    switch WP_ENV
    get_environments   available environment profiles
"""

from __future__ import annotations

from typing import Any, Mapping

from bedrock_webapp.adapters.database.mysql import MysqlCredentialFactory
from bedrock_webapp.adapters.http import RegistryFetcher
from bedrock_webapp.adapters.shell.command import CommandRunner
from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem
from bedrock_webapp.adapters.shell.privileged import PrivilegedShell
from bedrock_webapp.adapters.tools.composer import ComposerAdapter
from bedrock_webapp.adapters.tools.wpcli import WpCliAdapter
from bedrock_webapp.core.models.panel import PanelConfig
from bedrock_webapp.core.models.target import EnvironmentProfile, InstallOptions
from bedrock_webapp.core.persistence.meta_store import META_FILE, MetaStore
from bedrock_webapp.core.persistence.ttl_cache import MemoryTTLCache, TTLCache
from bedrock_webapp.core.services.approot import AppRootResolver
from bedrock_webapp.core.services.docroot import DocrootTable
from bedrock_webapp.core.services.environment import EnvironmentResolver
from bedrock_webapp.core.services.installer import (
    CredentialFactory,
    InstallOrchestrator,
    InstallReport,
)
from bedrock_webapp.core.services.validity import ValidityChecker
from bedrock_webapp.core.services.versions import Fetcher, VersionCache


class BedrockModule:
    """Facade over the resolver, version cache, environment and installer."""

    def __init__(
        self,
        resolver: AppRootResolver,
        versions: VersionCache,
        environments: EnvironmentResolver,
        validity: ValidityChecker,
        installer: InstallOrchestrator,
    ):
        self.resolver = resolver
        self.versions = versions
        self.environments = environments
        self.validity = validity
        self.installer = installer

    @classmethod
    def from_config(
        cls,
        config: PanelConfig,
        *,
        runner: CommandRunner | None = None,
        cache: TTLCache | None = None,
        fetcher: Fetcher | None = None,
        credentials: CredentialFactory | None = None,
    ) -> BedrockModule:
        """Build a module for the configured account.

        Any collaborator can be swapped out; tests pass a mock runner,
        a fake-clock cache and a canned fetcher.
        """
        tools = config.tools
        runner = runner or CommandRunner(run_as=tools.run_as, timeout=tools.timeout)
        fs = AccountFilesystem(config.account.fs_root)
        docroots = DocrootTable(
            fs,
            config.web,
            state_dir=config.state_dir,
            primary_domain=config.account.primary_domain,
        )
        resolver = AppRootResolver(fs, docroots)

        if credentials is None:
            credentials = MysqlCredentialFactory(
                runner,
                binary=tools.mysql,
                host=config.database.host,
                prefix=config.database.prefix or "",
            )

        versions = VersionCache(
            cache if cache is not None else MemoryTTLCache(),
            fetcher or RegistryFetcher(timeout=config.registry.timeout),
            url=config.registry.url,
            ttl=config.registry.cache_ttl,
        )
        installer = InstallOrchestrator(
            config,
            fs,
            docroots,
            ComposerAdapter(runner, tools.composer),
            WpCliAdapter(runner, tools.wp),
            credentials,
            MetaStore(fs.fs_path(config.state_dir) / META_FILE),
        )
        return cls(
            resolver=resolver,
            versions=versions,
            environments=EnvironmentResolver(fs, resolver, PrivilegedShell(runner, tools.sed)),
            validity=ValidityChecker(resolver),
            installer=installer,
        )

    # ── Plugin operations ───────────────────────────────────────

    def install(
        self,
        hostname: str,
        path: str = "",
        options: InstallOptions | Mapping[str, Any] | None = None,
    ) -> bool:
        return self.installer.install(hostname, path, options)

    def install_report(
        self,
        hostname: str,
        path: str = "",
        options: InstallOptions | Mapping[str, Any] | None = None,
    ) -> InstallReport:
        """Like ``install`` but returns the full report."""
        return self.installer.run(hostname, path, options)

    def get_versions(self) -> list[str]:
        return self.versions.get_versions()

    def valid(self, hostname: str, path: str = "") -> bool:
        return self.validity.is_valid(hostname, path)

    def get_version(self, hostname: str, path: str = "") -> str | None:
        return self.validity.get_version(hostname, path)

    def get_environment(self, hostname: str, path: str = "") -> str | None:
        return self.environments.get_active_environment(hostname, path)

    def set_environment(self, hostname: str, path: str = "", environment: str = "development") -> bool:
        return self.environments.set_active_environment(hostname, path, environment)

    def get_environments(self, hostname: str, path: str = "") -> list[EnvironmentProfile] | None:
        return self.environments.list_environments(hostname, path)
