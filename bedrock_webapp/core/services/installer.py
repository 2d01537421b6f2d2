"""
Install orchestrator — provision a Bedrock site on the account.

The install is a fixed table of steps. Each step pairs an action with
the compensation that runs when *that* step fails:

    step                 compensation on failure            honors hold
    ───────────────────  ─────────────────────────────────  ───────────
    preconditions        none (nothing touched yet)         -
    resolve-docroot      none                               -
    normalize-options    none                               -
    fetch-package        delete docroot                     no
    remap-public         delete original docroot            no
    issue-credentials    none                               -
    generate-config      delete public docroot, drop creds  yes
    admin-defaults       none                               -
    core-install         drop creds                         yes
    write-metadata       none (reported, install stands)    -
    rewrite-structure    none (reported, install stands)    -

``issue-credentials`` has no compensation: a credential failure leaves
the fetched and remapped project on disk. Later steps do not undo the
steps before them beyond what the table says.

Every BedrockError raised by a step ends the run with an InstallReport.
Other exceptions propagate.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable, Mapping, Protocol

from bedrock_webapp.adapters.database.mysql import CredentialHandle
from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem
from bedrock_webapp.adapters.tools.composer import ComposerAdapter
from bedrock_webapp.adapters.tools.wpcli import WpCliAdapter, merge_configuration
from bedrock_webapp.core.errors import (
    BedrockError,
    ConfigurationError,
    ExternalToolError,
    PreconditionError,
    ResolutionError,
)
from bedrock_webapp.core.models.panel import PACKAGIST_NAME, PanelConfig
from bedrock_webapp.core.models.target import InstallOptions, ResolvedInstallOptions
from bedrock_webapp.core.persistence.meta_store import InstallRecord, MetaStore
from bedrock_webapp.core.services.docroot import DocrootTable, normalize_hostname
from bedrock_webapp.core.services.options import coerce_options, normalize_options
from bedrock_webapp.core.services.passwords import generate_password, generate_salt

logger = logging.getLogger(__name__)

REWRITE_STRUCTURE = "/%postname%/"
WP_CLI_SETTINGS = {"apache_modules": ["mod_rewrite"]}

SALT_KEYS = (
    "AUTH_KEY",
    "SECURE_AUTH_KEY",
    "LOGGED_IN_KEY",
    "NONCE_KEY",
    "AUTH_SALT",
    "SECURE_AUTH_SALT",
    "LOGGED_IN_SALT",
    "NONCE_SALT",
)


class CredentialFactory(Protocol):
    def for_hostname(self, hostname: str) -> CredentialHandle: ...


class InstallState(StrEnum):
    """Terminal state of one install run."""

    ABORTED_CLEAN = "aborted-clean"
    ABORTED_ROLLED_BACK = "aborted-with-partial-rollback"
    ABORTED_RESIDUAL = "aborted-with-residual-resources"
    INSTALLED = "installed"


@dataclass
class InstallReport:
    """Outcome of an install run."""

    hostname: str
    path: str = ""
    state: InstallState = InstallState.ABORTED_CLEAN
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    compensations: list[str] = field(default_factory=list)
    failed_step: str | None = None
    password: str | None = None     # set only when generated

    @property
    def ok(self) -> bool:
        return self.state == InstallState.INSTALLED and not self.errors

    @property
    def message(self) -> str:
        return "; ".join(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hostname": self.hostname,
            "path": self.path,
            "state": str(self.state),
            "ok": self.ok,
            "errors": self.errors,
            "warnings": self.warnings,
            "completed": self.completed,
            "compensations": self.compensations,
            "failed_step": self.failed_step,
        }


@dataclass
class InstallContext:
    """Resources acquired so far by one run."""

    hostname: str
    path: str
    raw_options: InstallOptions
    options: ResolvedInstallOptions | None = None
    docroot: str | None = None          # install directory (app root)
    public_docroot: str | None = None   # served directory after remap
    credential: CredentialHandle | None = None
    touched: bool = False               # something outside memory changed

    @property
    def hold(self) -> bool:
        if self.options is not None:
            return self.options.hold
        return self.raw_options.hold


@dataclass(frozen=True)
class InstallStep:
    """One row of the install table."""

    name: str
    action: Callable[[InstallContext], None]
    compensation: Callable[[InstallContext], None] | None = None
    honors_hold: bool = False
    fatal: bool = True


class InstallOrchestrator:
    """Run the install table against one target."""

    def __init__(
        self,
        config: PanelConfig,
        fs: AccountFilesystem,
        docroots: DocrootTable,
        composer: ComposerAdapter,
        wp: WpCliAdapter,
        credentials: CredentialFactory,
        meta: MetaStore,
        password_factory: Callable[[], str] = generate_password,
    ):
        self._config = config
        self._fs = fs
        self._docroots = docroots
        self._composer = composer
        self._wp = wp
        self._credentials = credentials
        self._meta = meta
        self._password_factory = password_factory

    @property
    def steps(self) -> list[InstallStep]:
        return [
            InstallStep("preconditions", self._check_preconditions),
            InstallStep("resolve-docroot", self._resolve_docroot),
            InstallStep("normalize-options", self._normalize_options),
            InstallStep("fetch-package", self._fetch_package, self._remove_docroot),
            InstallStep("remap-public", self._remap_public, self._remove_docroot),
            InstallStep("issue-credentials", self._issue_credentials),
            InstallStep(
                "generate-config",
                self._generate_config,
                self._remove_public_and_credentials,
                honors_hold=True,
            ),
            InstallStep("admin-defaults", self._announce_defaults),
            InstallStep(
                "core-install",
                self._core_install,
                self._rollback_credentials,
                honors_hold=True,
            ),
            InstallStep("write-metadata", self._write_metadata, fatal=False),
            InstallStep("rewrite-structure", self._rewrite_structure, fatal=False),
        ]

    # ── Public API ──────────────────────────────────────────────

    def install(
        self,
        hostname: str,
        path: str = "",
        options: InstallOptions | Mapping[str, Any] | None = None,
    ) -> bool:
        """Install Bedrock; True only when every step succeeded."""
        return self.run(hostname, path, options).ok

    def run(
        self,
        hostname: str,
        path: str = "",
        options: InstallOptions | Mapping[str, Any] | None = None,
    ) -> InstallReport:
        report = InstallReport(hostname=hostname, path=path)
        try:
            raw = coerce_options(options)
        except PreconditionError as e:
            report.errors.append(str(e))
            report.failed_step = "normalize-options"
            logger.error("Install of %s aborted: %s", hostname, e)
            return report

        ctx = InstallContext(hostname=hostname, path=path, raw_options=raw)

        for step in self.steps:
            logger.info("[%s] %s", hostname, step.name)
            try:
                step.action(ctx)
            except BedrockError as e:
                logger.error("[%s] %s failed: %s", hostname, step.name, e)
                report.errors.append(str(e))
                if not step.fatal:
                    continue
                report.failed_step = step.name
                report.state = self._compensate(step, ctx, report)
                return report
            report.completed.append(step.name)

        if ctx.options is not None and ctx.options.password_generated:
            report.password = ctx.options.password
        report.state = InstallState.INSTALLED
        if report.errors:
            logger.warning("Installed %s with errors: %s", hostname, report.message)
        else:
            logger.info("Installed Bedrock on %s", hostname)
        return report

    def _compensate(
        self,
        step: InstallStep,
        ctx: InstallContext,
        report: InstallReport,
    ) -> InstallState:
        if not ctx.touched:
            return InstallState.ABORTED_CLEAN
        if step.compensation is None:
            report.warnings.append(f"{step.name} has no compensation; resources left in place")
            return InstallState.ABORTED_RESIDUAL
        if step.honors_hold and ctx.hold:
            logger.warning("[%s] hold set, leaving resources for inspection", ctx.hostname)
            report.warnings.append("hold set; resources left in place")
            return InstallState.ABORTED_RESIDUAL

        logger.warning("[%s] compensating %s", ctx.hostname, step.name)
        try:
            step.compensation(ctx)
        except BedrockError as e:
            logger.error("[%s] compensation for %s failed: %s", ctx.hostname, step.name, e)
            report.warnings.append(f"compensation for {step.name} failed: {e}")
        report.compensations.append(step.name)
        return InstallState.ABORTED_ROLLED_BACK

    # ── Actions ─────────────────────────────────────────────────

    def _check_preconditions(self, ctx: InstallContext) -> None:
        if not self._config.account.features.mysql:
            raise PreconditionError("MySQL must be enabled to install Bedrock")
        if not self._composer.is_available():
            raise PreconditionError("composer missing! contact sysadmin")
        if ctx.path:
            raise PreconditionError(
                "Composer projects may only be installed directly on a domain or "
                "subdomain without a child path, e.g. https://example.com but not "
                "https://example.com/blog"
            )

    def _resolve_docroot(self, ctx: InstallContext) -> None:
        # a stale remap points below the install directory; install above it
        docroot = self._docroots.base_app_root(ctx.hostname, ctx.path)
        if docroot is None:
            raise ResolutionError(f"failed to normalize path for `{ctx.hostname}'")
        if self._fs.is_dir(docroot) and self._fs.list_dir(docroot):
            raise PreconditionError(f"Document root {docroot} is not empty")
        if self._fs.exists(docroot) and not self._fs.is_dir(docroot):
            raise PreconditionError(f"Document root {docroot} is not a directory")
        ctx.docroot = docroot

    def _normalize_options(self, ctx: InstallContext) -> None:
        ctx.options = normalize_options(
            ctx.raw_options,
            ctx.hostname,
            ctx.path,
            self._config.account,
            self._password_factory,
        )

    def _fetch_package(self, ctx: InstallContext) -> None:
        ctx.touched = True
        result = self._composer.create_project(
            PACKAGIST_NAME,
            str(self._fs.fs_path(ctx.docroot)),
            ctx.options.version,
        )
        if result.failed:
            raise ExternalToolError(f"failed to download {PACKAGIST_NAME} package", result)

    def _remap_public(self, ctx: InstallContext) -> None:
        public = self._docroots.remap_public(
            ctx.hostname, ctx.path, self._config.web.public_subdir
        )
        if public is None:
            raise ResolutionError(
                f"Failed to remap Bedrock to {self._config.web.public_subdir}, manually remap "
                f"from `{ctx.docroot}' - Bedrock setup is incomplete!"
            )
        ctx.public_docroot = public

    def _issue_credentials(self, ctx: InstallContext) -> None:
        try:
            credential = self._credentials.for_hostname(normalize_hostname(ctx.hostname))
        except ValueError as e:
            raise PreconditionError(f"Cannot derive database credentials: {e}") from e
        ctx.credential = credential
        if not credential.create():
            raise ExternalToolError(f"failed to create database credentials: {credential.error}")

    def _generate_config(self, ctx: InstallContext) -> None:
        path = posixpath.join(ctx.docroot, ".env")
        try:
            self._fs.write_text(path, render_env(ctx.credential, ctx.options))
        except OSError as e:
            raise ConfigurationError(f"Cannot write {path}: {e}") from e
        logger.debug("Wrote %s", path)

    def _announce_defaults(self, ctx: InstallContext) -> None:
        opts = ctx.options
        if opts.password_generated:
            logger.warning("autogenerated password `%s'", opts.password)
        logger.info("setting admin user to `%s'", opts.user)

    def _core_install(self, ctx: InstallContext) -> None:
        opts = ctx.options
        result = self._wp.core_install(
            str(self._fs.fs_path(ctx.docroot)),
            email=opts.email,
            url=opts.url,
            proto=opts.scheme,
            title=opts.title,
            user=opts.user,
            password=opts.password,
        )
        if result.failed:
            raise ExternalToolError("failed to create database structure", result)

    def _write_metadata(self, ctx: InstallContext) -> None:
        opts = ctx.options
        try:
            self._meta.put(
                InstallRecord(
                    hostname=normalize_hostname(ctx.hostname),
                    path=ctx.path,
                    docroot=ctx.public_docroot,
                    app_root=ctx.docroot,
                    version=opts.version,
                    admin_user=opts.user,
                    email=opts.email,
                    url=opts.full_url,
                    ssl=opts.ssl,
                )
            )
            htaccess = posixpath.join(ctx.public_docroot, ".htaccess")
            if not self._fs.exists(htaccess):
                self._fs.touch(htaccess)
            merge_configuration(self._fs, ctx.docroot, WP_CLI_SETTINGS)
        except OSError as e:
            raise ConfigurationError(f"failed to write install metadata: {e}") from e

    def _rewrite_structure(self, ctx: InstallContext) -> None:
        result = self._wp.rewrite_structure(str(self._fs.fs_path(ctx.docroot)), REWRITE_STRUCTURE)
        if result.failed:
            raise ExternalToolError("failed to set rewrite structure", result)

    # ── Compensations ───────────────────────────────────────────

    def _remove_docroot(self, ctx: InstallContext) -> None:
        if ctx.docroot:
            self._fs.delete(ctx.docroot, recursive=True)

    def _remove_public_and_credentials(self, ctx: InstallContext) -> None:
        logger.info("removing temporary files")
        if ctx.public_docroot:
            self._fs.delete(ctx.public_docroot, recursive=True)
        self._rollback_credentials(ctx)

    def _rollback_credentials(self, ctx: InstallContext) -> None:
        if ctx.credential is not None and not ctx.credential.rollback():
            raise ExternalToolError(f"credential rollback incomplete: {ctx.credential.error}")


def render_env(credential: CredentialHandle, options: ResolvedInstallOptions) -> str:
    """Bedrock ``.env`` bound to ``credential``, with fresh salts."""
    lines = [
        f"DB_NAME='{credential.database}'",
        f"DB_USER='{credential.user}'",
        f"DB_PASSWORD='{credential.password}'",
        f"DB_HOST='{credential.host}'",
        "",
        "WP_ENV='production'",
        f"WP_HOME='{options.full_url}'",
        'WP_SITEURL="${WP_HOME}/wp"',
        "",
    ]
    lines.extend(f"{key}='{generate_salt()}'" for key in SALT_KEYS)
    return "\n".join(lines) + "\n"
