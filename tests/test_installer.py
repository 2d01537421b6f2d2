"""
Tests for the install orchestrator — happy path, every abort path and
the compensation table.
"""

import logging
from pathlib import Path

import pytest
import yaml
from dotenv import dotenv_values

from bedrock_webapp.adapters.mock import MockCommandRunner
from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem
from bedrock_webapp.core.models.target import InstallOptions
from bedrock_webapp.core.persistence.meta_store import META_FILE, MetaStore
from bedrock_webapp.core.services.docroot import DocrootTable
from bedrock_webapp.core.services.installer import InstallState, render_env
from bedrock_webapp.core.services.options import DEFAULT_TITLE
from tests.fakes import FakeCredentialFactory, make_bedrock_tree


def _composer_creates_project(runner: MockCommandRunner) -> None:
    """Make ``composer create-project`` lay out a Bedrock tree at its target."""

    def effect(argv: list[str], cwd: str | None) -> None:
        make_bedrock_tree(Path(argv[5]), active="development")

    runner.set_side_effect("create-project", effect)


@pytest.fixture
def docroot(account_root: Path) -> Path:
    return account_root / "var" / "www" / "example.com"


@pytest.fixture
def ready(runner: MockCommandRunner) -> MockCommandRunner:
    _composer_creates_project(runner)
    return runner


# ── Happy path ───────────────────────────────────────────────────────


class TestInstallSuccess:
    def test_returns_true(self, module, ready, docroot: Path):
        assert module.install("example.com") is True

    def test_report(self, module, ready):
        report = module.install_report("example.com")
        assert report.state == InstallState.INSTALLED
        assert report.ok
        assert report.errors == []
        assert report.compensations == []
        assert report.completed[0] == "preconditions"
        assert report.completed[-1] == "rewrite-structure"

    def test_composer_invocation(self, module, ready, docroot: Path):
        module.install("example.com", "", {"version": "1.24.2"})
        (argv,) = ready.calls_matching("create-project")
        assert argv[1:] == [
            "create-project",
            "--prefer-dist",
            "--no-interaction",
            "roots/bedrock",
            str(docroot),
            "1.24.2",
        ]

    def test_latest_version_omits_argument(self, module, ready, docroot: Path):
        module.install("example.com")
        (argv,) = ready.calls_matching("create-project")
        assert argv[-1] == str(docroot)

    def test_public_root_remapped(self, module, ready, fs: AccountFilesystem, panel_config):
        module.install("example.com")
        table = DocrootTable(fs, panel_config.web, panel_config.state_dir)
        assert table.get_document_root("example.com") == "/var/www/example.com/web"

    def test_app_root_consistent_after_remap(self, module, ready):
        module.install("example.com")
        assert module.resolver.resolve_app_root("example.com") == "/var/www/example.com"
        assert module.valid("example.com")

    def test_env_file_bound_to_credentials(self, module, ready, credentials, docroot: Path):
        module.install("example.com", "", {"ssl": True})
        values = dotenv_values(docroot / ".env", interpolate=False)
        cred = credentials.last
        assert values["DB_NAME"] == cred.database
        assert values["DB_USER"] == cred.user
        assert values["DB_PASSWORD"] == cred.password
        assert values["DB_HOST"] == "localhost"
        assert values["WP_ENV"] == "production"
        assert values["WP_HOME"] == "https://example.com"
        assert values["WP_SITEURL"] == "${WP_HOME}/wp"
        assert len(values["AUTH_KEY"]) == 64
        assert values["AUTH_KEY"] != values["NONCE_SALT"]

    def test_core_install_arguments(self, module, ready, docroot: Path):
        module.install(
            "Example.com",
            "",
            {"title": "My Blog", "user": "editor", "password": "s3cretpass", "email": "me@example.com"},
        )
        (argv,) = ready.calls_matching("core")
        assert argv[:2] == ["wp", "core"]
        assert argv[2:] == [
            "install",
            "--admin_email=me@example.com",
            "--skip-email",
            "--url=http://example.com",
            "--title=My Blog",
            "--admin_user=editor",
            '--exec=function_exists("mysqli_report") && mysqli_report(0);',
            "--admin_password=s3cretpass",
        ]
        cwds = [cwd for a, cwd in ready.call_log if a[:2] == ["wp", "core"]]
        assert cwds == [str(docroot)]

    def test_defaults(self, module, ready):
        module.install("example.com")
        (argv,) = ready.calls_matching("core")
        assert f"--title={DEFAULT_TITLE}" in argv
        assert "--admin_user=admin" in argv
        assert "--admin_email=admin@example.com" in argv

    def test_rewrite_structure(self, module, ready, docroot: Path):
        module.install("example.com")
        (argv,) = ready.calls_matching("rewrite")
        assert argv == ["wp", "rewrite", "structure", "--hard", "/%postname%/"]

    def test_post_install_fixups(self, module, ready, docroot: Path):
        module.install("example.com")
        assert (docroot / "web" / ".htaccess").is_file()
        config = yaml.safe_load((docroot / "wp-cli.yml").read_text())
        assert config == {"path": "web/wp", "apache_modules": ["mod_rewrite"]}

    def test_metadata_recorded(self, module, ready, account_root: Path):
        module.install("example.com", "", {"ssl": True})
        record = MetaStore(account_root / ".panel" / META_FILE).get("example.com")
        assert record is not None
        assert record.app_root == "/var/www/example.com"
        assert record.docroot == "/var/www/example.com/web"
        assert record.url == "https://example.com"
        assert "password" not in (account_root / ".panel" / "webapps.json").read_text()

    def test_generated_password_surfaced(self, module, ready, caplog):
        with caplog.at_level(logging.WARNING, logger="bedrock_webapp"):
            report = module.install_report("example.com")
        assert report.password
        assert report.password in caplog.text
        assert "password" not in report.to_dict()

    def test_supplied_password_not_reported(self, module, ready):
        report = module.install_report("example.com", "", {"password": "given-secret"})
        assert report.password is None

    def test_existing_empty_docroot_allowed(self, module, ready, docroot: Path):
        docroot.mkdir()
        assert module.install("example.com") is True


# ── Aborts before any side effect ────────────────────────────────────


class TestInstallPreconditions:
    def _assert_untouched(self, runner: MockCommandRunner, credentials: FakeCredentialFactory, docroot: Path):
        assert runner.call_count == 0
        assert credentials.issued == []
        assert not docroot.exists()

    def test_sub_path_refused(self, module, ready, credentials, docroot: Path, account_root: Path):
        report = module.install_report("example.com", "blog")
        assert not report.ok
        assert report.state == InstallState.ABORTED_CLEAN
        assert report.failed_step == "preconditions"
        assert "child path" in report.message
        self._assert_untouched(ready, credentials, docroot)
        assert not (account_root / "var" / "www" / "example.com" / "blog").exists()
        assert not (account_root / ".panel").exists()

    def test_root_path_refused(self, module, ready, credentials, docroot: Path):
        report = module.install_report("example.com", "/")
        assert report.state == InstallState.ABORTED_CLEAN
        assert report.failed_step == "preconditions"
        self._assert_untouched(ready, credentials, docroot)

    def test_mysql_disabled(self, module, ready, credentials, docroot: Path, panel_config):
        panel_config.account.features.mysql = False
        report = module.install_report("example.com")
        assert report.state == InstallState.ABORTED_CLEAN
        assert "MySQL" in report.message
        self._assert_untouched(ready, credentials, docroot)

    def test_composer_missing(self, module, ready, credentials, docroot: Path, fake_composer: Path):
        fake_composer.unlink()
        report = module.install_report("example.com")
        assert report.state == InstallState.ABORTED_CLEAN
        assert "composer missing" in report.message
        self._assert_untouched(ready, credentials, docroot)

    def test_invalid_hostname(self, module, ready, credentials, docroot: Path):
        report = module.install_report("not a host")
        assert report.state == InstallState.ABORTED_CLEAN
        assert report.failed_step == "resolve-docroot"
        self._assert_untouched(ready, credentials, docroot)

    def test_non_empty_docroot(self, module, ready, credentials, docroot: Path):
        docroot.mkdir()
        (docroot / "index.html").write_text("hello")
        report = module.install_report("example.com")
        assert report.state == InstallState.ABORTED_CLEAN
        assert ready.call_count == 0
        assert (docroot / "index.html").read_text() == "hello"

    @pytest.mark.parametrize("version", ["latest", "1.x", "v1.2", "1.2.3.4.5"])
    def test_bad_version_pin(self, module, ready, credentials, docroot: Path, version: str):
        report = module.install_report("example.com", "", {"version": version})
        assert report.state == InstallState.ABORTED_CLEAN
        assert report.failed_step == "normalize-options"
        self._assert_untouched(ready, credentials, docroot)

    def test_bad_email(self, module, ready, credentials, docroot: Path):
        report = module.install_report("example.com", "", InstallOptions(email="nope"))
        assert report.state == InstallState.ABORTED_CLEAN
        self._assert_untouched(ready, credentials, docroot)

    def test_control_characters_refused_before_fetch(self, module, ready, credentials, docroot: Path):
        ok = module.install("example.com", "", {"title": "bad\x00title", "password": "pw12345678"})
        assert ok is False
        report = module.install_report("example.com", "", {"title": "bad\x00title"})
        assert report.state == InstallState.ABORTED_CLEAN
        assert report.failed_step == "normalize-options"
        self._assert_untouched(ready, credentials, docroot)

    def test_bad_option_type(self, module, ready, credentials, docroot: Path):
        report = module.install_report("example.com", "", {"ssl": "definitely"})
        assert report.state == InstallState.ABORTED_CLEAN
        self._assert_untouched(ready, credentials, docroot)


# ── Aborts with compensation ─────────────────────────────────────────


class TestInstallCompensation:
    def test_fetch_failure_removes_docroot(self, module, ready, credentials, docroot: Path):
        ready.set_failure("create-project", stderr="Could not find package roots/bedrock")
        report = module.install_report("example.com")
        assert not report.ok
        assert report.state == InstallState.ABORTED_ROLLED_BACK
        assert report.compensations == ["fetch-package"]
        assert "Could not find package" in report.message
        assert not docroot.exists()
        assert credentials.issued == []

    def test_fetch_failure_ignores_hold(self, module, ready, docroot: Path):
        ready.set_failure("create-project")
        module.install("example.com", "", {"hold": True})
        assert not docroot.exists()

    def test_remap_failure_removes_docroot(self, module, ready, credentials, docroot: Path, monkeypatch):
        monkeypatch.setattr(DocrootTable, "remap_public", lambda self, *a, **k: None)
        report = module.install_report("example.com")
        assert report.state == InstallState.ABORTED_ROLLED_BACK
        assert "manually remap" in report.message
        assert not docroot.exists()
        assert credentials.issued == []

    def test_credential_failure_leaves_project(self, module, ready, credentials, docroot: Path):
        credentials.create_ok = False
        report = module.install_report("example.com")
        assert report.state == InstallState.ABORTED_RESIDUAL
        assert report.failed_step == "issue-credentials"
        assert "access denied" in report.message
        assert docroot.is_dir()
        assert credentials.last.rollback_calls == 0
        assert ready.calls_matching("core") == []

    def test_config_failure_rolls_back(self, module, ready, credentials, docroot: Path, monkeypatch):
        def fail(self, path, content):
            raise OSError("disk full")

        monkeypatch.setattr(AccountFilesystem, "write_text", fail)
        report = module.install_report("example.com")
        assert report.state == InstallState.ABORTED_ROLLED_BACK
        assert "disk full" in report.message
        assert credentials.last.rollback_calls == 1
        assert not (docroot / "web").exists()

    def test_config_failure_with_hold(self, module, ready, credentials, docroot: Path, monkeypatch):
        def fail(self, path, content):
            raise OSError("read-only file system")

        monkeypatch.setattr(AccountFilesystem, "write_text", fail)
        report = module.install_report("example.com", "", {"hold": True})
        assert report.state == InstallState.ABORTED_RESIDUAL
        assert credentials.last.rollback_calls == 0
        assert (docroot / "web").is_dir()

    def test_core_install_failure_rolls_back_once(self, module, ready, credentials, docroot: Path):
        ready.set_failure("core", stderr="Error: Error establishing a database connection.")
        report = module.install_report("example.com")
        assert report.state == InstallState.ABORTED_ROLLED_BACK
        assert "failed to create database structure" in report.message
        assert "database connection" in report.message
        assert credentials.last.rollback_calls == 1
        assert docroot.is_dir()

    def test_core_install_failure_falls_back_to_stdout(self, module, ready):
        ready.set_failure("core", stderr="", stdout="Error: site already installed")
        report = module.install_report("example.com")
        assert "site already installed" in report.message

    def test_core_install_failure_with_hold(self, module, ready, credentials, docroot: Path):
        ready.set_failure("core")
        report = module.install_report("example.com", "", {"hold": True})
        assert report.state == InstallState.ABORTED_RESIDUAL
        assert credentials.last.rollback_calls == 0
        assert docroot.is_dir()
        assert (docroot / "web").is_dir()

    def test_incomplete_rollback_is_warned(self, module, ready, credentials, monkeypatch):
        ready.set_failure("core")
        original = credentials.for_hostname

        def issue(hostname):
            cred = original(hostname)
            cred.rollback_ok = False
            return cred

        monkeypatch.setattr(credentials, "for_hostname", issue)
        report = module.install_report("example.com")
        assert report.state == InstallState.ABORTED_ROLLED_BACK
        assert any("compensation for core-install failed" in w for w in report.warnings)

    def test_rewrite_failure_keeps_install(self, module, ready, credentials, docroot: Path):
        ready.set_failure("rewrite", stderr="Error: rewrite rules not writable")
        report = module.install_report("example.com")
        assert report.state == InstallState.INSTALLED
        assert not report.ok
        assert "failed to set rewrite structure" in report.message
        assert credentials.last.rollback_calls == 0
        assert docroot.is_dir()
        assert module.install("other.example.com") is False


class TestRenderEnv:
    def test_fresh_salts_each_time(self, credentials):
        from bedrock_webapp.core.models.target import ResolvedInstallOptions

        opts = ResolvedInstallOptions(
            title="t", email="a@b.co", user="u", password="p" * 8, url="example.com"
        )
        cred = credentials.for_hostname("example.com")
        assert render_env(cred, opts) != render_env(cred, opts)
