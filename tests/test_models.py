"""
Tests for domain models — command results, targets, panel defaults.
"""

from bedrock_webapp.core.models import (
    CommandResult,
    EnvironmentProfile,
    InstallTarget,
    PanelConfig,
)


class TestCommandResult:
    def test_ok_result(self):
        r = CommandResult.ok_result("done", command=["composer", "--version"])
        assert r.ok and not r.failed
        assert r.message == "done"

    def test_failure_prefers_stderr(self):
        r = CommandResult.failure("  boom \n", stdout="partial")
        assert r.failed
        assert r.message == "boom"

    def test_failure_falls_back_to_stdout(self):
        assert CommandResult.failure("", stdout="only stdout").message == "only stdout"

    def test_silent_failure_reports_exit_code(self):
        r = CommandResult.failure("", return_code=127)
        assert r.message == "exited with code 127"

    def test_serializes(self):
        data = CommandResult.ok_result(command=["wp"]).model_dump()
        assert data["command"] == ["wp"]
        assert "started_at" in data


class TestInstallTarget:
    def test_raw_path(self):
        assert InstallTarget(hostname="/var/www/site").is_raw_path
        assert not InstallTarget(hostname="example.com").is_raw_path

    def test_key(self):
        assert InstallTarget(hostname="example.com").key == "example.com"
        assert InstallTarget(hostname="example.com", sub_path="/blog/").key == "example.com/blog"

    def test_resolved(self):
        assert not InstallTarget(hostname="example.com").resolved
        assert InstallTarget(hostname="example.com", resolved_fs_path="/tmp/x").resolved


class TestPanelConfig:
    def test_prefix_derived_from_user(self):
        config = PanelConfig.model_validate({"account": {"user": "carol"}})
        assert config.database.prefix == "carol_"

    def test_profile_defaults_inactive(self):
        assert EnvironmentProfile(name="staging").is_active is False
