"""
Tests for CLI commands — global options, read commands and install.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from bedrock_webapp.main import cli
from tests.fakes import make_bedrock_tree


@pytest.fixture
def config_file(tmp_path: Path, account_root: Path) -> Path:
    content = textwrap.dedent(f"""\
        account:
          user: admin
          fs_root: {account_root}
          admin_email: admin@example.com
        tools:
          composer: /nonexistent/composer
        registry:
          url: http://127.0.0.1:9/p2/roots/bedrock.json
          timeout: 1
    """)
    path = tmp_path / "bedrock.yml"
    path.write_text(content)
    return path


@pytest.fixture
def site(account_root: Path) -> Path:
    return make_bedrock_tree(account_root / "var" / "www" / "example.com", active="staging")


@pytest.fixture
def invoke(config_file: Path, restore_logging):
    def _invoke(*args: str):
        return CliRunner().invoke(cli, ["--config", str(config_file), *args])

    return _invoke


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Bedrock" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config(self, tmp_path: Path, restore_logging):
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "none.yml"), "versions"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestReadCommands:
    def test_valid(self, invoke, site: Path):
        result = invoke("valid", "example.com")
        assert result.exit_code == 0
        assert "is a Bedrock install" in result.output

    def test_not_valid(self, invoke):
        result = invoke("valid", "example.com")
        assert result.exit_code == 1
        assert "❌" in result.output

    def test_valid_json(self, invoke, site: Path):
        result = invoke("valid", "example.com", "--json")
        assert json.loads(result.stdout) == {"hostname": "example.com", "path": "", "valid": True}

    def test_version(self, invoke, site: Path):
        result = invoke("version", "example.com")
        assert result.exit_code == 0
        assert result.stdout.strip() == "6.4.2"

    def test_env_get(self, invoke, site: Path):
        result = invoke("env", "get", "example.com", "--json")
        assert json.loads(result.stdout)["environment"] == "staging"

    def test_env_list(self, invoke, site: Path):
        result = invoke("env", "list", "example.com")
        assert result.exit_code == 0
        assert "staging ← active" in result.output
        assert "development" in result.output

    def test_env_list_missing(self, invoke):
        result = invoke("env", "list", "example.com", "--json")
        assert result.exit_code == 1
        assert json.loads(result.stdout) is None

    def test_env_set_rejects_bad_name(self, invoke, site: Path):
        result = invoke("env", "set", "example.com", "bad name")
        assert result.exit_code == 1
        assert "Invalid environment name" in result.output

    def test_versions_unreachable(self, invoke):
        result = invoke("versions", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout) == []


class TestInstallCommand:
    def test_json_report_on_refusal(self, invoke):
        result = invoke("install", "example.com", "--path", "blog", "--json")
        assert result.exit_code == 1
        report = json.loads(result.stdout)
        assert report["state"] == "aborted-clean"
        assert report["ok"] is False

    def test_human_output(self, invoke):
        result = invoke("install", "example.com")
        assert result.exit_code == 1
        assert "composer missing" in result.output
        assert "aborted-clean" in result.output
