"""
Tests for the structural install check and version introspection.
"""

import json
import shutil
from pathlib import Path

import pytest

from tests.fakes import make_bedrock_tree


@pytest.fixture
def site(account_root: Path) -> Path:
    return make_bedrock_tree(account_root / "var" / "www" / "example.com")


class TestValid:
    def test_complete_install(self, module, site: Path):
        assert module.valid("example.com") is True

    def test_missing_app_root(self, module):
        assert module.valid("example.com") is False

    def test_missing_application_php(self, module, site: Path):
        (site / "config" / "application.php").unlink()
        assert module.valid("example.com") is False

    def test_missing_environments_dir(self, module, site: Path):
        shutil.rmtree(site / "config" / "environments")
        assert module.valid("example.com") is False

    def test_missing_plugins_dir(self, module, site: Path):
        shutil.rmtree(site / "web" / "app" / "plugins")
        assert module.valid("example.com") is False

    def test_environments_must_be_a_directory(self, module, site: Path):
        shutil.rmtree(site / "config" / "environments")
        (site / "config" / "environments").write_text("")
        assert module.valid("example.com") is False

    def test_raw_path_addressing(self, module, site: Path):
        assert module.valid("/var/www/example.com/web") is True

    def test_invalid_hostname(self, module):
        assert module.valid("bad host") is False


class TestGetVersion:
    def test_reads_wordpress_constraint(self, module, site: Path):
        assert module.get_version("example.com") == "6.4.2"

    def test_none_when_invalid(self, module, site: Path):
        (site / "config" / "application.php").unlink()
        assert module.get_version("example.com") is None

    def test_none_without_composer_json(self, module, site: Path):
        (site / "composer.json").unlink()
        assert module.get_version("example.com") is None

    def test_none_without_key(self, module, site: Path):
        (site / "composer.json").write_text(json.dumps({"require": {"php": ">=8.1"}}))
        assert module.get_version("example.com") is None

    def test_none_for_malformed_json(self, module, site: Path):
        (site / "composer.json").write_text("{not json")
        assert module.get_version("example.com") is None
