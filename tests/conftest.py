"""
Shared test fixtures and configuration.

Every test runs against an account namespace under ``tmp_path``; account
paths such as ``/var/www/example.com`` map to
``<tmp_path>/account/var/www/example.com``.
"""

import logging
import stat
from pathlib import Path

import pytest

from bedrock_webapp.adapters.mock import MockCommandRunner
from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem
from bedrock_webapp.core.models.panel import PanelConfig
from bedrock_webapp.core.persistence.ttl_cache import MemoryTTLCache
from bedrock_webapp.core.services.bedrock import BedrockModule
from tests.fakes import FakeClock, FakeCredentialFactory, FakeFetcher


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def account_root(tmp_path: Path) -> Path:
    """Host directory holding the account namespace."""
    root = tmp_path / "account"
    (root / "var" / "www").mkdir(parents=True)
    return root


@pytest.fixture
def fake_composer(tmp_path: Path) -> Path:
    """An executable named composer, so availability checks pass."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    composer = bin_dir / "composer"
    composer.write_text("#!/bin/sh\nexit 0\n")
    composer.chmod(composer.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return composer


@pytest.fixture
def panel_config(account_root: Path, fake_composer: Path) -> PanelConfig:
    return PanelConfig.model_validate(
        {
            "account": {
                "user": "admin",
                "fs_root": str(account_root),
                "admin_email": "admin@example.com",
                "primary_domain": "example.org",
            },
            "tools": {"composer": str(fake_composer)},
        }
    )


@pytest.fixture
def fs(account_root: Path) -> AccountFilesystem:
    return AccountFilesystem(account_root)


@pytest.fixture
def runner() -> MockCommandRunner:
    return MockCommandRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def credentials() -> FakeCredentialFactory:
    return FakeCredentialFactory()


@pytest.fixture
def module(
    panel_config: PanelConfig,
    runner: MockCommandRunner,
    clock: FakeClock,
    fetcher: FakeFetcher,
    credentials: FakeCredentialFactory,
) -> BedrockModule:
    return BedrockModule.from_config(
        panel_config,
        runner=runner,
        cache=MemoryTTLCache(clock=clock),
        fetcher=fetcher,
        credentials=credentials,
    )


@pytest.fixture
def restore_logging():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
