"""
Structural install check and version introspection.
"""

from __future__ import annotations

import json
import logging

from bedrock_webapp.core.services.approot import AppRootResolver

logger = logging.getLogger(__name__)

# Paths every Bedrock project has, relative to the app root
REQUIRED_FILES = ("config/application.php",)
REQUIRED_DIRS = ("config/environments", "web/app/plugins")

CORE_PACKAGE = "roots/wordpress"


class ValidityChecker:
    """Does an app root look like a genuine Bedrock install?"""

    def __init__(self, resolver: AppRootResolver):
        self._resolver = resolver

    def is_valid(self, hostname: str, path: str = "") -> bool:
        root = self._resolver.resolve_app_root_fs_path(hostname, path)
        if root is None or not root.is_dir():
            return False
        return all((root / f).is_file() for f in REQUIRED_FILES) and all(
            (root / d).is_dir() for d in REQUIRED_DIRS
        )

    def get_version(self, hostname: str, path: str = "") -> str | None:
        """WordPress core constraint pinned in the project's composer.json."""
        if not self.is_valid(hostname, path):
            return None
        root = self._resolver.resolve_app_root_fs_path(hostname, path)
        manifest = root / "composer.json"
        if not manifest.is_file():
            return None
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable %s: %s", manifest, e)
            return None
        require = data.get("require") if isinstance(data, dict) else None
        if not isinstance(require, dict):
            return None
        version = require.get(CORE_PACKAGE)
        return str(version) if version is not None else None
