"""
App-root resolution — which directory IS the install for a target.

A target is addressed three ways:

    hostname            "blog.example.com"
    hostname + path     "blog.example.com", "shop"
    raw path            "/var/www/blog.example.com/web"

Raw paths are canonicalized and their parent directory is the app
root. Hostnames go through the document-root table: a remapped target
always resolves to the directory it was installed into, so resolution
after an install finds the same place the install used.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path

from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem
from bedrock_webapp.core.models.target import InstallTarget
from bedrock_webapp.core.services.docroot import DocrootTable

logger = logging.getLogger(__name__)

# Present at the document root of a flattened (non-remapped) install
MARKER_FILE = "wp-config.php"


class AppRootResolver:
    """Resolve targets to app roots (account paths and host paths)."""

    def __init__(self, fs: AccountFilesystem, docroots: DocrootTable):
        self._fs = fs
        self._docroots = docroots

    def resolve_app_root(self, hostname: str, path: str = "") -> str | None:
        """App root as an account path, or None when it cannot be resolved."""
        if not hostname:
            raise ValueError("hostname must not be empty")

        if hostname.startswith("/"):
            canonical = self._fs.realpath(hostname)
            if canonical is None:
                logger.debug("Cannot canonicalize %s", hostname)
                return None
            return posixpath.dirname(canonical)

        if not self._docroots.is_remapped(hostname, path):
            docroot = self._docroots.get_document_root(hostname, path)
            if docroot is None:
                return None
            if self._fs.exists(posixpath.join(docroot, MARKER_FILE)):
                return docroot

        return self._docroots.base_app_root(hostname, path)

    def resolve_app_root_fs_path(self, hostname: str, path: str = "") -> Path | None:
        """App root as a host path usable for direct file tests."""
        return self._host_path(self.resolve_app_root(hostname, path))

    def resolve(self, hostname: str, path: str = "") -> InstallTarget:
        """Build an InstallTarget with both resolutions filled in."""
        app_root = self.resolve_app_root(hostname, path)
        fs_path = self._host_path(app_root)
        return InstallTarget(
            hostname=hostname,
            sub_path=path,
            resolved_app_root=app_root,
            resolved_fs_path=str(fs_path) if fs_path is not None else None,
        )

    def _host_path(self, app_root: str | None) -> Path | None:
        if app_root is None:
            return None
        try:
            return self._fs.fs_path(app_root)
        except ValueError:
            logger.debug("Cannot translate app root %s", app_root)
            return None
