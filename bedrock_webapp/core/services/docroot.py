"""
Document-root table — where each hostname (+ path) is served from.

Document roots come from the account layout in the panel config unless
a remap has been recorded. Remaps are stored as JSON in
``<state_dir>/docroots.json``::

    {
      "blog.example.com": {
        "docroot": "/var/www/blog.example.com/web",
        "base": "/var/www/blog.example.com",
        "public_subdir": "web"
      }
    }

``base`` is the directory the application was installed into; the app
root of a remapped target is always its ``base``.
"""

from __future__ import annotations

import logging
import posixpath
import re
from pathlib import Path
from typing import Any

from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem
from bedrock_webapp.core.models.panel import WebSettings
from bedrock_webapp.core.persistence.state_file import atomic_write_json, load_json

logger = logging.getLogger(__name__)

DOCROOT_FILE = "docroots.json"

_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")


def normalize_hostname(hostname: str) -> str | None:
    """Lower-case, strip a trailing dot and validate as a DNS name.

    Returns None for anything that is not a valid hostname.
    """
    host = hostname.strip().lower().rstrip(".")
    if not host or len(host) > 253:
        return None
    if not all(_LABEL.match(label) for label in host.split(".")):
        return None
    return host


def _normalize_path(path: str) -> str:
    path = path.strip("/")
    return posixpath.normpath(path) if path else ""


class DocrootTable:
    """Resolve and remap document roots for an account."""

    def __init__(
        self,
        fs: AccountFilesystem,
        web: WebSettings,
        state_dir: str = "/.panel",
        primary_domain: str = "",
    ):
        self._fs = fs
        self._web = web
        self._state_dir = state_dir
        self._primary = normalize_hostname(primary_domain) if primary_domain else None

    @property
    def state_path(self) -> Path:
        return self._fs.fs_path(self._state_dir) / DOCROOT_FILE

    def _key(self, hostname: str, path: str) -> str:
        path = _normalize_path(path)
        return f"{hostname}/{path}" if path else hostname

    def _entry(self, hostname: str, path: str) -> dict[str, Any] | None:
        entry = load_json(self.state_path).get(self._key(hostname, path))
        return entry if isinstance(entry, dict) and entry.get("docroot") else None

    def _default_docroot(self, hostname: str, path: str) -> str:
        if self._primary and hostname == self._primary:
            base = self._web.primary_docroot
        else:
            base = self._web.docroot_template.format(hostname=hostname)
        path = _normalize_path(path)
        if path:
            if path.startswith(".."):
                raise ValueError(f"Path escapes the document root: {path!r}")
            base = posixpath.join(base, path)
        return posixpath.normpath(base)

    # ── Queries ─────────────────────────────────────────────────

    def get_document_root(self, hostname: str, path: str = "") -> str | None:
        """Document root currently served for ``hostname``/``path``."""
        host = normalize_hostname(hostname)
        if host is None:
            logger.debug("Invalid hostname %r", hostname)
            return None
        entry = self._entry(host, path)
        if entry is not None:
            return entry["docroot"]
        try:
            return self._default_docroot(host, path)
        except ValueError as e:
            logger.debug("%s", e)
            return None

    def is_remapped(self, hostname: str, path: str = "") -> bool:
        host = normalize_hostname(hostname)
        return host is not None and self._entry(host, path) is not None

    def base_app_root(self, hostname: str, path: str = "") -> str | None:
        """Directory the application lives in, public subdir stripped."""
        host = normalize_hostname(hostname)
        if host is None:
            return None
        entry = self._entry(host, path)
        if entry is not None:
            return entry.get("base") or posixpath.dirname(entry["docroot"])
        return self.get_document_root(host, path)

    # ── Mutations ───────────────────────────────────────────────

    def remap_public(self, hostname: str, path: str = "", subdir: str = "") -> str | None:
        """Serve ``hostname``/``path`` from ``<docroot>/<subdir>``.

        Idempotent: remapping an already remapped target returns the
        recorded document root unchanged.

        Returns:
            The new document root, or None when it could not be recorded.
        """
        host = normalize_hostname(hostname)
        if host is None:
            return None
        entry = self._entry(host, path)
        if entry is not None:
            return entry["docroot"]

        base = self.get_document_root(host, path)
        if base is None:
            return None
        subdir = _normalize_path(subdir or self._web.public_subdir)
        if not subdir or subdir.startswith(".."):
            logger.error("Refusing public subdir %r", subdir)
            return None
        docroot = posixpath.join(base, subdir)

        data = load_json(self.state_path)
        data[self._key(host, path)] = {
            "docroot": docroot,
            "base": base,
            "public_subdir": subdir,
        }
        try:
            atomic_write_json(self.state_path, data)
        except OSError as e:
            logger.error("Cannot record document root for %s: %s", host, e)
            return None
        logger.info("Document root for %s is now %s", self._key(host, path), docroot)
        return docroot
