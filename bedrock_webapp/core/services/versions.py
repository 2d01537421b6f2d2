"""
Upstream version lookup, TTL-cached.

The registry serves a Composer v2 metadata document::

    {"packages": {"roots/bedrock": [{"version": "1.24.2", ...}, ...]}}

The last package entry is used and its release versions are returned in
the registry's listed order, reversed. That ordering is coupled to how
the registry lists releases; if the registry changes its native order
the output order changes with it.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol

from bedrock_webapp.core.errors import TransientFetchError
from bedrock_webapp.core.persistence.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

CACHE_KEY = "bedrock.versions"
CACHE_TTL = 43200


class Fetcher(Protocol):
    def fetch(self, url: str) -> str | None: ...


def parse_versions(body: str) -> list[str]:
    """Extract the reversed release version list from registry metadata.

    Raises:
        TransientFetchError: The document is not registry metadata.
    """
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise TransientFetchError(f"Registry returned invalid JSON: {e}") from e

    packages = data.get("packages") if isinstance(data, dict) else None
    if not isinstance(packages, dict) or not packages:
        raise TransientFetchError("Registry document has no packages")

    releases = list(packages.values())[-1]
    if not isinstance(releases, list):
        raise TransientFetchError("Registry package entry is not a release list")

    versions = [
        str(release["version"])
        for release in releases
        if isinstance(release, dict) and "version" in release
    ]
    versions.reverse()
    return versions


class VersionCache:
    """Available upstream versions, fetched at most once per TTL window."""

    def __init__(
        self,
        cache: TTLCache,
        fetcher: Fetcher,
        url: str,
        ttl: int = CACHE_TTL,
        key: str = CACHE_KEY,
    ):
        self._cache = cache
        self._fetcher = fetcher
        self._url = url
        self._ttl = ttl
        self._key = key

    def get_versions(self) -> list[str]:
        """Available versions, or ``[]`` when the registry is unreachable.

        Failures are not cached, so the next call tries again.
        """
        cached = self._cache.get(self._key)
        if cached is not None:
            return cached

        body = self._fetcher.fetch(self._url)
        if not body:
            logger.warning("No version data from %s", self._url)
            return []

        try:
            versions = parse_versions(body)
        except TransientFetchError as e:
            logger.warning("Cannot determine versions: %s", e)
            return []

        self._cache.set(self._key, versions, self._ttl)
        logger.debug("Cached %d versions for %ds", len(versions), self._ttl)
        return versions
