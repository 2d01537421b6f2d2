"""
Registry fetcher — bounded-wait HTTP GET for upstream package metadata.
"""

from __future__ import annotations

import logging
import urllib.request

from bedrock_webapp import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"bedrock-webapp/{__version__}"


class RegistryFetcher:
    """Fetch a URL body as text.

    Transport failures are logged and reported as None; callers treat a
    missing body as "nothing known".
    """

    def __init__(self, timeout: float = 5):
        self._timeout = timeout

    def fetch(self, url: str) -> str | None:
        try:
            req = urllib.request.Request(
                url,
                headers={
                    "Accept": "application/json",
                    "User-Agent": USER_AGENT,
                },
            )
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                body = resp.read()
        except (OSError, ValueError) as e:
            logger.warning("Fetch of %s failed: %s", url, e)
            return None
        return body.decode("utf-8", errors="replace")
