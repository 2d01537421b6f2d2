"""
Deployment environment — read, switch and list ``WP_ENV`` profiles.

The active environment lives in ``<approot>/.env`` as ``WP_ENV=<name>``;
the available ones are the files under ``<approot>/config/environments/``.
"""

from __future__ import annotations

import logging
import posixpath
import re

from dotenv.parser import parse_stream

from bedrock_webapp.adapters.shell.filesystem import AccountFilesystem
from bedrock_webapp.adapters.shell.privileged import PrivilegedShell
from bedrock_webapp.core.errors import ExternalToolError
from bedrock_webapp.core.models.target import EnvironmentProfile
from bedrock_webapp.core.services.approot import AppRootResolver

logger = logging.getLogger(__name__)

ENV_FILE = ".env"
ENV_KEY = "WP_ENV"
ENVIRONMENTS_DIR = "config/environments"

_ENV_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")
_ENV_LINE = re.compile(rf"^{ENV_KEY}=.*$", re.MULTILINE)


class EnvironmentResolver:
    """Detect, switch and enumerate deployment environments."""

    def __init__(
        self,
        fs: AccountFilesystem,
        resolver: AppRootResolver,
        shell: PrivilegedShell,
    ):
        self._fs = fs
        self._resolver = resolver
        self._shell = shell

    def get_active_environment(self, hostname: str, path: str = "") -> str | None:
        """``WP_ENV`` from the app root's ``.env``, or None.

        The first ``WP_ENV`` binding wins, the same line ``set`` rewrites.
        Nothing is exported into the process environment and no variable
        expansion happens. An unreadable dotfile reads as None.
        """
        root = self._resolver.resolve_app_root_fs_path(hostname, path)
        if root is None:
            return None
        env_file = root / ENV_FILE
        if not env_file.is_file():
            return None
        try:
            with env_file.open(encoding="utf-8") as stream:
                for binding in parse_stream(stream):
                    if binding.key == ENV_KEY:
                        return binding.value
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read %s: %s", env_file, e)
        return None

    def set_active_environment(self, hostname: str, path: str, environment: str) -> bool:
        """Point ``WP_ENV`` at ``environment``.

        The first ``WP_ENV=`` line is rewritten; when there is none, one
        is appended. The edit runs through the privileged shell because
        the file belongs to the account user.

        Returns:
            False when the target or its ``.env`` cannot be found.

        Raises:
            ValueError: ``environment`` is not a plain profile name.
            ExternalToolError: The edit command failed.
        """
        if not _ENV_NAME.match(environment):
            raise ValueError(f"Invalid environment name: {environment!r}")

        app_root = self._resolver.resolve_app_root(hostname, path)
        if app_root is None:
            logger.error("Cannot resolve app root for %s", hostname)
            return False
        env_path = posixpath.join(app_root, ENV_FILE)
        if not self._fs.is_file(env_path):
            logger.error("No %s in %s", ENV_FILE, app_root)
            return False

        try:
            content = self._fs.read_text(env_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Cannot read %s: %s", env_path, e)
            return False

        host_file = str(self._fs.fs_path(env_path))
        line = f"{ENV_KEY}={environment}"
        if _ENV_LINE.search(content):
            result = self._shell.replace_first_line(host_file, f"^{ENV_KEY}=.*$", line)
        else:
            logger.info("No %s line in %s, appending one", ENV_KEY, env_path)
            result = self._shell.append_line(host_file, line)

        if result.failed:
            raise ExternalToolError("Failed to update env", result)
        logger.info("%s set to %s for %s", ENV_KEY, environment, hostname)
        return True

    def list_environments(self, hostname: str, path: str = "") -> list[EnvironmentProfile] | None:
        """Profiles under ``config/environments/``, in enumeration order.

        Enumeration order depends on the filesystem; sort the result if a
        stable order matters.
        """
        app_root = self._resolver.resolve_app_root(hostname, path)
        if app_root is None:
            return None
        env_dir = posixpath.join(app_root, ENVIRONMENTS_DIR)
        if not self._fs.is_dir(env_dir):
            return None

        active = self.get_active_environment(hostname, path)
        profiles = []
        for entry in self._fs.list_dir(env_dir):
            if not entry.is_file:
                continue
            name = posixpath.splitext(entry.name)[0]
            profiles.append(EnvironmentProfile(name=name, is_active=name == active))
        return profiles
