"""
Install metadata store — what is installed where.

One record per target, written after a successful install. Stored as
JSON in ``<state_dir>/webapps.json`` inside the account namespace. The
admin password is never persisted.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from bedrock_webapp.core.persistence.state_file import atomic_write_json, load_json

logger = logging.getLogger(__name__)

META_FILE = "webapps.json"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class InstallRecord(BaseModel):
    """Metadata for one installed application."""

    type: str = "bedrock"
    hostname: str
    path: str = ""
    docroot: str
    app_root: str
    version: str = ""               # requested pin; empty = latest at install time
    admin_user: str = ""
    email: str = ""
    url: str = ""
    ssl: bool = False
    installed_at: str = Field(default_factory=_now_iso)


class MetaStore:
    """Read/write install records keyed by ``hostname/path``."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def _key(hostname: str, path: str = "") -> str:
        return f"{hostname}/{path.strip('/')}".rstrip("/")

    def get(self, hostname: str, path: str = "") -> InstallRecord | None:
        raw = load_json(self._path).get(self._key(hostname, path))
        if raw is None:
            return None
        try:
            return InstallRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning("Ignoring corrupt install record for %s: %s", hostname, e)
            return None

    def put(self, record: InstallRecord) -> None:
        data = load_json(self._path)
        data[self._key(record.hostname, record.path)] = record.model_dump(mode="json")
        atomic_write_json(self._path, data)
        logger.debug("Install record saved for %s", record.hostname)
