"""
State file persistence — atomic JSON read/write.

Panel state (the document-root table, install metadata) is stored as
JSON under the account's state directory. Writes are atomic (write to
temp file, then rename) to prevent corruption if the process crashes
mid-write.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def load_json(path: Path) -> dict[str, Any]:
    """Load a JSON mapping from disk.

    Missing, corrupt or non-mapping files yield an empty dict — state
    files are caches of panel decisions, a fresh start is always valid.
    """
    if not path.is_file():
        logger.debug("No state file at %s — starting fresh", path)
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Corrupt state file %s: %s — starting fresh", path, e)
        return {}
    except OSError as e:
        logger.warning("Cannot read state from %s: %s — starting fresh", path, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("State file %s is not a mapping — starting fresh", path)
        return {}
    return data


def atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """Write a JSON mapping atomically.

    Uses write-to-temp-then-rename to prevent corruption.

    Args:
        data: JSON-serializable mapping.
        path: Target path for the state file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n"

    try:
        _fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".state_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            tmp.rename(path)
            logger.debug("State saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        logger.error("Failed to save state to %s: %s", path, e)
        raise
