"""
Configuration loader — reads bedrock.yml into the PanelConfig model.

Reads YAML, validates against the Pydantic schema, and returns a typed
configuration object.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from bedrock_webapp.core.models.panel import PanelConfig

logger = logging.getLogger(__name__)

# Default config filename
PANEL_CONFIG_FILE = "bedrock.yml"
CONFIG_ENV_VAR = "BEDROCK_CONFIG"


class ConfigError(Exception):
    """Raised when the panel configuration is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Locate bedrock.yml.

    ``$BEDROCK_CONFIG`` wins when set; otherwise search upward from
    ``start_dir`` (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PANEL_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> PanelConfig:
    """Load and validate the panel configuration.

    Args:
        path: Explicit path to bedrock.yml. If None, uses find_config_file().

    Returns:
        Validated PanelConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {PANEL_CONFIG_FILE} found. "
            f"Set ${CONFIG_ENV_VAR} or pass --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading panel config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = PanelConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid panel configuration in {path}: {e}") from e

    logger.info("Loaded panel config for account '%s'", config.account.user)
    return config
