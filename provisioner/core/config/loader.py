"""
Configuration loader — reads provisioner.yml into ``Settings``.

This is the only place that decides where project files live.  It
reads YAML, validates against the Pydantic schema, and anchors
relative paths at the directory holding the settings file.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from provisioner.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "provisioner.yml"


class ConfigError(Exception):
    """Raised when the provisioner configuration is invalid or missing."""


def find_settings_file(start_dir: Path) -> Path | None:
    """Search for provisioner.yml starting from *start_dir*, walking up.

    Args:
        start_dir: Directory to start searching from.

    Returns:
        Path to provisioner.yml, or None if not found.
    """
    current = start_dir.resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None, base_dir: Path | None = None) -> Settings:
    """Load and validate provisioner settings.

    Args:
        path: Path to provisioner.yml.  None means "all defaults".
        base_dir: Anchor for relative paths when *path* is None.

    Returns:
        Validated Settings with absolute paths.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    if path is None:
        if base_dir is None:
            raise ConfigError("Either a settings file or a base directory is required")
        logger.debug("No %s — using defaults under %s", SETTINGS_FILE, base_dir)
        return Settings().resolved(base_dir)

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "provisioner" key or be flat
    if isinstance(data.get("provisioner"), dict):
        data = data["provisioner"]

    # Unset seeds fall back to the bundled files
    data = {k: v for k, v in data.items() if v is not None}

    try:
        settings = Settings.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid provisioner configuration: {e}") from e

    settings = settings.resolved(path.parent.resolve())
    logger.info("Loaded settings (projects_root=%s)", settings.projects_root)
    return settings
