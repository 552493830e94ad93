"""
Sidecar file persistence — read/write of state.json documents.

Unlike the record store, a missing or corrupt sidecar is an error:
the sidecar is the only copy of state that external tooling reads,
so it is never silently replaced with a fresh document.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from provisioner.adapters.filesystem import FilesystemProvisioner
from provisioner.core.errors import FilesystemError
from provisioner.core.models.sidecar import StateSidecar

logger = logging.getLogger(__name__)


def load_sidecar(path: Path, fs: FilesystemProvisioner | None = None) -> StateSidecar:
    """Load a sidecar (or the seed template) from *path*.

    Raises:
        FilesystemError: If the file is missing, unreadable or not a
            JSON object.
    """
    fs = fs or FilesystemProvisioner()
    raw = fs.read_bytes(path)

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FilesystemError(f"Corrupt state file {path}: {e}") from e

    if not isinstance(data, dict):
        raise FilesystemError(
            f"Expected a JSON object in {path}, got {type(data).__name__}"
        )

    try:
        sidecar = StateSidecar.model_validate(data)
    except PydanticValidationError as e:
        raise FilesystemError(f"Invalid state file {path}: {e}") from e

    logger.debug("Loaded state from %s (project=%s)", path, sidecar.project_id)
    return sidecar


def dump_sidecar(sidecar: StateSidecar) -> bytes:
    """Serialize a sidecar as compact UTF-8 JSON."""
    return json.dumps(sidecar.to_document(), ensure_ascii=False).encode("utf-8")


def save_sidecar(
    sidecar: StateSidecar,
    path: Path,
    fs: FilesystemProvisioner | None = None,
) -> None:
    """Write a sidecar to *path* (atomic write)."""
    fs = fs or FilesystemProvisioner()
    fs.write_bytes(path, dump_sidecar(sidecar))
    logger.debug("State saved to %s", path)
