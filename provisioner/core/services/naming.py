"""
Resource naming — where a project's resources live.

Pure functions over the settings and request fields.  No I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from provisioner.core.models.settings import Settings

MANIFEST_FILE = "config.xml"
SIDECAR_FILE = "state.json"
PACKAGE_ID_LENGTH = 10


@dataclass(frozen=True)
class ResourcePaths:
    """Filesystem locations for one project."""

    project_dir: Path
    support_dir: Path
    template_dir: Path | None = None

    @property
    def manifest_file(self) -> Path:
        return self.project_dir / MANIFEST_FILE

    @property
    def sidecar_file(self) -> Path:
        return self.support_dir / SIDECAR_FILE


def resolve_paths(
    settings: Settings,
    project_id: str,
    fmt: str = "",
    project_type: str = "",
    template_name: str = "",
) -> ResourcePaths:
    """Derive the project, support and template paths for *project_id*.

    The template source is only resolved when *template_name* is
    non-empty; an empty name means "start from an empty folder".
    """
    template_dir = None
    if template_name:
        template_dir = settings.templates_root / fmt / project_type / template_name

    return ResourcePaths(
        project_dir=settings.projects_root / project_id,
        support_dir=settings.support_root / project_id,
        template_dir=template_dir,
    )


def package_id(project_id: str) -> str:
    """Manifest package id — the first characters of the record id."""
    return project_id[:PACKAGE_ID_LENGTH]
