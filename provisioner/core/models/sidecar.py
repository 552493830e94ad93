"""
StateSidecar — the per-project JSON document read by external tooling.

The document is seeded from a template file and then merged with the
project's own values.  Keys the template carries beyond the ones
modeled here are preserved untouched.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from provisioner.core.models.project import WEB_TYPE, ProjectRecord


class StateSidecar(BaseModel):
    """Serialized to ``<projects_root>/support/<id>/state.json``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    project_id: str = Field(default="", alias="projectId")
    project_name: str = Field(default="", alias="projectName")
    project_type: str = Field(default="", alias="projectType")
    project_profile: str = Field(default="", alias="projectProfile")
    project_version: str = Field(default="", alias="projectVersion")
    project_user: str | None = Field(default=None, alias="projectUser")

    @property
    def is_web(self) -> bool:
        return self.project_type == WEB_TYPE

    def to_document(self) -> dict[str, Any]:
        """Dump with the camelCase keys tooling expects."""
        exclude = {"project_user"} if self.project_user is None else None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


def merge_sidecar(seed: StateSidecar, **overrides: Any) -> StateSidecar:
    """Return a copy of *seed* with *overrides* applied.

    Overrides use field names (``project_name=...``).  The seed itself
    is never modified.
    """
    unknown = set(overrides) - set(StateSidecar.model_fields)
    if unknown:
        raise ValueError(f"Unknown sidecar fields: {', '.join(sorted(unknown))}")
    return seed.model_copy(update=overrides, deep=True)


def sidecar_for_create(
    seed: StateSidecar,
    record: ProjectRecord,
    project_user: str | None = None,
) -> StateSidecar:
    """Build the initial sidecar for a freshly created record."""
    overrides: dict[str, Any] = {
        "project_id": record.id,
        "project_name": record.name,
        "project_type": record.type,
        "project_profile": record.profile,
        "project_version": record.version,
    }
    if project_user is not None:
        overrides["project_user"] = project_user
    return merge_sidecar(seed, **overrides)


def sidecar_for_update(
    current: StateSidecar,
    name: str,
    profile: str,
    version: str,
) -> StateSidecar:
    """Apply an update to an existing sidecar.

    The name always follows the record; profile and version only for
    web projects, judged by the sidecar's own recorded type.
    """
    overrides: dict[str, Any] = {"project_name": name}
    if current.is_web:
        overrides["project_profile"] = profile
        overrides["project_version"] = version
    return merge_sidecar(current, **overrides)
