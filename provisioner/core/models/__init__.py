"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from provisioner.core.models import ProjectRecord, StateSidecar, Settings
"""

from provisioner.core.models.project import (
    WEB_TYPE,
    CreateProjectRequest,
    Owner,
    ProjectRecord,
    UpdateProjectRequest,
)
from provisioner.core.models.settings import Settings
from provisioner.core.models.sidecar import StateSidecar, merge_sidecar

__all__ = [
    # project.py
    "CreateProjectRequest",
    "Owner",
    "ProjectRecord",
    # settings.py
    "Settings",
    # sidecar.py
    "StateSidecar",
    "UpdateProjectRequest",
    "WEB_TYPE",
    "merge_sidecar",
]
