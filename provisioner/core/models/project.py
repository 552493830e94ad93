"""
Project models — the record kept in the store and the request bodies
that create or modify it.

Request bodies use strict string fields: a missing key, ``null`` or
a number where a string is expected is rejected rather than coerced.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, StrictStr

# The distinguished project type that carries a config.xml manifest
# and whose profile/version may be edited after creation.
WEB_TYPE = "web"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Owner(BaseModel):
    """The authenticated requester.

    ``external_id`` is the identity assigned by an external platform
    and is only used by the ``pwe`` deployment mode.
    """

    id: str
    external_id: str = ""


class ProjectRecord(BaseModel):
    """A project record — one document in the record store."""

    id: str = ""                    # assigned by the store on create
    owner: str
    name: str
    description: str = ""
    created: str = Field(default_factory=_now_iso)
    profile: str = ""
    version: str = ""
    type: str = ""
    format: str = ""

    @property
    def is_web(self) -> bool:
        return self.type == WEB_TYPE


class CreateProjectRequest(BaseModel):
    """Body of a create request.  Every field is required."""

    model_config = ConfigDict(populate_by_name=True)

    name: StrictStr
    description: StrictStr
    format: StrictStr
    profile: StrictStr
    version: StrictStr
    type: StrictStr
    template_name: StrictStr = Field(alias="templateName")


class UpdateProjectRequest(BaseModel):
    """Body of an update request.  Every field is required."""

    name: StrictStr
    description: StrictStr
    profile: StrictStr
    version: StrictStr
