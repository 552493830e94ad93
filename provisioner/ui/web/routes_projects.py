"""
Projects API routes — CRUD over provisioned projects.

GET    /api/projects        → the requester's projects
PUT    /api/projects        → provision a project, returns {"id": ...}
GET    /api/projects/<id>   → one project
POST   /api/projects/<id>   → update name/description (+ profile/version for web)
DELETE /api/projects/<id>   → remove the project and its folders

The requester is read from ``session["user"]`` (``{"id", "external_id"}``),
set by whatever authenticates the session.  Every provisioning failure
is answered with 400 and ``{"error": ..., "kind": ...}``.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Blueprint, current_app, g, jsonify, request, session

from provisioner.core.errors import ProvisioningError
from provisioner.core.models.project import Owner
from provisioner.core.use_cases.projects import ProjectService

logger = logging.getLogger(__name__)

projects_bp = Blueprint("projects", __name__)


def _service() -> ProjectService:
    return current_app.extensions["provisioner"]


def _error(e: ProvisioningError):  # type: ignore[no-untyped-def]
    return jsonify({"error": str(e), "kind": e.public_kind}), 400


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """Reject requests without an authenticated session user."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        user = session.get("user")
        if not isinstance(user, dict) or not user.get("id"):
            return jsonify({"error": "Login required", "kind": "unauthorized"}), 401
        g.owner = Owner(id=str(user["id"]), external_id=str(user.get("external_id") or ""))
        return view(*args, **kwargs)

    return wrapper


@projects_bp.errorhandler(ProvisioningError)
def _handle_provisioning_error(e: ProvisioningError):  # type: ignore[no-untyped-def]
    logger.debug("%s %s failed: %s (%s)", request.method, request.path, e, e.kind)
    return _error(e)


# ── Collection ──────────────────────────────────────────────────────


@projects_bp.route("", methods=["GET"])
@login_required
def api_projects_list():  # type: ignore[no-untyped-def]
    """List the requester's projects."""
    projects = _service().list_projects(g.owner)
    return jsonify([p.model_dump(mode="json") for p in projects])


@projects_bp.route("", methods=["PUT"])
@login_required
def api_projects_create():  # type: ignore[no-untyped-def]
    """Provision a new project."""
    data = request.get_json(silent=True)
    project_id = _service().create_project(g.owner, data)
    return jsonify({"id": project_id})


# ── Single project ──────────────────────────────────────────────────


@projects_bp.route("/<project_id>", methods=["GET"])
@login_required
def api_project_get(project_id: str):  # type: ignore[no-untyped-def]
    """Read one project."""
    project = _service().get_project(g.owner, project_id)
    return jsonify(project.model_dump(mode="json"))


@projects_bp.route("/<project_id>", methods=["POST"])
@login_required
def api_project_update(project_id: str):  # type: ignore[no-untyped-def]
    """Update a project's name, description, profile and version."""
    data = request.get_json(silent=True)
    project = _service().update_project(g.owner, project_id, data)
    return jsonify(project.model_dump(mode="json"))


@projects_bp.route("/<project_id>", methods=["DELETE"])
@login_required
def api_project_delete(project_id: str):  # type: ignore[no-untyped-def]
    """Delete a project and its folders."""
    _service().delete_project(g.owner, project_id)
    return "", 200
