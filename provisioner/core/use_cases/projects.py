"""
Projects use case — list, get, create, update and delete projects.

A project is four resources joined by the record id:

    record          (record store)
    project dir     <projects_root>/<id>/            template copy, config.xml
    support dir     <projects_root>/support/<id>/    state.json

Create and update run as sagas so a failure part-way through undoes
the steps already taken.  Delete runs the same driver without
compensations: once the record is gone there is nothing to restore.

Every mutation is recorded in the audit ledger, success or not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from provisioner.adapters.filesystem import FilesystemProvisioner
from provisioner.core.engine.saga import Saga, SagaReport
from provisioner.core.errors import (
    ForbiddenError,
    NotFoundError,
    ProvisioningError,
    ValidationError,
)
from provisioner.core.models.project import (
    WEB_TYPE,
    CreateProjectRequest,
    Owner,
    ProjectRecord,
    UpdateProjectRequest,
)
from provisioner.core.models.settings import Settings
from provisioner.core.models.sidecar import sidecar_for_create, sidecar_for_update
from provisioner.core.persistence.audit import AuditEntry, AuditWriter
from provisioner.core.persistence.record_store import JsonRecordStore, RecordStore
from provisioner.core.persistence.sidecar_file import load_sidecar, save_sidecar
from provisioner.core.services.manifest import ManifestGenerator
from provisioner.core.services.naming import ResourcePaths, resolve_paths

logger = logging.getLogger(__name__)

INVALID_DATA_MESSAGE = "Project data is wrong"


def _parse(model: type[BaseModel], data: Any) -> Any:
    if isinstance(data, model):
        return data
    if not isinstance(data, dict):
        raise ValidationError(INVALID_DATA_MESSAGE)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ValidationError(f"{INVALID_DATA_MESSAGE}: {', '.join(fields)}") from e


def _check_path_segment(field_name: str, value: str) -> None:
    """Template lookups join request fields into a path; keep them single segments."""
    if value in (".", "..") or "/" in value or "\\" in value or "\x00" in value:
        raise ValidationError(f"{INVALID_DATA_MESSAGE}: {field_name}")


def parse_create_request(data: Any) -> CreateProjectRequest:
    """Validate a create body.

    Raises:
        ValidationError: A field is missing, not a string, or (for the
            template lookup fields) not a single path segment.
    """
    request: CreateProjectRequest = _parse(CreateProjectRequest, data)
    _check_path_segment("format", request.format)
    _check_path_segment("type", request.type)
    _check_path_segment("templateName", request.template_name)
    return request


def parse_update_request(data: Any) -> UpdateProjectRequest:
    """Validate an update body."""
    return _parse(UpdateProjectRequest, data)


@dataclass
class _CreateContext:
    record: ProjectRecord | None = None
    paths: ResourcePaths | None = None


@dataclass
class _UpdateContext:
    original_sidecar: bytes | None = None


class ProjectService:
    """Provisioning workflow over a record store and the filesystem."""

    def __init__(
        self,
        settings: Settings,
        store: RecordStore,
        fs: FilesystemProvisioner | None = None,
        audit: AuditWriter | None = None,
        manifest: ManifestGenerator | None = None,
    ):
        self.settings = settings
        self.store = store
        self.fs = fs or FilesystemProvisioner()
        self.audit = audit or AuditWriter(None)
        self.manifest = manifest or ManifestGenerator(
            settings.manifest_template,
            domain_prefix=settings.manifest_domain_prefix,
            fs=self.fs,
        )

    # ── Queries ─────────────────────────────────────────────────

    def list_projects(self, owner: Owner) -> list[ProjectRecord]:
        """All projects owned by *owner*."""
        return self.store.find_by_owner(owner.id)

    def get_project(self, owner: Owner, project_id: str) -> ProjectRecord:
        """Fetch one project, checking ownership.

        Raises:
            NotFoundError: No such project.
            ForbiddenError: The project belongs to someone else.
        """
        record = self.store.get(project_id)
        if record is None:
            logger.debug("Project %s not found", project_id)
            raise NotFoundError()
        if record.owner != owner.id:
            logger.warning("Owner %s denied access to project %s", owner.id, project_id)
            raise ForbiddenError()
        return record

    # ── Create ──────────────────────────────────────────────────

    def create_project(self, owner: Owner, data: Any) -> str:
        """Provision a new project and return its id.

        Steps: record → project dir → template copy (if any) →
        config.xml (web only) → support dir + state.json.  Any failure
        removes whatever was created and re-raises the failure.
        """
        request = parse_create_request(data)
        ctx = _CreateContext()
        saga = Saga("create", step_timeout=self.settings.step_timeout)

        def create_record() -> str:
            ctx.record = self.store.create(ProjectRecord(
                owner=owner.id,
                name=request.name,
                description=request.description,
                profile=request.profile,
                version=request.version,
                type=request.type,
                format=request.format,
            ))
            ctx.paths = resolve_paths(
                self.settings,
                ctx.record.id,
                fmt=request.format,
                project_type=request.type,
                template_name=request.template_name,
            )
            return ctx.record.id

        def delete_record() -> None:
            if ctx.record is not None:
                self.store.delete(ctx.record.id)

        saga.add("record", create_record, delete_record)
        saga.add(
            "project-dir",
            lambda: self.fs.ensure_dir(ctx.paths.project_dir),
            lambda: self.fs.remove_tree(ctx.paths.project_dir),
            compensate_on_failure=True,
        )

        if request.template_name:
            def copy_template() -> int:
                # A missing template source becomes an empty folder
                self.fs.ensure_dir(ctx.paths.template_dir)
                return self.fs.copy_tree(ctx.paths.template_dir, ctx.paths.project_dir)

            saga.add("template", copy_template)

        if request.type == WEB_TYPE:
            saga.add("manifest", lambda: self.manifest.write(
                ctx.paths.manifest_file,
                project_id=ctx.record.id,
                name=request.name,
                version=request.version,
                profile=request.profile,
            ))

        def write_state() -> None:
            self.fs.ensure_dir(ctx.paths.support_dir)
            seed = load_sidecar(self.settings.state_template, self.fs)
            project_user = owner.external_id if self.settings.deployment_mode == "pwe" else None
            save_sidecar(
                sidecar_for_create(seed, ctx.record, project_user=project_user),
                ctx.paths.sidecar_file,
                self.fs,
            )

        saga.add(
            "state",
            write_state,
            lambda: self.fs.remove_tree(ctx.paths.support_dir),
            compensate_on_failure=True,
        )

        report = saga.execute()
        project_id = ctx.record.id if ctx.record else ""
        self._record_audit(report, owner, project_id, name=request.name, type=request.type)
        report.raise_if_failed()

        logger.info("Project created: %s (%s, type=%s)", project_id, request.name, request.type)
        return project_id

    # ── Update ──────────────────────────────────────────────────

    def update_project(self, owner: Owner, project_id: str, data: Any) -> ProjectRecord:
        """Rename/describe a project; profile and version for web projects only.

        The record is persisted first, then state.json is rewritten.  If
        the rewrite fails, the record and the sidecar are restored.
        """
        request = parse_update_request(data)
        previous = self.get_project(owner, project_id)

        changes: dict[str, Any] = {
            "name": request.name,
            "description": request.description,
        }
        if previous.is_web:
            changes["profile"] = request.profile
            changes["version"] = request.version
        updated = previous.model_copy(update=changes)

        paths = resolve_paths(self.settings, project_id)
        ctx = _UpdateContext()
        saga = Saga("update", step_timeout=self.settings.step_timeout)

        def rewrite_state() -> None:
            ctx.original_sidecar = self.fs.read_bytes(paths.sidecar_file)
            current = load_sidecar(paths.sidecar_file, self.fs)
            save_sidecar(
                sidecar_for_update(
                    current,
                    name=request.name,
                    profile=request.profile,
                    version=request.version,
                ),
                paths.sidecar_file,
                self.fs,
            )

        def restore_state() -> None:
            if ctx.original_sidecar is not None:
                self.fs.write_bytes(paths.sidecar_file, ctx.original_sidecar)

        saga.add("record", lambda: self.store.update(updated), lambda: self.store.update(previous))
        saga.add("state", rewrite_state, restore_state, compensate_on_failure=True)

        report = saga.execute()
        self._record_audit(report, owner, project_id, name=request.name)
        report.raise_if_failed()

        logger.info("Project updated: %s (%s)", project_id, request.name)
        return updated

    # ── Delete ──────────────────────────────────────────────────

    def delete_project(self, owner: Owner, project_id: str) -> None:
        """Remove the record, the project dir and the support dir.

        Ownership is checked first.  Directories that are already gone
        are not an error.
        """
        record = self.get_project(owner, project_id)
        paths = resolve_paths(self.settings, record.id)

        saga = Saga("delete", step_timeout=self.settings.step_timeout)
        saga.add("record", lambda: self.store.delete(record.id))
        saga.add("project-dir", lambda: self.fs.remove_tree(paths.project_dir))
        saga.add("support-dir", lambda: self.fs.remove_tree(paths.support_dir))

        report = saga.execute()
        self._record_audit(report, owner, project_id, name=record.name)
        report.raise_if_failed()

        logger.info("Project deleted: %s (%s)", project_id, record.name)

    # ── Internals ───────────────────────────────────────────────

    def _record_audit(
        self,
        report: SagaReport,
        owner: Owner,
        project_id: str,
        **context: Any,
    ) -> None:
        error = report.error
        errors = [str(error)] if error else []
        errors.extend(f"rollback {e}" for e in report.compensation_errors)
        self.audit.write(AuditEntry(
            operation_id=report.operation_id,
            operation_type=report.saga,
            project_id=project_id,
            owner=owner.id,
            status=report.status,
            steps_completed=report.completed,
            steps_compensated=report.compensated,
            duration_ms=report.duration_ms,
            error_kind=error.kind if isinstance(error, ProvisioningError) else (
                type(error).__name__ if error else ""
            ),
            errors=errors,
            context=context,
        ))


def build_service(settings: Settings) -> ProjectService:
    """Wire a ProjectService with the on-disk store and audit ledger."""
    fs = FilesystemProvisioner()
    return ProjectService(
        settings=settings,
        store=JsonRecordStore(settings.store_path, fs=fs),
        fs=fs,
        audit=AuditWriter(settings.audit_path),
    )
