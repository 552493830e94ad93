"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from provisioner.core.models.project import Owner
from provisioner.core.models.settings import Settings
from provisioner.core.persistence.audit import AuditWriter
from provisioner.core.persistence.record_store import MemoryRecordStore
from provisioner.core.use_cases.projects import ProjectService


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary directory, bundled seeds."""
    return Settings(step_timeout=0).resolved(tmp_path)


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def service(settings: Settings, store: MemoryRecordStore) -> ProjectService:
    """A ProjectService over an in-memory store with an audit ledger."""
    return ProjectService(
        settings=settings,
        store=store,
        audit=AuditWriter(settings.audit_path),
    )


@pytest.fixture
def alice() -> Owner:
    return Owner(id="u-alice", external_id="pwe-alice")


@pytest.fixture
def bob() -> Owner:
    return Owner(id="u-bob", external_id="pwe-bob")


def project_data(**overrides: str) -> dict:
    """A complete create body; override any field by keyword."""
    data = {
        "name": "App",
        "description": "A test project",
        "format": "html",
        "profile": "mobile",
        "version": "2.4",
        "type": "basic",
        "templateName": "",
    }
    data.update(overrides)
    return data
