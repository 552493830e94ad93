"""
Record store — project records keyed by id, queried by owner.

The store owns the ``(owner, name)`` uniqueness constraint: ``create``
and ``update`` check it inside the same critical section that commits
the change, so two concurrent creates of the same name cannot both
succeed within one process.

Two implementations share that logic:

    MemoryRecordStore  — dict-backed, for tests and ephemeral runs
    JsonRecordStore    — one JSON document on disk, atomic writes
"""

from __future__ import annotations

import copy
import json
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from provisioner.adapters.filesystem import FilesystemProvisioner
from provisioner.core.errors import DuplicateNameError, FilesystemError, StoreError
from provisioner.core.models.project import ProjectRecord

logger = logging.getLogger(__name__)

STORE_SCHEMA_VERSION = 1


def new_record_id() -> str:
    """A fresh 24-character lowercase hex identifier."""
    return secrets.token_hex(12)


class RecordStore(ABC):
    """Abstract record store.

    Subclasses implement ``_load`` and ``_commit``; every public
    operation runs under the store lock.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    # ── Backend hooks ───────────────────────────────────────────

    @abstractmethod
    def _load(self) -> dict[str, dict[str, Any]]:
        """Return all documents keyed by id (a private copy)."""

    @abstractmethod
    def _commit(self, docs: dict[str, dict[str, Any]]) -> None:
        """Persist the full document set."""

    # ── Queries ─────────────────────────────────────────────────

    def get(self, record_id: str) -> ProjectRecord | None:
        with self._lock:
            doc = self._load().get(record_id)
        return _to_record(doc) if doc is not None else None

    def find_by_owner(self, owner: str) -> list[ProjectRecord]:
        """All records of *owner*, oldest first."""
        with self._lock:
            docs = self._load()
        records = [_to_record(d) for d in docs.values() if d.get("owner") == owner]
        return sorted(records, key=lambda r: r.created)

    # ── Mutations ───────────────────────────────────────────────

    def create(self, record: ProjectRecord) -> ProjectRecord:
        """Insert *record*, assigning a new id.

        Raises:
            DuplicateNameError: The owner already has a project with this name.
        """
        with self._lock:
            docs = self._load()
            _check_unique(docs, record.owner, record.name)

            record_id = new_record_id()
            while record_id in docs:
                record_id = new_record_id()

            created = record.model_copy(update={"id": record_id})
            docs[record_id] = created.model_dump(mode="json")
            self._commit(docs)

        logger.info("Record created: %s (owner=%s, name=%s)", record_id, record.owner, record.name)
        return created

    def update(self, record: ProjectRecord) -> ProjectRecord:
        """Replace the stored document with *record*.

        Raises:
            StoreError: No record with that id exists.
            DuplicateNameError: Another record of the owner uses the name.
        """
        with self._lock:
            docs = self._load()
            if record.id not in docs:
                raise StoreError(f"Cannot update missing record {record.id}")
            _check_unique(docs, record.owner, record.name, exclude_id=record.id)
            docs[record.id] = record.model_dump(mode="json")
            self._commit(docs)

        logger.debug("Record updated: %s", record.id)
        return record

    def delete(self, record_id: str) -> bool:
        """Remove a record.  Returns False if it did not exist."""
        with self._lock:
            docs = self._load()
            if docs.pop(record_id, None) is None:
                return False
            self._commit(docs)

        logger.info("Record deleted: %s", record_id)
        return True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class MemoryRecordStore(RecordStore):
    """Dict-backed store.  Contents are lost with the process."""

    def __init__(self) -> None:
        super().__init__()
        self._docs: dict[str, dict[str, Any]] = {}

    def _load(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._docs)

    def _commit(self, docs: dict[str, dict[str, Any]]) -> None:
        self._docs = docs


class JsonRecordStore(RecordStore):
    """Store backed by a single JSON document.

    Layout::

        {"schema_version": 1, "projects": {"<id>": {...}, ...}}

    A missing file is an empty store.  A corrupt file is an error —
    the store never starts fresh over existing records.
    """

    def __init__(self, path: Path, fs: FilesystemProvisioner | None = None):
        super().__init__()
        self._path = path
        self._fs = fs or FilesystemProvisioner()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self._path.is_file():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Cannot read record store {self._path}: {e}") from e
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt record store {self._path}: {e}") from e

        projects = data.get("projects") if isinstance(data, dict) else None
        if not isinstance(projects, dict):
            raise StoreError(f"Malformed record store {self._path}: no 'projects' mapping")
        return projects

    def _commit(self, docs: dict[str, dict[str, Any]]) -> None:
        content = json.dumps(
            {"schema_version": STORE_SCHEMA_VERSION, "projects": docs},
            indent=2,
            ensure_ascii=False,
        ) + "\n"

        try:
            self._fs.write_bytes(self._path, content.encode("utf-8"))
        except FilesystemError as e:
            logger.error("Failed to save record store to %s: %s", self._path, e)
            raise StoreError(f"Cannot write record store {self._path}: {e}") from e

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} path={str(self._path)!r}>"


def _check_unique(
    docs: dict[str, dict[str, Any]],
    owner: str,
    name: str,
    exclude_id: str | None = None,
) -> None:
    for record_id, doc in docs.items():
        if record_id == exclude_id:
            continue
        if doc.get("owner") == owner and doc.get("name") == name:
            raise DuplicateNameError(name)


def _to_record(doc: dict[str, Any]) -> ProjectRecord:
    try:
        return ProjectRecord.model_validate(doc)
    except PydanticValidationError as e:
        raise StoreError(f"Malformed project record: {e}") from e
