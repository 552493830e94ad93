"""
Audit ledger — append-only provisioning log.

Every create, update and delete writes an entry to an NDJSON
(newline-delimited JSON) file: what was attempted, which steps ran,
which were rolled back, and why it failed.

The ledger is append-only: entries are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    operation_type: str = ""       # create, update, delete

    # What was touched
    project_id: str = ""
    owner: str = ""

    # Results
    status: str = ""               # ok, failed
    steps_completed: list[str] = Field(default_factory=list)
    steps_compensated: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    # Errors (if any)
    error_kind: str = ""
    errors: list[str] = Field(default_factory=list)

    # Extensible context
    context: dict[str, Any] = Field(default_factory=dict)


class AuditWriter:
    """Append-only audit ledger writer.

    Each call to write() appends a single JSON line to the ledger file.
    The file is created if it doesn't exist.  A writer without a path
    discards entries.
    """

    def __init__(self, path: Path | None = None):
        self._path = path

    @property
    def path(self) -> Path | None:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append an audit entry to the ledger.  Never raises."""
        if self._path is None:
            return

        data = entry.model_dump(mode="json")
        line = json.dumps(data, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s/%s", entry.operation_type, entry.operation_id)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def read_all(self) -> list[AuditEntry]:
        """Read all entries from the ledger, oldest first."""
        if self._path is None or not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(AuditEntry.model_validate(json.loads(line)))
                    except Exception as e:
                        logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read audit ledger: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """Read the most recent N entries."""
        return self.read_all()[-n:]
