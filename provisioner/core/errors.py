"""
Provisioning errors — one exception type per failure kind.

Every failure the workflow can report is a ``ProvisioningError``.
The ``kind`` attribute identifies the failure internally (tests,
audit ledger); ``public_kind`` is what front ends expose.  NotFound
and Forbidden share a public kind and message so a caller cannot
discover projects owned by someone else.
"""

from __future__ import annotations

NOT_FOUND_MESSAGE = "Project not found"


class ProvisioningError(Exception):
    """Base class for every error raised by the provisioning workflow."""

    kind = "error"

    @property
    def public_kind(self) -> str:
        return self.kind


class ValidationError(ProvisioningError):
    """Request body is malformed or a required field is missing."""

    kind = "validation"


class DuplicateNameError(ProvisioningError):
    """Another project of the same owner already uses the name."""

    kind = "duplicate_name"

    def __init__(self, name: str):
        super().__init__(f"Duplicated project name: {name}")
        self.name = name


class NotFoundError(ProvisioningError):
    """No project with the requested identifier exists."""

    kind = "not_found"

    def __init__(self, message: str = NOT_FOUND_MESSAGE):
        super().__init__(message)


class ForbiddenError(ProvisioningError):
    """The project exists but belongs to another owner."""

    kind = "forbidden"

    def __init__(self, message: str = NOT_FOUND_MESSAGE):
        super().__init__(message)

    @property
    def public_kind(self) -> str:
        return NotFoundError.kind


class StoreError(ProvisioningError):
    """The record store could not read or persist a record."""

    kind = "store"


class FilesystemError(ProvisioningError):
    """A directory or file operation failed."""

    kind = "filesystem"


class ManifestParseError(ProvisioningError):
    """The manifest template could not be parsed or lacks a required element."""

    kind = "manifest"


class StepTimeoutError(ProvisioningError):
    """A provisioning step did not finish within the configured timeout."""

    kind = "timeout"

    def __init__(self, step: str, timeout: float):
        super().__init__(f"Step '{step}' timed out after {timeout:g}s")
        self.step = step
        self.timeout = timeout
        # True when the timed-out action went on to succeed
        self.completed_late = False
