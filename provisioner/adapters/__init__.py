"""Adapters — bindings to the filesystem.

Public re-exports for convenient access.
"""

from provisioner.adapters.filesystem import FilesystemProvisioner

__all__ = [
    "FilesystemProvisioner",
]
