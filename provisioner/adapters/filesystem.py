"""
Filesystem adapter — directory and file operations for provisioning.

Every operation is idempotent where that makes sense (creating a
directory that exists, removing one that does not) and every
``OSError`` is re-raised as ``FilesystemError`` so the workflow sees
a single failure type for the filesystem.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from provisioner.core.errors import FilesystemError

logger = logging.getLogger(__name__)


class FilesystemProvisioner:
    """Create, copy and remove project directory trees."""

    @property
    def name(self) -> str:
        return "filesystem"

    def ensure_dir(self, target: Path) -> bool:
        """Create *target* (and parents) unless it exists.

        Returns:
            True if the directory was created, False if it was already there.
        """
        existed = target.is_dir()
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create directory {target}: {e}") from e
        if not existed:
            logger.debug("Directory created: %s", target)
        return not existed

    def copy_tree(self, source: Path, target: Path) -> int:
        """Copy the contents of *source* into *target*, overwriting entries.

        Returns:
            Number of files copied.
        """
        if not source.is_dir():
            raise FilesystemError(f"Not a directory: {source}")
        try:
            shutil.copytree(source, target, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            raise FilesystemError(f"Cannot copy {source} → {target}: {e}") from e
        count = sum(1 for p in source.rglob("*") if p.is_file())
        logger.debug("Copied %d files %s → %s", count, source, target)
        return count

    def remove_tree(self, target: Path) -> None:
        """Recursively remove *target*.  Absent targets are fine."""
        if not target.exists():
            logger.debug("Nothing to remove at %s", target)
            return
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        except OSError as e:
            raise FilesystemError(f"Cannot remove {target}: {e}") from e
        logger.debug("Removed %s", target)

    def read_bytes(self, path: Path) -> bytes:
        if not path.is_file():
            raise FilesystemError(f"File not found: {path}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise FilesystemError(f"Cannot read {path}: {e}") from e

    def write_bytes(self, path: Path, content: bytes) -> None:
        """Write *content* to *path* atomically (temp file, then rename)."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=f".{path.name}_",
                suffix=".tmp",
            )
            tmp = Path(tmp_path)
            try:
                with open(fd, "wb") as f:
                    f.write(content)
                tmp.replace(path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise FilesystemError(f"Cannot write {path}: {e}") from e
        logger.debug("Written %d bytes to %s", len(content), path)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
