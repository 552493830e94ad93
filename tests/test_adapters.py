"""
Tests for the filesystem adapter.
"""

from pathlib import Path

import pytest

from provisioner.adapters.filesystem import FilesystemProvisioner
from provisioner.core.errors import FilesystemError


@pytest.fixture
def fs() -> FilesystemProvisioner:
    return FilesystemProvisioner()


class TestFilesystemProvisioner:
    def test_name(self, fs: FilesystemProvisioner):
        assert fs.name == "filesystem"
        assert "filesystem" in repr(fs)

    def test_ensure_dir_reports_creation(self, fs: FilesystemProvisioner, tmp_path: Path):
        target = tmp_path / "a" / "b"
        assert fs.ensure_dir(target) is True
        assert target.is_dir()
        assert fs.ensure_dir(target) is False

    def test_ensure_dir_over_file(self, fs: FilesystemProvisioner, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(FilesystemError):
            fs.ensure_dir(blocker / "child")

    def test_copy_tree_merges_into_existing(self, fs: FilesystemProvisioner, tmp_path: Path):
        source = tmp_path / "src"
        (source / "css").mkdir(parents=True)
        (source / "index.html").write_text("<html/>")
        (source / "css" / "main.css").write_text("body {}")
        target = tmp_path / "dst"
        target.mkdir()
        (target / "keep.txt").write_text("keep")

        assert fs.copy_tree(source, target) == 2
        assert (target / "css" / "main.css").read_text() == "body {}"
        assert (target / "keep.txt").is_file()

    def test_copy_tree_missing_source(self, fs: FilesystemProvisioner, tmp_path: Path):
        with pytest.raises(FilesystemError, match="Not a directory"):
            fs.copy_tree(tmp_path / "nope", tmp_path / "dst")

    def test_remove_tree(self, fs: FilesystemProvisioner, tmp_path: Path):
        target = tmp_path / "proj"
        (target / "deep").mkdir(parents=True)
        (target / "deep" / "f.txt").write_text("x")
        fs.remove_tree(target)
        assert not target.exists()

    def test_remove_tree_absent_is_fine(self, fs: FilesystemProvisioner, tmp_path: Path):
        fs.remove_tree(tmp_path / "never-existed")

    def test_remove_single_file(self, fs: FilesystemProvisioner, tmp_path: Path):
        target = tmp_path / "f.txt"
        target.write_text("x")
        fs.remove_tree(target)
        assert not target.exists()

    def test_read_missing(self, fs: FilesystemProvisioner, tmp_path: Path):
        with pytest.raises(FilesystemError, match="File not found"):
            fs.read_bytes(tmp_path / "missing.json")

    def test_write_then_read(self, fs: FilesystemProvisioner, tmp_path: Path):
        path = tmp_path / "nested" / "state.json"
        fs.write_bytes(path, b'{"a": 1}')
        assert fs.read_bytes(path) == b'{"a": 1}'
        assert list(path.parent.glob("*.tmp")) == []

    def test_write_overwrites(self, fs: FilesystemProvisioner, tmp_path: Path):
        path = tmp_path / "state.json"
        fs.write_bytes(path, b"old")
        fs.write_bytes(path, b"new")
        assert path.read_bytes() == b"new"
