"""Tests for filesystem operations."""
import errno
import os
from pathlib import Path

import pytest

from tunesort.core.config import SorterConfig
from tunesort.core.errors import FileOperationError
from tunesort.services.file_ops import FileManager, timestamped_path


class TestEnsureDirectoryExists:
    """Tests for directory creation."""

    def test_creates_chain(self, file_manager, tmp_path: Path):
        target = tmp_path / "a" / "b" / "c"

        file_manager.ensure_directory_exists(target)

        assert target.is_dir()

    def test_idempotent(self, file_manager, tmp_path: Path):
        """Test that a second call is a no-op."""
        target = tmp_path / "music"

        file_manager.ensure_directory_exists(target)
        file_manager.ensure_directory_exists(target)

        assert target.is_dir()
        assert [p.name for p in tmp_path.iterdir()].count("music") == 1

    def test_failure_wrapped(self, file_manager, tmp_path: Path):
        """Test that an impossible directory raises FileOperationError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(FileOperationError) as exc_info:
            file_manager.ensure_directory_exists(blocker / "sub")

        assert exc_info.value.context["path"] == str(blocker / "sub")
        assert isinstance(exc_info.value.original, OSError)


class TestScanDirectory:
    """Tests for directory scanning."""

    @pytest.fixture
    def tree(self, tmp_path: Path) -> Path:
        """Create a sample tree with hidden and ignorable entries."""
        root = tmp_path / "library"
        (root / "sub").mkdir(parents=True)
        (root / ".git").mkdir()
        (root / "skip_me").mkdir()

        (root / "a.mp3").write_bytes(b"a")
        (root / "notes.txt").write_text("n")
        (root / ".hidden.mp3").write_bytes(b"h")
        (root / "sub" / "b.flac").write_bytes(b"b")
        (root / ".git" / "c.mp3").write_bytes(b"c")
        (root / "skip_me" / "d.mp3").write_bytes(b"d")
        return root

    @staticmethod
    def names(paths: list[Path], root: Path) -> set[str]:
        return {p.relative_to(root).as_posix() for p in paths}

    def test_default_scan(self, file_manager, tree):
        """Test recursive scan without hidden entries."""
        files = file_manager.scan_directory(tree)

        assert self.names(files, tree) == {"a.mp3", "notes.txt", "sub/b.flac", "skip_me/d.mp3"}
        assert all(p.is_absolute() for p in files)

    def test_include_hidden(self, file_manager, tree):
        files = file_manager.scan_directory(tree, include_hidden=True)

        assert {".hidden.mp3", ".git/c.mp3"} <= self.names(files, tree)

    def test_non_recursive(self, file_manager, tree):
        files = file_manager.scan_directory(tree, recursive=False)

        assert self.names(files, tree) == {"a.mp3", "notes.txt"}

    def test_ignore_prunes_directories(self, file_manager, tree):
        """Test that an ignored directory drops its whole subtree."""
        files = file_manager.scan_directory(tree, ignore_patterns=[r"^skip", r"\.txt$"])

        assert self.names(files, tree) == {"a.mp3", "sub/b.flac"}

    def test_config_defaults(self, tree, tmp_path: Path):
        """Test that scan options fall back to the config."""
        config = SorterConfig(target_root=tmp_path / "out", recursive=False, ignore_patterns=("txt$",))
        manager = FileManager(config.target_root, config)

        files = manager.scan_directory(tree)

        assert self.names(files, tree) == {"a.mp3"}

    def test_symlink_cycle_terminates(self, file_manager, tree):
        """Test that a link back to an ancestor is visited only once."""
        try:
            os.symlink(tree, tree / "sub" / "loop", target_is_directory=True)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")

        files = file_manager.scan_directory(tree)

        assert self.names(files, tree) == {"a.mp3", "notes.txt", "sub/b.flac", "skip_me/d.mp3"}

    def test_missing_directory_created(self, file_manager, tmp_path: Path):
        target = tmp_path / "new"

        assert file_manager.scan_directory(target) == []
        assert target.is_dir()

    def test_file_as_root_fails(self, file_manager, tmp_path: Path):
        path = tmp_path / "file.mp3"
        path.write_bytes(b"x")

        with pytest.raises(FileOperationError):
            file_manager.scan_directory(path)

    def test_invalid_ignore_pattern(self, file_manager, tree):
        with pytest.raises(FileOperationError, match="Invalid ignore pattern"):
            file_manager.scan_directory(tree, ignore_patterns=["("])


class TestMoveCopy:
    """Tests for move and copy."""

    def test_copy(self, file_manager, source_dir, target_dir):
        source = source_dir / "song.mp3"
        source.write_bytes(b"audio")

        result = file_manager.copy_file(source, "by-artist/A/song.mp3")

        assert result == target_dir / "by-artist" / "A" / "song.mp3"
        assert result.read_bytes() == b"audio"
        assert source.exists()
        assert file_manager.counters.copied == 1

    def test_move(self, file_manager, source_dir, target_dir):
        source = source_dir / "song.mp3"
        source.write_bytes(b"audio")

        result = file_manager.move_file(source, "by-genre/Rock/song.mp3")

        assert result.read_bytes() == b"audio"
        assert not source.exists()
        assert file_manager.counters.moved == 1

    def test_explicit_target_root(self, file_manager, source_dir, tmp_path: Path):
        source = source_dir / "song.mp3"
        source.write_bytes(b"audio")
        other_root = tmp_path / "elsewhere"

        result = file_manager.copy_file(source, "x/song.mp3", target_root=other_root)

        assert result == other_root / "x" / "song.mp3"

    def test_collision_keeps_both(self, file_manager, source_dir, target_dir):
        """Test that an existing destination is never overwritten."""
        first = source_dir / "one" / "song.mp3"
        second = source_dir / "two" / "song.mp3"
        for path, data in ((first, b"first"), (second, b"second")):
            path.parent.mkdir()
            path.write_bytes(data)

        path1 = file_manager.copy_file(first, "by-artist/A/song.mp3")
        path2 = file_manager.move_file(second, "by-artist/A/song.mp3")

        assert path1 != path2
        assert path1.read_bytes() == b"first"
        assert path2.read_bytes() == b"second"
        assert path2.parent == path1.parent
        assert path2.name.startswith("song_")
        assert path2.suffix == ".mp3"

    def test_missing_source(self, file_manager, source_dir, target_dir):
        """Test that a missing source fails before touching the target."""
        with pytest.raises(FileOperationError) as exc_info:
            file_manager.copy_file(source_dir / "ghost.mp3", "by-artist/A/ghost.mp3")

        error = exc_info.value
        assert error.context["source_path"] == str(source_dir / "ghost.mp3")
        assert error.context["target_path"] == str(target_dir / "by-artist" / "A" / "ghost.mp3")
        assert isinstance(error.original, FileNotFoundError)
        assert not (target_dir / "by-artist").exists()
        assert file_manager.counters.failed == 1

    def test_failed_copy_removes_placeholder(self, file_manager, source_dir, target_dir, monkeypatch):
        """Test that a failed copy leaves no empty file behind."""
        source = source_dir / "song.mp3"
        source.write_bytes(b"audio")

        def broken_copy(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("tunesort.services.file_ops.shutil.copy2", broken_copy)

        with pytest.raises(FileOperationError):
            file_manager.copy_file(source, "a/song.mp3")

        assert not (target_dir / "a" / "song.mp3").exists()
        assert file_manager.counters.failed == 1

    def test_move_across_devices(self, file_manager, source_dir, target_dir, monkeypatch):
        """Test that a cross-device rename falls back to copy and delete."""
        source = source_dir / "song.mp3"
        source.write_bytes(b"audio")

        def cross_device(src, dst):
            raise OSError(errno.EXDEV, "Invalid cross-device link")

        monkeypatch.setattr("tunesort.services.file_ops.os.replace", cross_device)

        result = file_manager.move_file(source, "by-genre/Rock/song.mp3")

        assert result == target_dir / "by-genre" / "Rock" / "song.mp3"
        assert result.read_bytes() == b"audio"
        assert not source.exists()
        assert file_manager.counters.moved == 1

    def test_move_other_os_error_not_retried(self, file_manager, source_dir, target_dir, monkeypatch):
        source = source_dir / "song.mp3"
        source.write_bytes(b"audio")

        def denied(src, dst):
            raise PermissionError(errno.EACCES, "Permission denied")

        monkeypatch.setattr("tunesort.services.file_ops.os.replace", denied)

        with pytest.raises(FileOperationError):
            file_manager.move_file(source, "a/song.mp3")

        assert source.exists()
        assert not (target_dir / "a" / "song.mp3").exists()
        assert file_manager.counters.failed == 1

    def test_move_in_place(self, file_manager, target_dir):
        """Test that moving a file onto itself is a no-op."""
        path = target_dir / "by-artist" / "A" / "song.mp3"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"audio")

        result = file_manager.move_file(path, "by-artist/A/song.mp3")

        assert result == path
        assert path.read_bytes() == b"audio"
        assert list(path.parent.iterdir()) == [path]

    def test_reset_counters(self, file_manager, source_dir):
        source = source_dir / "song.mp3"
        source.write_bytes(b"audio")
        file_manager.copy_file(source, "song.mp3")

        file_manager.reset_counters()

        assert file_manager.counters.snapshot() == {"moved": 0, "copied": 0, "failed": 0}

    def test_file_exists(self, file_manager, source_dir):
        path = source_dir / "song.mp3"
        assert not file_manager.file_exists(path)
        path.write_bytes(b"x")
        assert file_manager.file_exists(path)
        assert not file_manager.file_exists(source_dir)


class TestTimestampedPath:
    """Tests for collision names."""

    def test_format(self, tmp_path: Path):
        result = timestamped_path(tmp_path / "song.mp3")

        stem, _, stamp = result.stem.rpartition("_")
        assert stem == "song"
        assert stamp.isdigit()
        assert result.suffix == ".mp3"

    def test_differs_from_previous(self, tmp_path: Path):
        target = tmp_path / "song.mp3"
        first = timestamped_path(target)

        assert timestamped_path(target, previous=first) != first
