"""Shared fixtures for tunesort tests."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from tunesort.core.models import MediaFile, MediaMetadata
from tunesort.services.file_ops import FileManager


def make_media_file(path: Path, content: Optional[bytes] = b"ID3 test audio", **tags) -> MediaFile:
    """Write a file (unless content is None) and wrap it in a MediaFile."""
    path = Path(path)
    if content is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return MediaFile(
        path=path,
        filename=path.name,
        extension=path.suffix.lower(),
        size=len(content or b""),
        metadata=MediaMetadata(**tags),
    )


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    return tmp_path / "target"


@pytest.fixture
def file_manager(target_dir: Path) -> FileManager:
    return FileManager(target_dir)


@pytest.fixture
def make_file():
    """Factory fixture for MediaFile records backed by real files."""
    return make_media_file
