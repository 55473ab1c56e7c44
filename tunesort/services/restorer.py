"""Undo a sort: move sorted files back into a flat source directory."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ..core.errors import FileOperationError, describe_error
from .file_ops import FileManager


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RestoreStats:
    """Counts for a restore run."""
    restored: int = 0
    errors: int = 0
    removed_dirs: int = 0


def remove_empty_dirs(root: Path) -> int:
    """Delete empty directories below root, deepest first. Root is kept."""
    removed = 0
    for dirpath, _, _ in os.walk(root, topdown=False):
        path = Path(dirpath)
        if path == root:
            continue
        try:
            path.rmdir()
            removed += 1
        except OSError:
            # Not empty
            continue
    return removed


def restore_files(sorted_root: Path, source_root: Path, file_manager: FileManager) -> RestoreStats:
    """Move every file under ``sorted_root`` back into ``source_root``.

    Files land directly in ``source_root`` under their own name; name
    clashes are resolved by the file manager's timestamp suffix. Failures
    are logged and counted, and emptied directories are pruned afterwards.

    Raises:
        FileOperationError: Either root cannot be created or read.
    """
    sorted_root = Path(sorted_root)
    source_root = Path(source_root)
    stats = RestoreStats()

    file_manager.ensure_directory_exists(source_root)
    files = file_manager.scan_directory(
        sorted_root, recursive=True, ignore_patterns=(), include_hidden=True
    )
    logger.info(f"Found {len(files)} sorted files")

    for path in files:
        try:
            file_manager.move_file(path, path.name, target_root=source_root)
        except FileOperationError as e:
            logger.error(f"Error restoring {path.name}: {describe_error(e)}")
            stats.errors += 1
            continue
        stats.restored += 1

    stats.removed_dirs = remove_empty_dirs(sorted_root)
    logger.info(f"Restore complete: {stats.restored} restored, {stats.errors} errors")
    return stats
