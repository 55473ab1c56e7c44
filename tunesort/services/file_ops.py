"""File operations service: scanning, directory creation, move and copy."""
from __future__ import annotations

import errno
import logging
import os
import re
import shutil
import time
from pathlib import Path
from typing import Optional, Sequence

from ..core.config import SorterConfig
from ..core.errors import FileOperationError
from ..core.models import OperationCounters


logger = logging.getLogger(__name__)

MAX_RESERVE_ATTEMPTS = 1000


def timestamped_path(target: Path, previous: Optional[Path] = None) -> Path:
    """Insert a nanosecond timestamp before the extension.

    ``song.mp3`` becomes ``song_<ns>.mp3``. If the clock has not advanced
    since ``previous`` was generated, a counter is appended as well.
    """
    candidate = target.with_name(f"{target.stem}_{time.time_ns()}{target.suffix}")
    counter = 1
    while candidate == previous:
        candidate = target.with_name(f"{target.stem}_{time.time_ns()}_{counter}{target.suffix}")
        counter += 1
    return candidate


class FileManager:
    """Idempotent, collision-safe filesystem primitives.

    Destinations are never overwritten: the final name is reserved with an
    exclusive create before any data is written, so two operations racing
    for the same path (including siblings in one batch) both succeed under
    distinct names.
    """

    def __init__(self, target_root: Path, config: Optional[SorterConfig] = None):
        """Initialize file manager.

        Args:
            target_root: Default root for relative destinations.
            config: Optional configuration supplying scan defaults.
        """
        self._target_root = Path(target_root)
        self._config = config
        self._counters = OperationCounters()

    @property
    def target_root(self) -> Path:
        return self._target_root

    @property
    def counters(self) -> OperationCounters:
        return self._counters

    def reset_counters(self) -> None:
        self._counters.reset()

    # --- Directories ---

    def ensure_directory_exists(self, directory: Path) -> None:
        """Create a directory chain if absent. Safe to call repeatedly.

        Raises:
            FileOperationError: The directory cannot be created.
        """
        directory = Path(directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(
                f"Cannot create directory {directory}",
                context={"path": str(directory)},
                original=e,
            ) from e

    def file_exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def scan_directory(
        self,
        directory: Path,
        recursive: Optional[bool] = None,
        ignore_patterns: Optional[Sequence[str]] = None,
        include_hidden: Optional[bool] = None,
    ) -> list[Path]:
        """List absolute file paths under a directory.

        Unset options fall back to the config, then to recursive scanning
        with hidden entries excluded and no ignore patterns. An entry whose
        name matches an ignore pattern is skipped; for a directory that
        prunes its whole subtree. Directories reached through symlinks are
        visited at most once, so symlink cycles terminate.

        Args:
            directory: Root to scan. Created if it does not exist.
            recursive: Descend into subdirectories.
            ignore_patterns: Regular expressions searched in entry names.
            include_hidden: Include dot-prefixed entries.

        Returns:
            Sorted list of absolute file paths.

        Raises:
            FileOperationError: The root cannot be created or read.
        """
        config = self._config
        if recursive is None:
            recursive = config.recursive if config else True
        if include_hidden is None:
            include_hidden = config.include_hidden if config else False
        if ignore_patterns is None:
            ignores = config.compiled_ignores if config else ()
        else:
            try:
                ignores = tuple(re.compile(p) for p in ignore_patterns)
            except re.error as e:
                raise FileOperationError(
                    f"Invalid ignore pattern: {e.pattern}",
                    context={"path": str(directory)},
                    original=e,
                ) from e

        root = Path(directory).absolute()
        self.ensure_directory_exists(root)

        try:
            root_stat = root.stat()
            entries = list(os.scandir(root))
        except OSError as e:
            raise FileOperationError(
                f"Cannot read directory {root}",
                context={"path": str(root)},
                original=e,
            ) from e

        visited = {(root_stat.st_dev, root_stat.st_ino)}
        files: list[Path] = []
        self._scan_entries(entries, recursive, ignores, include_hidden, visited, files)
        logger.debug(f"Scanned {root}: {len(files)} files")
        return sorted(files)

    def _scan_entries(
        self,
        entries: list[os.DirEntry],
        recursive: bool,
        ignores: tuple[re.Pattern, ...],
        include_hidden: bool,
        visited: set[tuple[int, int]],
        files: list[Path],
    ) -> None:
        for entry in entries:
            name = entry.name
            if not include_hidden and name.startswith("."):
                continue
            if any(p.search(name) for p in ignores):
                continue

            try:
                if entry.is_file():
                    files.append(Path(entry.path))
                elif entry.is_dir() and recursive:
                    stat = entry.stat()
                    key = (stat.st_dev, stat.st_ino)
                    if key in visited:
                        logger.debug(f"Skipping already visited directory: {entry.path}")
                        continue
                    visited.add(key)
                    children = list(os.scandir(entry.path))
                    self._scan_entries(children, recursive, ignores, include_hidden, visited, files)
            except OSError as e:
                logger.warning(f"Skipping unreadable entry {entry.path}: {e}")

    # --- Move / copy ---

    def move_file(self, source: Path, dest_relative: str, target_root: Optional[Path] = None) -> Path:
        """Move a file to ``target_root / dest_relative``.

        Returns:
            Final path of the file (timestamp-suffixed on collision).

        Raises:
            FileOperationError: Source missing or the move failed.
        """
        return self._transfer(Path(source), dest_relative, target_root, copy=False)

    def copy_file(self, source: Path, dest_relative: str, target_root: Optional[Path] = None) -> Path:
        """Copy a file to ``target_root / dest_relative``, preserving metadata.

        Returns:
            Final path of the copy (timestamp-suffixed on collision).

        Raises:
            FileOperationError: Source missing or the copy failed.
        """
        return self._transfer(Path(source), dest_relative, target_root, copy=True)

    def _transfer(
        self,
        source: Path,
        dest_relative: str,
        target_root: Optional[Path],
        copy: bool,
    ) -> Path:
        action = "copy" if copy else "move"
        root = Path(target_root) if target_root is not None else self._target_root
        target = root / dest_relative
        final = target
        reserved = False

        try:
            if not source.is_file():
                raise FileNotFoundError(errno.ENOENT, "Source file does not exist", str(source))

            if not copy and target.exists() and os.path.samefile(source, target):
                logger.debug(f"Already in place: {target}")
                return target

            self.ensure_directory_exists(target.parent)
            final = self.reserve_path(target)
            reserved = True

            if copy:
                shutil.copy2(source, final)
            else:
                self._move(source, final)
        except Exception as e:
            if reserved:
                final.unlink(missing_ok=True)
            self._counters.increment("failed")
            logger.error(f"Error during {action} of {source} -> {final}: {e}")
            raise FileOperationError(
                f"Failed to {action} {source.name}",
                context={"source_path": str(source), "target_path": str(final)},
                original=e,
            ) from e

        self._counters.increment("copied" if copy else "moved")
        logger.debug(f"{'Copied' if copy else 'Moved'}: {source.name} -> {final}")
        return final

    @staticmethod
    def _move(source: Path, target: Path) -> None:
        """Move onto a reserved placeholder, across devices if needed."""
        try:
            os.replace(source, target)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise
            shutil.copy2(source, target)
            source.unlink()

    def reserve_path(self, target: Path) -> Path:
        """Atomically claim ``target`` or a timestamp-suffixed variant.

        An empty placeholder file is created with O_EXCL; the caller
        replaces it with the real content.
        """
        candidate = target
        for _ in range(MAX_RESERVE_ATTEMPTS):
            try:
                fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                candidate = timestamped_path(target, previous=candidate)
                continue
            os.close(fd)
            if candidate != target:
                logger.info(f"Destination exists, using {candidate.name}")
            return candidate

        raise FileExistsError(errno.EEXIST, "No free destination name", str(target))
