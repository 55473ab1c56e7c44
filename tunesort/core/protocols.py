"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

from .models import MediaMetadata, ProgressSnapshot


ProgressCallback = Callable[[ProgressSnapshot], None]


class MetadataExtractor(Protocol):
    """Interface for reading tags from an audio file.

    Implementations:
    - MutagenMetadataExtractor: reads embedded tags with mutagen
    """

    @abstractmethod
    def extract(self, path: Path) -> MediaMetadata:
        """Read tags from a file.

        Raises:
            MetadataExtractionError: The file could not be parsed.
        """
        ...


class FileOperations(Protocol):
    """Interface for the filesystem primitives used by the sorting engine."""

    @abstractmethod
    def ensure_directory_exists(self, directory: Path) -> None:
        """Create a directory chain if absent."""
        ...

    @abstractmethod
    def scan_directory(
        self,
        directory: Path,
        recursive: Optional[bool] = None,
        ignore_patterns: Optional[Sequence[str]] = None,
        include_hidden: Optional[bool] = None,
    ) -> list[Path]:
        """List files under a directory."""
        ...

    @abstractmethod
    def move_file(self, source: Path, dest_relative: str, target_root: Optional[Path] = None) -> Path:
        """Move a file below the target root. Returns the final path."""
        ...

    @abstractmethod
    def copy_file(self, source: Path, dest_relative: str, target_root: Optional[Path] = None) -> Path:
        """Copy a file below the target root. Returns the final path."""
        ...

    @abstractmethod
    def reset_counters(self) -> None:
        """Zero the cumulative operation counters."""
        ...


class ProgressReporter(Protocol):
    """Interface for terminal progress reporting."""

    @abstractmethod
    def __call__(self, snapshot: ProgressSnapshot) -> None:
        """Receive a progress update."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Stop any live display."""
        ...
