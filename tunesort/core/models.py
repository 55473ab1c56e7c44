"""Domain models for a sorting run."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class EngineState(Enum):
    """Lifecycle of a sorting engine."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class MediaMetadata:
    """Semantic tags of a media file. Every field is optional."""
    title: Optional[str] = None
    artist: Optional[str] = None
    album_artist: Optional[str] = None
    album: Optional[str] = None
    genre: Optional[str] = None
    year: Optional[int] = None
    track_number: Optional[int] = None
    disc_number: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def merged(self, fallback: "MediaMetadata") -> "MediaMetadata":
        """Fill absent fields from a fallback record.

        Fields already present on self always win.
        """
        updates = {
            f.name: getattr(fallback, f.name)
            for f in fields(self)
            if getattr(self, f.name) is None and getattr(fallback, f.name) is not None
        }
        return replace(self, **updates) if updates else self


@dataclass(slots=True)
class MediaFile:
    """A file to be sorted.

    Identity fields are fixed at construction; ``metadata`` may be
    replaced by a higher layer (e.g. filename-derived fallback).
    """
    path: Path
    filename: str
    extension: str
    size: int = 0
    last_modified: Optional[datetime] = None
    metadata: MediaMetadata = field(default_factory=MediaMetadata)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    @classmethod
    def from_path(cls, path: Path, metadata: Optional[MediaMetadata] = None) -> "MediaFile":
        """Build a record from a file on disk."""
        path = Path(path).absolute()
        stat = path.stat()
        return cls(
            path=path,
            filename=path.name,
            extension=path.suffix.lower(),
            size=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime),
            metadata=metadata or MediaMetadata(),
        )

    @property
    def stem(self) -> str:
        if self.extension and self.filename.lower().endswith(self.extension):
            return self.filename[: -len(self.extension)]
        return Path(self.filename).stem

    def with_metadata(self, metadata: MediaMetadata) -> "MediaFile":
        return replace(self, metadata=metadata)


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Immutable view of a run's progress, handed to observers."""
    total: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    current_file: Optional[str] = None

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0
        return 100.0 * self.processed / self.total


@dataclass(frozen=True, slots=True)
class OperationOutcome:
    """Result of one queued file operation."""
    key: Any
    success: bool
    target_path: Optional[Path] = None
    error: Optional[BaseException] = None


@dataclass(slots=True)
class SortProgress:
    """Mutable progress of the current run. Owned by the sorting engine."""
    total: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    current_file: Optional[str] = None

    def reset(self, total: int) -> None:
        self.total = total
        self.processed = 0
        self.succeeded = 0
        self.failed = 0
        self.current_file = None

    def record(self, success: bool, current_file: Optional[str] = None) -> None:
        """Record one finished file."""
        self.processed += 1
        if success:
            self.succeeded += 1
        else:
            self.failed += 1
        self.current_file = current_file

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            total=self.total,
            processed=self.processed,
            succeeded=self.succeeded,
            failed=self.failed,
            current_file=self.current_file,
        )


class OperationCounters:
    """Cumulative move/copy/failure counts of the filesystem layer.

    Increments may come from queue worker threads, so they are locked.
    """

    __slots__ = ("moved", "copied", "failed", "_lock")

    def __init__(self) -> None:
        self.moved = 0
        self.copied = 0
        self.failed = 0
        self._lock = threading.Lock()

    def increment(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    def reset(self) -> None:
        with self._lock:
            self.moved = 0
            self.copied = 0
            self.failed = 0

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {"moved": self.moved, "copied": self.copied, "failed": self.failed}

    def __repr__(self) -> str:
        return f"OperationCounters(moved={self.moved}, copied={self.copied}, failed={self.failed})"


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Authoritative result of a single sort run."""
    processed: int
    succeeded: int
    failed: int
    state: EngineState = EngineState.COMPLETED
    elapsed_seconds: float = 0.0

    def summary(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }
