"""Sorting engine - computes destinations and dispatches file operations."""
from __future__ import annotations

import logging
import time
from functools import partial
from pathlib import PurePosixPath
from typing import Iterable, Optional

from ..core.config import SorterConfig, SortPattern, SortSpecification
from ..core.errors import SorterError, describe_error
from ..core.models import (
    EngineState,
    MediaFile,
    OperationOutcome,
    ProgressSnapshot,
    RunSummary,
    SortProgress,
)
from ..core.protocols import FileOperations, ProgressCallback
from ..path_utils import sanitize, sanitize_relative_path
from ..template_utils import TemplateValue, format_template
from .operation_queue import OperationQueue


logger = logging.getLogger(__name__)

PATTERN_FOLDERS = {
    SortPattern.ARTIST: "by-artist",
    SortPattern.ALBUM_ARTIST: "by-album-artist",
    SortPattern.ALBUM: "by-album",
    SortPattern.GENRE: "by-genre",
    SortPattern.YEAR: "by-year",
    SortPattern.CUSTOM: "custom",
}

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
UNKNOWN_GENRE = "Unknown Genre"
UNKNOWN_YEAR = "Unknown Year"


def template_values(file: MediaFile) -> dict[str, TemplateValue]:
    """Values available to custom templates.

    ``albumArtist`` falls back to the artist and ``title`` to the filename
    stem; ``track`` is zero-padded to two digits.
    """
    meta = file.metadata
    return {
        "artist": meta.artist,
        "albumArtist": meta.album_artist or meta.artist,
        "album": meta.album,
        "title": meta.title or file.stem,
        "genre": meta.genre,
        "year": meta.year,
        "track": f"{meta.track_number:02d}" if meta.track_number is not None else None,
        "disc": meta.disc_number,
        "extension": file.extension.lstrip("."),
        "filename": file.stem,
    }


def compute_destination(file: MediaFile, spec: SortSpecification) -> str:
    """Relative destination path (``/``-separated) for one file.

    Raises:
        FileOperationError: The specification is invalid.
        ValueError: YEAR pattern with a non-numeric year.
    """
    meta = file.metadata
    basename = file.path.name
    folder = PATTERN_FOLDERS[spec.pattern]

    match spec.pattern:
        case SortPattern.ARTIST:
            parts = [sanitize(meta.artist or UNKNOWN_ARTIST)]
        case SortPattern.ALBUM_ARTIST:
            parts = [
                sanitize(meta.album_artist or meta.artist or UNKNOWN_ARTIST),
                sanitize(meta.album or UNKNOWN_ALBUM),
            ]
        case SortPattern.ALBUM:
            parts = [
                sanitize(meta.artist or UNKNOWN_ARTIST),
                sanitize(meta.album or UNKNOWN_ALBUM),
            ]
        case SortPattern.GENRE:
            parts = [sanitize(meta.genre or UNKNOWN_GENRE)]
        case SortPattern.YEAR:
            # int() rejects non-numeric years, so no sanitizing is needed
            parts = [str(int(meta.year)) if meta.year is not None else UNKNOWN_YEAR]
        case SortPattern.CUSTOM:
            spec.validate()
            formatted = format_template(spec.template or "", template_values(file))
            parts = [sanitize_relative_path(formatted)]

    return str(PurePosixPath(folder, *parts, basename))


class MusicSorter:
    """Reorganizes media files into a tree chosen by a sort specification.

    State machine: IDLE -> RUNNING -> COMPLETED | FAILED. A single file's
    failure is logged and counted but never aborts the run; only an invalid
    specification or an engine-level exception moves the run to FAILED.

    One instance must not be shared by concurrent runs: progress and the
    file-operation counters are reset at the start of every run.
    """

    def __init__(
        self,
        file_ops: FileOperations,
        config: Optional[SorterConfig] = None,
        queue: Optional[OperationQueue] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize the engine.

        Args:
            file_ops: Filesystem primitives to dispatch to.
            config: Supplies the batch size and worker count for the
                default queue.
            queue: Operation queue; built from config if not given. A queue
                built here is shut down by close().
            progress_callback: Receives a ProgressSnapshot after every file.
        """
        self._file_ops = file_ops
        self._config = config
        self._owns_queue = queue is None
        if queue is None:
            queue = OperationQueue(
                batch_size=config.batch_size if config else 50,
                max_workers=config.max_workers if config else None,
            )
        self._queue = queue
        self._callback = progress_callback
        self._progress = SortProgress()
        self._state = EngineState.IDLE

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def progress(self) -> ProgressSnapshot:
        return self._progress.snapshot()

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        self._callback = callback

    def compute_destination(self, file: MediaFile, spec: SortSpecification) -> str:
        return compute_destination(file, spec)

    def preview(
        self,
        files: Iterable[MediaFile],
        spec: SortSpecification,
    ) -> list[tuple[MediaFile, str]]:
        """Plan a run without touching the filesystem.

        Raises:
            FileOperationError: The specification is invalid.
        """
        spec.validate()
        return [(file, compute_destination(file, spec)) for file in files]

    def sort_files(self, files: Iterable[MediaFile], spec: SortSpecification) -> RunSummary:
        """Sort files into the target tree.

        Args:
            files: Records to sort, processed in input order.
            spec: Pattern, template and copy/move mode.

        Returns:
            Run summary with processed/succeeded/failed counts.

        Raises:
            FileOperationError: The specification is invalid; no file has
                been touched.
        """
        files = list(files)
        start = time.monotonic()

        self._progress.reset(len(files))
        self._file_ops.reset_counters()
        self._state = EngineState.RUNNING

        try:
            spec.validate()
        except SorterError as e:
            self._state = EngineState.FAILED
            logger.error(f"Invalid sort specification: {describe_error(e)}")
            raise

        mode = "copy" if spec.copy_mode else "move"
        logger.info(f"Sorting {len(files)} files by {spec.pattern.value} ({mode})")
        operation = self._file_ops.copy_file if spec.copy_mode else self._file_ops.move_file

        try:
            for file in files:
                try:
                    relative = compute_destination(file, spec)
                except Exception as e:
                    logger.error(f"Cannot compute destination for {file.path}: {describe_error(e)}")
                    self._record(file, success=False)
                    continue

                outcomes = self._queue.queue_operation(partial(operation, file.path, relative), key=file)
                self._record_outcomes(outcomes)

            self._record_outcomes(self._queue.flush_queue())
        except Exception:
            self._state = EngineState.FAILED
            # Queued work still gets its single attempt
            self._queue.flush_queue()
            logger.exception("Sort run aborted")
            raise

        self._state = EngineState.COMPLETED
        summary = RunSummary(
            processed=self._progress.processed,
            succeeded=self._progress.succeeded,
            failed=self._progress.failed,
            state=self._state,
            elapsed_seconds=time.monotonic() - start,
        )
        logger.info(
            f"Sort complete: {summary.processed} processed, "
            f"{summary.succeeded} succeeded, {summary.failed} failed"
        )
        return summary

    def close(self) -> None:
        """Release the worker threads of a queue this engine created."""
        if self._owns_queue:
            self._queue.close()

    def __enter__(self) -> "MusicSorter":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _record_outcomes(self, outcomes: list[OperationOutcome]) -> None:
        for outcome in outcomes:
            if not outcome.success:
                logger.error(f"Failed to sort {outcome.key.path}: {describe_error(outcome.error)}")
            self._record(outcome.key, outcome.success)

    def _record(self, file: MediaFile, success: bool) -> None:
        self._progress.record(success, current_file=file.filename)
        if self._callback is not None:
            self._callback(self._progress.snapshot())
