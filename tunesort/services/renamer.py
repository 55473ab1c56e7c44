"""In-place renaming of files from a naming template."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..core.errors import describe_error
from ..core.models import MediaFile
from ..path_utils import sanitize
from ..template_utils import TemplateValue, format_template, template_placeholders


logger = logging.getLogger(__name__)

DEFAULT_RENAME_PATTERN = "{artist} - {title}"


@dataclass(slots=True)
class RenameStats:
    """Counts for a rename run."""
    renamed: int = 0
    skipped: int = 0
    errors: int = 0

    def summary(self) -> dict[str, int]:
        return {"renamed": self.renamed, "skipped": self.skipped, "errors": self.errors}


def rename_values(file: MediaFile) -> dict[str, TemplateValue]:
    meta = file.metadata
    return {
        "artist": meta.artist or "Unknown Artist",
        "albumArtist": meta.album_artist or meta.artist or "Unknown Artist",
        "album": meta.album or "Unknown Album",
        "title": meta.title or file.stem,
        "genre": meta.genre or "Unknown Genre",
        "year": str(meta.year) if meta.year is not None else "Unknown Year",
        "track": f"{meta.track_number:02d}" if meta.track_number is not None else "00",
    }


class FileRenamer:
    """Renames files in their own directory according to a template."""

    def __init__(self, pattern: str = DEFAULT_RENAME_PATTERN, dry_run: bool = False):
        """Initialize the renamer.

        Args:
            pattern: Template such as ``"{track} - {title}"``.
            dry_run: Log what would happen without renaming.
        """
        self._pattern = pattern
        self._dry_run = dry_run

        known = set(rename_values(MediaFile(path=Path("x"), filename="x", extension="")))
        unknown = [name for name in template_placeholders(pattern) if name not in known]
        if unknown:
            logger.warning(f"Unknown placeholders in rename pattern: {', '.join(unknown)}")

    def new_filename(self, file: MediaFile) -> str:
        """Sanitized new name without the extension."""
        return sanitize(format_template(self._pattern, rename_values(file)))

    def rename_files(self, files: Iterable[MediaFile]) -> RenameStats:
        """Rename every file, counting renamed, skipped and failed files."""
        stats = RenameStats()
        claimed: set[Path] = set()

        for file in files:
            try:
                new_path = self._rename_one(file, claimed)
            except OSError as e:
                logger.error(f"Error renaming {file.filename}: {describe_error(e)}")
                stats.errors += 1
                continue

            if new_path is None:
                stats.skipped += 1
            else:
                stats.renamed += 1

        verb = "would be renamed" if self._dry_run else "renamed"
        logger.info(
            f"Rename complete: {stats.renamed} files {verb}, "
            f"{stats.skipped} skipped, {stats.errors} errors"
        )
        return stats

    def _rename_one(self, file: MediaFile, claimed: set[Path]) -> Path | None:
        base = self.new_filename(file)
        directory = file.path.parent
        candidate = directory / f"{base}{file.extension}"

        if os.path.normcase(candidate) == os.path.normcase(file.path):
            logger.debug(f"Skipping {file.filename} (already has correct name)")
            return None

        counter = 1
        while candidate.exists() or candidate in claimed:
            candidate = directory / f"{base} ({counter}){file.extension}"
            counter += 1
        claimed.add(candidate)

        if self._dry_run:
            logger.info(f"Would rename: {file.filename} -> {candidate.name}")
            return candidate

        file.path.rename(candidate)
        logger.info(f"Renamed: {file.filename} -> {candidate.name}")
        return candidate
