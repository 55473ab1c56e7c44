"""Library statistics computed from loaded MediaFile records."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..core.models import MediaFile


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LibraryStats:
    """Summary of a music collection.

    Missing artist, album and genre tags count as one shared "unknown"
    value in the unique counts. Files without a year are left out of the
    year span.
    """
    total_files: int = 0
    total_size: int = 0
    unique_artists: int = 0
    unique_albums: int = 0
    unique_genres: int = 0
    earliest_year: Optional[int] = None
    latest_year: Optional[int] = None
    formats: dict[str, int] = field(default_factory=dict)

    @property
    def total_size_mb(self) -> float:
        return self.total_size / (1024 * 1024)

    @property
    def year_span(self) -> Optional[tuple[int, int]]:
        if self.earliest_year is None or self.latest_year is None:
            return None
        return (self.earliest_year, self.latest_year)

    def summary(self) -> dict[str, object]:
        return {
            "total_files": self.total_files,
            "total_size": self.total_size,
            "unique_artists": self.unique_artists,
            "unique_albums": self.unique_albums,
            "unique_genres": self.unique_genres,
            "year_span": self.year_span,
            "formats": dict(self.formats),
        }


def analyze_library(files: Iterable[MediaFile]) -> LibraryStats:
    """Count files, sizes, distinct tags and formats without touching disk.

    Args:
        files: Records produced by a MetadataLoader or built by the caller.

    Returns:
        LibraryStats; formats are keyed by lower-case extension, most
        common first.
    """
    files = list(files)
    years = [f.metadata.year for f in files if f.metadata.year is not None]
    formats = Counter(f.extension.lower() for f in files)

    stats = LibraryStats(
        total_files=len(files),
        total_size=sum(f.size for f in files),
        unique_artists=len({f.metadata.artist or None for f in files}),
        unique_albums=len({f.metadata.album or None for f in files}),
        unique_genres=len({f.metadata.genre or None for f in files}),
        earliest_year=min(years) if years else None,
        latest_year=max(years) if years else None,
        formats=dict(formats.most_common()),
    )
    logger.info(
        f"Analyzed {stats.total_files} files: {stats.unique_artists} artists, "
        f"{stats.unique_albums} albums, {stats.unique_genres} genres"
    )
    return stats
