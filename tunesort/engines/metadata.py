"""Metadata sources: embedded tags via mutagen, with a filename fallback."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import mutagen
from mutagen import MutagenError

from ..core.config import SUPPORTED_EXTENSIONS, SorterConfig
from ..core.errors import MetadataExtractionError
from ..core.models import MediaFile, MediaMetadata
from ..core.protocols import MetadataExtractor


logger = logging.getLogger(__name__)

YEAR_RE = re.compile(r"\b(\d{4})\b")
NUMBER_RE = re.compile(r"^\s*(\d+)")


def parse_year(value: Optional[str]) -> Optional[int]:
    """Year from a date tag such as ``2004``, ``2004-05-01`` or ``2004/05``."""
    if not value:
        return None
    match = YEAR_RE.search(value)
    return int(match.group(1)) if match else None


def parse_number(value: Optional[str]) -> Optional[int]:
    """Leading number of a tag such as ``3`` or ``3/12``."""
    if not value:
        return None
    match = NUMBER_RE.match(value)
    return int(match.group(1)) if match else None


class MutagenMetadataExtractor:
    """Reads embedded tags with mutagen's format-independent "easy" interface."""

    def extract(self, path: Path) -> MediaMetadata:
        """Read tags from an audio file.

        Raises:
            MetadataExtractionError: Unreadable or unsupported file.
        """
        try:
            audio = mutagen.File(path, easy=True)
        except (MutagenError, OSError) as e:
            raise MetadataExtractionError(
                f"Cannot read tags from {Path(path).name}",
                context={"path": str(path)},
                original=e,
            ) from e

        if audio is None:
            raise MetadataExtractionError(
                f"Unsupported audio format: {Path(path).name}",
                context={"path": str(path)},
            )

        tags = audio.tags or {}

        def first(key: str) -> Optional[str]:
            values = tags.get(key)
            if not values:
                return None
            value = str(values[0]).strip()
            return value or None

        return MediaMetadata(
            title=first("title"),
            artist=first("artist"),
            album_artist=first("albumartist"),
            album=first("album"),
            genre=first("genre"),
            year=parse_year(first("date")),
            track_number=parse_number(first("tracknumber")),
            disc_number=parse_number(first("discnumber")),
        )


@dataclass(frozen=True, slots=True)
class FilenameMatch:
    """Outcome of trying one filename pattern.

    ``matched`` tells the variants apart; a miss carries empty metadata.
    """
    matched: bool
    metadata: MediaMetadata = field(default_factory=MediaMetadata)
    pattern: Optional[str] = None


NO_MATCH = FilenameMatch(matched=False)


@dataclass(frozen=True, slots=True)
class FilenamePattern:
    """A named regular expression with ``artist``/``album``/``track``/``title`` groups."""
    name: str
    regex: re.Pattern

    def match(self, stem: str) -> FilenameMatch:
        found = self.regex.match(stem)
        if not found:
            return NO_MATCH

        groups = {k: v.strip() for k, v in found.groupdict().items() if v and v.strip()}
        if not groups.get("title"):
            return NO_MATCH

        return FilenameMatch(
            matched=True,
            metadata=MediaMetadata(
                title=groups.get("title"),
                artist=groups.get("artist"),
                album=groups.get("album"),
                track_number=parse_number(groups.get("track")),
            ),
            pattern=self.name,
        )


# Tried in order, most specific first
DEFAULT_FILENAME_PATTERNS = (
    FilenamePattern(
        "track-artist-title",
        re.compile(r"^(?P<track>\d{1,3})\s*[-.]\s*(?P<artist>.+?)\s+-\s+(?P<title>.+)$"),
    ),
    FilenamePattern(
        "artist-album-track-title",
        re.compile(r"^(?P<artist>.+?)\s+-\s+(?P<album>.+?)\s+-\s+(?P<track>\d{1,3})\s+-\s+(?P<title>.+)$"),
    ),
    FilenamePattern(
        "track-title",
        re.compile(r"^(?P<track>\d{1,3})\s*[-.]\s*(?P<title>.+)$"),
    ),
    FilenamePattern(
        "artist-title",
        re.compile(r"^(?P<artist>.+?)\s+-\s+(?P<title>.+)$"),
    ),
    FilenamePattern(
        "track-space-title",
        re.compile(r"^(?P<track>\d{1,3})\s+(?P<title>.+)$"),
    ),
)


class FilenameMetadataParser:
    """Guesses tags from a filename by trying patterns in sequence."""

    def __init__(self, patterns: Iterable[FilenamePattern] = DEFAULT_FILENAME_PATTERNS):
        self._patterns = tuple(patterns)

    def parse(self, filename: str) -> FilenameMatch:
        """Return the first matching pattern's result, or NO_MATCH."""
        stem = Path(filename).stem.replace("_", " ").strip()
        for pattern in self._patterns:
            result = pattern.match(stem)
            if result.matched:
                return result
        return NO_MATCH


class MetadataLoader:
    """Turns raw paths into MediaFile records.

    Files with unsupported extensions or that are not regular files are
    skipped. Tag read failures are logged and leave metadata empty; missing
    fields are then filled from the filename when a parser is configured.
    """

    def __init__(
        self,
        extractor: Optional[MetadataExtractor] = None,
        filename_parser: Optional[FilenameMetadataParser] = None,
        extensions: Iterable[str] = SUPPORTED_EXTENSIONS,
    ):
        self._extractor = extractor or MutagenMetadataExtractor()
        self._filename_parser = filename_parser
        self._extensions = frozenset(ext.lower() for ext in extensions)

    @classmethod
    def from_config(
        cls,
        config: SorterConfig,
        extractor: Optional[MetadataExtractor] = None,
    ) -> "MetadataLoader":
        """Create a loader using the configured extensions and filename fallback."""
        parser = FilenameMetadataParser() if config.use_filename_fallback else None
        return cls(extractor=extractor, filename_parser=parser, extensions=config.extensions)

    def is_supported(self, path: Path) -> bool:
        return Path(path).suffix.lower() in self._extensions

    def load(self, paths: Iterable[Path]) -> list[MediaFile]:
        files = []
        for path in paths:
            path = Path(path)
            if not self.is_supported(path) or not path.is_file():
                continue

            try:
                metadata = self._extractor.extract(path)
            except MetadataExtractionError as e:
                logger.warning(f"{e}; continuing without tags")
                metadata = MediaMetadata()

            if self._filename_parser is not None:
                guess = self._filename_parser.parse(path.name)
                if guess.matched:
                    metadata = metadata.merged(guess.metadata)

            try:
                files.append(MediaFile.from_path(path, metadata))
            except OSError as e:
                logger.error(f"Error processing {path}: {e}")

        logger.info(f"Loaded metadata for {len(files)} files")
        return files
