"""Configuration dataclasses with validation."""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import FileOperationError, SettingsError


SUPPORTED_EXTENSIONS = (".mp3", ".flac", ".wav", ".ogg", ".m4a", ".aac", ".opus")


class SortPattern(Enum):
    """Shape of the destination tree."""
    ARTIST = "artist"              # by-artist/Artist/
    ALBUM_ARTIST = "album-artist"  # by-album-artist/Album Artist/Album/
    ALBUM = "album"                # by-album/Artist/Album/
    GENRE = "genre"                # by-genre/Genre/
    YEAR = "year"                  # by-year/1999/
    CUSTOM = "custom"              # custom/<template output>/

    @classmethod
    def parse(cls, value: str) -> "SortPattern":
        """Look up a pattern by its string value, case-insensitively."""
        normalized = value.strip().lower().replace("_", "-")
        for pattern in cls:
            if pattern.value == normalized:
                return pattern
        raise ValueError(f"Unknown sort pattern: {value}")


@dataclass(frozen=True, slots=True)
class SortSpecification:
    """What tree to build and whether to copy or move."""
    pattern: SortPattern
    copy_mode: bool = False
    template: Optional[str] = None

    def validate(self) -> None:
        """Reject specifications that cannot be executed.

        Raises:
            FileOperationError: CUSTOM pattern without a template.
        """
        if self.pattern is SortPattern.CUSTOM and not self.template:
            raise FileOperationError(
                "Custom sort pattern requires a template",
                context={"pattern": self.pattern.value},
            )


@dataclass(slots=True)
class SorterConfig:
    """Main configuration for a sorting run.

    All fields are validated on construction and the object is passed
    explicitly to every service that needs it.
    """
    # Required
    target_root: Path

    # Queue
    batch_size: int = 50
    max_workers: Optional[int] = None  # defaults to batch_size

    # Scanning
    recursive: bool = True
    include_hidden: bool = False
    ignore_patterns: tuple[str, ...] = ()
    extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS

    # Metadata
    use_filename_fallback: bool = True

    _compiled_ignores: tuple[re.Pattern, ...] = field(default=(), init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.batch_size < 1:
            raise SettingsError(
                "Batch size must be at least 1",
                context={"batch_size": self.batch_size},
            )

        if self.max_workers is not None and self.max_workers < 1:
            raise SettingsError(
                "Workers must be at least 1",
                context={"max_workers": self.max_workers},
            )

        self.target_root = Path(self.target_root).expanduser().resolve()
        self.ignore_patterns = tuple(self.ignore_patterns)
        self.extensions = tuple(ext.lower() for ext in self.extensions)

        try:
            self._compiled_ignores = tuple(re.compile(p) for p in self.ignore_patterns)
        except re.error as e:
            raise SettingsError(
                f"Invalid ignore pattern: {e.pattern}",
                context={"ignore_patterns": self.ignore_patterns},
                original=e,
            ) from e

    @property
    def compiled_ignores(self) -> tuple[re.Pattern, ...]:
        return self._compiled_ignores

    @property
    def worker_count(self) -> int:
        return self.max_workers or self.batch_size

    def with_overrides(self, **kwargs) -> "SorterConfig":
        """Create a new config with some values overridden."""
        return replace(self, **kwargs)
