"""Metadata engines."""
from .metadata import (
    MutagenMetadataExtractor,
    FilenameMetadataParser,
    FilenamePattern,
    FilenameMatch,
    MetadataLoader,
)

__all__ = [
    "MutagenMetadataExtractor",
    "FilenameMetadataParser",
    "FilenamePattern",
    "FilenameMatch",
    "MetadataLoader",
]
