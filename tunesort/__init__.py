"""Metadata-driven music library reorganization.

Dependency-injected services: build a FileManager, hand it to a
MusicSorter, and sort MediaFile records with a SortSpecification.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import SorterConfig, SortPattern, SortSpecification
from .core.models import (
    EngineState,
    MediaMetadata,
    MediaFile,
    ProgressSnapshot,
    RunSummary,
)
from .core.errors import (
    ErrorCategory,
    SorterError,
    FileOperationError,
    MetadataExtractionError,
    SettingsError,
)

# Utilities
from .path_utils import sanitize, sanitize_relative_path
from .template_utils import format_template

# Engine exports
from .engines.metadata import MutagenMetadataExtractor, FilenameMetadataParser, MetadataLoader

# Service exports
from .services.file_ops import FileManager
from .services.operation_queue import OperationQueue
from .services.sorter import MusicSorter
from .services.renamer import FileRenamer
from .services.restorer import restore_files
from .services.analyzer import analyze_library, LibraryStats

# Logging exports
from .logging.rich_logger import RichProgressReporter

__all__ = [
    # Core
    "SorterConfig",
    "SortPattern",
    "SortSpecification",
    "EngineState",
    "MediaMetadata",
    "MediaFile",
    "ProgressSnapshot",
    "RunSummary",
    "ErrorCategory",
    "SorterError",
    "FileOperationError",
    "MetadataExtractionError",
    "SettingsError",
    # Utilities
    "sanitize",
    "sanitize_relative_path",
    "format_template",
    # Engines
    "MutagenMetadataExtractor",
    "FilenameMetadataParser",
    "MetadataLoader",
    # Services
    "FileManager",
    "OperationQueue",
    "MusicSorter",
    "FileRenamer",
    "restore_files",
    "analyze_library",
    "LibraryStats",
    # Logging
    "RichProgressReporter",
]
