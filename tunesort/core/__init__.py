"""Core domain models, configuration, errors and protocols."""
from .protocols import (
    MetadataExtractor,
    FileOperations,
    ProgressReporter,
    ProgressCallback,
)
from .models import (
    EngineState,
    MediaMetadata,
    MediaFile,
    ProgressSnapshot,
    SortProgress,
    OperationCounters,
    OperationOutcome,
    RunSummary,
)
from .config import SorterConfig, SortPattern, SortSpecification, SUPPORTED_EXTENSIONS
from .errors import (
    ErrorCategory,
    SorterError,
    FileOperationError,
    MetadataExtractionError,
    SettingsError,
    describe_error,
)

__all__ = [
    # Protocols
    "MetadataExtractor",
    "FileOperations",
    "ProgressReporter",
    "ProgressCallback",
    # Models
    "EngineState",
    "MediaMetadata",
    "MediaFile",
    "ProgressSnapshot",
    "SortProgress",
    "OperationCounters",
    "OperationOutcome",
    "RunSummary",
    # Config
    "SorterConfig",
    "SortPattern",
    "SortSpecification",
    "SUPPORTED_EXTENSIONS",
    # Errors
    "ErrorCategory",
    "SorterError",
    "FileOperationError",
    "MetadataExtractionError",
    "SettingsError",
    "describe_error",
]
