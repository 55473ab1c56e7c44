"""Typed errors carrying a category and the offending paths."""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorCategory(Enum):
    """Broad class of failure, used for logging and reporting."""
    FILE_OPERATION = "FileOperation"
    METADATA_EXTRACTION = "MetadataExtraction"
    SETTINGS = "Settings"
    UNKNOWN = "Unknown"


class SorterError(Exception):
    """Base error for everything raised by tunesort.

    Attributes:
        category: Which part of the system failed.
        context: Paths and other values describing what was being done.
        original: The lower-level exception, if any.
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
        original: Optional[BaseException] = None,
        category: Optional[ErrorCategory] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.original = original
        if category is not None:
            self.category = category

    def __str__(self) -> str:
        return self.message


class FileOperationError(SorterError):
    """Directory creation, scan, move or copy failed."""
    category = ErrorCategory.FILE_OPERATION


class MetadataExtractionError(SorterError):
    """A file's tags could not be read."""
    category = ErrorCategory.METADATA_EXTRACTION


class SettingsError(SorterError, ValueError):
    """Invalid configuration supplied by the caller."""
    category = ErrorCategory.SETTINGS


def describe_error(error: BaseException) -> str:
    """Render an error as a single log line."""
    if not isinstance(error, SorterError):
        return f"[{ErrorCategory.UNKNOWN.value}] {type(error).__name__}: {error}"

    line = f"[{error.category.value}] {error.message}"
    if error.context:
        details = ", ".join(f"{key}={value}" for key, value in error.context.items())
        line = f"{line} ({details})"
    if error.original is not None:
        line = f"{line}: {error.original}"
    return line
