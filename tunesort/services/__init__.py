"""Service layer - filesystem operations and the sorting engine."""
from .file_ops import FileManager
from .operation_queue import OperationQueue
from .sorter import MusicSorter, compute_destination
from .renamer import FileRenamer, RenameStats
from .restorer import restore_files, RestoreStats
from .analyzer import analyze_library, LibraryStats

__all__ = [
    "FileManager",
    "OperationQueue",
    "MusicSorter",
    "compute_destination",
    "FileRenamer",
    "RenameStats",
    "restore_files",
    "RestoreStats",
    "analyze_library",
    "LibraryStats",
]
