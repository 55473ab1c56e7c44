"""Filesystem-safe path segments, portable across Windows, macOS and Linux."""
from __future__ import annotations

import re
from typing import Any


MAX_SEGMENT_LENGTH = 255
FALLBACK_SEGMENT = "unknown"

INVALID_CHARS = re.compile(r'[/\\:*?"<>|]')
CONTROL_CHARS = re.compile(r"[\x00-\x1f]")
PATH_SEPARATORS = re.compile(r"[/\\]")

RESERVED_NAMES = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{i}" for i in range(10)}
    | {f"LPT{i}" for i in range(10)}
)


def _strip_edges(segment: str) -> str:
    """Strip surrounding whitespace and leading dots until nothing changes."""
    while True:
        stripped = segment.strip().lstrip(".")
        if stripped == segment:
            return segment
        segment = stripped


def is_reserved_name(segment: str) -> bool:
    return segment.upper() in RESERVED_NAMES


def sanitize(segment: Any) -> str:
    """Convert arbitrary text into a single safe path segment.

    Never raises. The result is non-empty, at most 255 characters, free of
    characters that are invalid on any supported platform, and sanitizing
    it again returns it unchanged.

    Args:
        segment: Any value; None and non-strings are accepted.

    Returns:
        Safe path segment ("unknown" if nothing usable is left).
    """
    if segment is None:
        return FALLBACK_SEGMENT

    text = segment if isinstance(segment, str) else str(segment)
    text = INVALID_CHARS.sub("_", text)
    text = CONTROL_CHARS.sub("", text)
    text = _strip_edges(text)

    # Truncating can expose trailing whitespace
    text = text[:MAX_SEGMENT_LENGTH].rstrip()

    if is_reserved_name(text):
        text = f"_{text}"

    return text or FALLBACK_SEGMENT


def sanitize_relative_path(path: str) -> str:
    """Sanitize every segment of a relative path independently.

    Both ``/`` and ``\\`` are treated as separators so the result does not
    depend on the host OS. Segments are rejoined with ``/``.
    """
    return "/".join(sanitize(part) for part in PATH_SEPARATORS.split(path or ""))
