"""Small helpers shared across the package."""

from __future__ import annotations

import posixpath
from collections.abc import Iterable

GLOG_VERBOSE = 10

_KEY_PARTS = 7
DEFAULT_DELIMITER = "..."


class KeyFormatError(ValueError):
    """Raised when a storage key does not have the expected layout."""


def bool_to_float(value: bool) -> float:
    """Return 1.0 for a true value and 0.0 otherwise."""
    return 1.0 if value else 0.0


def parse_key(key: str) -> list[str]:
    """Split a key of the form ``/table/partition/kind/namespace/name/extra``."""
    parts = key.split("/")
    if len(parts) != _KEY_PARTS:
        raise KeyFormatError(f"key should have 6 parts: {key}")
    if parts[0] != "":
        raise KeyFormatError(f"key should start with /: {key}")
    return parts


def contains(items: Iterable[str], elem: str) -> bool:
    """Return True if ``elem`` is one of ``items``."""
    return elem in items


def get_file_path(file_path: str, file_name: str) -> str:
    """Join two slash-separated path pieces and clean the result."""
    pieces = [piece for piece in (file_path, file_name) if piece]
    if not pieces:
        return ""
    joined = posixpath.normpath("/".join(pieces))
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    return joined


def truncate(text: str, width: int, delimiter: str = DEFAULT_DELIMITER) -> str:
    """Cut ``text`` to ``width`` bytes, ending it with ``delimiter`` when cut."""
    delimiter_len = len(delimiter.encode("utf-8"))
    if width < 0:
        raise ValueError("invalid width")
    if len(text.encode("utf-8")) <= width:
        return text
    keep = max(width, delimiter_len) - delimiter_len
    return text[:keep] + delimiter