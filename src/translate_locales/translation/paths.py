"""
Dotted-path access into nested documents.

``firstSection.text`` addresses ``document["firstSection"]["text"]``.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any


def split_path(path: str) -> list[str]:
    """Split a dotted path into its segments."""
    return path.split(".") if path else []


def top_level_key(path: str) -> str:
    """Return the first segment of a dotted path."""
    return path.split(".", 1)[0]


def get_path(document: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """
    Resolve a dotted path inside a nested mapping.

    Returns ``default`` when any segment is missing, when an intermediate value
    is not a mapping, or when it is None.
    """
    current: Any = document
    for key in split_path(path):
        if current is None or not isinstance(current, Mapping) or key not in current:
            return default
        current = current[key]
    return current


def set_path(document: MutableMapping[str, Any], path: str, value: Any) -> None:
    """
    Assign ``value`` at a dotted path, creating intermediate mappings.

    Intermediate values that are missing or are not mappings are replaced by an
    empty dict. Mutates ``document`` in place; an empty path is a no-op.
    """
    keys = split_path(path)
    if not keys:
        return

    *parents, last_key = keys
    current = document
    for key in parents:
        if not isinstance(current.get(key), MutableMapping):
            current[key] = {}
        current = current[key]

    current[last_key] = value


def has_path(document: Mapping[str, Any], path: str) -> bool:
    """Check whether a dotted path resolves to a stored value (None included)."""
    keys = split_path(path)
    if not keys:
        return False

    current: Any = document
    for key in keys:
        if not isinstance(current, Mapping) or key not in current:
            return False
        current = current[key]
    return True
