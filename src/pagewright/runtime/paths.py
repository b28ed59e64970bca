"""Dotted path lookup used by bindings, conditions and loops.

Paths are dot separated; any segment may carry bracket indexes:
``products[0].name``, ``matrix[1][2]``, ``rows.3.title``. A segment that does
not resolve makes the whole lookup return None instead of raising.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any

__all__ = ["split_path", "resolve_path", "set_path"]

_SEGMENT_PATTERN = re.compile(r"^([^\[\]]*)((?:\[\d+\])*)$")
_INDEX_PATTERN = re.compile(r"\[(\d+)\]")


def split_path(path: str) -> list[str | int]:
    """Split a dotted path into keys and integer indexes.

    Example:
        >>> split_path("products[0].tags[2]")
        ['products', 0, 'tags', 2]
    """
    parts: list[str | int] = []
    for segment in path.split("."):
        if not segment:
            continue
        match = _SEGMENT_PATTERN.match(segment)
        if match is None:
            parts.append(segment)
            continue
        key, indexes = match.groups()
        if key:
            parts.append(key)
        parts.extend(int(index) for index in _INDEX_PATTERN.findall(indexes))
    return parts


def _step(current: Any, part: str | int) -> tuple[bool, Any]:
    if isinstance(current, Mapping):
        if part in current:
            return True, current[part]
        if isinstance(part, int) and str(part) in current:
            return True, current[str(part)]
        return False, None
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        index = part if isinstance(part, int) else _as_index(part)
        if index is not None and -len(current) <= index < len(current):
            return True, current[index]
    return False, None


def _as_index(part: str) -> int | None:
    return int(part) if part.isdigit() else None


def resolve_path(root: Any, path: str | Sequence[str | int]) -> Any:
    """Follow ``path`` from ``root`` and return the value, or None.

    Args:
        root: Mapping or sequence to start from.
        path: Dotted path string or pre-split list of keys.

    Returns:
        The value found, or None when any segment is missing.
    """
    parts = split_path(path) if isinstance(path, str) else list(path)
    current = root
    for part in parts:
        found, current = _step(current, part)
        if not found:
            return None
    return current


def set_path(root: MutableMapping[str, Any], path: str, value: Any) -> None:
    """Write ``value`` at dotted ``path`` inside ``root``, creating dicts.

    Only mapping segments are created; bracket indexes must already exist.

    Raises:
        KeyError: If ``path`` is empty.
        TypeError: If an existing intermediate value cannot hold the key.
    """
    parts = split_path(path)
    if not parts:
        raise KeyError("Cannot set an empty path")
    current: Any = root
    for part in parts[:-1]:
        if isinstance(current, MutableMapping):
            if part not in current or current[part] is None:
                current[part] = {}
            current = current[part]
        elif isinstance(current, list) and isinstance(part, int):
            current = current[part]
        else:
            raise TypeError(
                f"Cannot descend into {type(current).__name__} at '{part}' of '{path}'"
            )
    last = parts[-1]
    if isinstance(current, MutableMapping):
        current[last] = value
    elif isinstance(current, list) and isinstance(last, int):
        current[last] = value
    else:
        raise TypeError(
            f"Cannot assign '{last}' of '{path}' on {type(current).__name__}"
        )
