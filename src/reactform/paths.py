"""Dotted-path access into nested mappings, sequences and objects."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any

SEPARATOR = "."

_MISSING = object()


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        if segment in current:
            return current[segment]
        return _MISSING
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        try:
            index = int(segment)
        except ValueError:
            return _MISSING
        if -len(current) <= index < len(current):
            return current[index]
        return _MISSING
    if isinstance(current, (str, bytes, int, float, bool)):
        return _MISSING
    return getattr(current, segment, _MISSING)


def get_path(obj: Any, path: str) -> Any:
    """Walk `obj` along a dotted path; None as soon as a segment is missing.

    >>> get_path({"a": {"b": 1}}, "a.b")
    1
    >>> get_path({"a": {"b": 1}}, "a.b.c") is None
    True
    """
    current = obj
    for segment in path.split(SEPARATOR):
        if current is None:
            return None
        current = _step(current, segment)
        if current is _MISSING:
            return None
    return current


def set_path(obj: MutableMapping, path: str, value: Any) -> None:
    """Assign `value` at a dotted path, creating intermediate dicts.

    Intermediate values that are not mappings are replaced by empty dicts.
    """
    *parents, leaf = path.split(SEPARATOR)
    current = obj
    for segment in parents:
        child = current.get(segment)
        if not isinstance(child, MutableMapping):
            current[segment] = {}
            child = current[segment]
        current = child
    current[leaf] = value
