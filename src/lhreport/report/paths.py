"""Dotted-path lookup used by the final placeholder pass."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def lookup(record: Any, dotted_path: str) -> Any:
    """Walk ``record`` along ``a.b.c`` and return the raw value, or None.

    Mapping segments are keys; on sequences a segment must be an integer
    index (``errors.0.title``).
    """
    current = record
    for segment in dotted_path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not segment.isdigit() or int(segment) >= len(current):
                return None
            current = current[int(segment)]
        else:
            return None
    return current


def resolve(record: Any, dotted_path: str) -> str:
    """Return the value at ``dotted_path`` as display text.

    Missing segments and ``None`` give ``""``; mappings and sequences also
    give ``""`` since they have no sensible inline rendering. Never raises.
    """
    value = lookup(record, dotted_path)
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
