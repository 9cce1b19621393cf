"""Type classification helpers shared by the mapper.

Each helper accepts either a runtime value or a type and never raises.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

PRIMITIVE_TYPES: tuple[type, ...] = (str, int, float, bool)
"""Types whose values map to JSON strings, numbers and booleans."""

ARRAY_TYPES: tuple[type, ...] = (list, tuple)
"""Concrete sequence types treated as JSON arrays."""


def _is_subclass(obj: Any, classes: tuple[type, ...]) -> bool:
    try:
        return isinstance(obj, type) and issubclass(obj, classes)
    except TypeError:
        return False


def is_primitive_like(obj: Any) -> bool:
    """Return ``True`` for strings, numbers and booleans.

    Matches both values (``"x"``, ``1``, ``2.5``, ``True``) and the types
    themselves (``str``, ``int``, ``float``, ``bool``), including
    subclasses such as :class:`enum.IntEnum` members and their classes.
    """
    return isinstance(obj, PRIMITIVE_TYPES) or _is_subclass(obj, PRIMITIVE_TYPES)


def is_array_like(obj: Any) -> bool:
    """Return ``True`` for a list or tuple, or for one of those types.

    Strings and bytes are sequences too but never count as arrays.
    """
    if isinstance(obj, ARRAY_TYPES):
        return True
    if obj is Sequence:
        return True
    return _is_subclass(obj, ARRAY_TYPES)


def is_mapping_like(obj: Any) -> bool:
    """Return ``True`` for a mapping value or a mapping type such as ``dict``."""
    return isinstance(obj, Mapping) or _is_subclass(obj, (Mapping,))
