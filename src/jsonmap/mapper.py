"""Mapping between parsed JSON data and annotated class instances.

:func:`deserialize` builds an instance graph from JSON mappings, sequences
and primitives; :func:`serialize` turns an instance graph back into plain
JSON-compatible data.  Both walk the declared fields of each class and
consult :mod:`jsonmap.metadata` for key names, element classes and custom
converters.

Missing or ``null`` data never raises: it maps to ``None`` on the way in
and is passed through on the way out.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Final, TypeVar

from jsonmap.metadata import (
    PropertyMetadata,
    class_fields,
    get_declared_type,
    get_element_type,
    get_property_metadata,
    property_names,
)
from jsonmap.types import is_array_like, is_mapping_like, is_primitive_like

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Missing:
    """Marker for "omit this key" in serialized output."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()
"""Returned by :func:`serialize_property` when the key must be left out."""


def _lookup(json: Any, key: str) -> Any:
    return json.get(key) if isinstance(json, Mapping) else None


def is_mappable(obj: Any) -> bool:
    """Return ``True`` if *obj* is an instance that maps to a JSON object.

    Primitives, arrays, mappings, enum members and classes are not;
    instances with declared fields or instance attributes are.
    """
    if obj is None or isinstance(obj, (type, Enum)):
        return False
    if is_primitive_like(obj) or is_array_like(obj) or is_mapping_like(obj):
        return False
    return bool(class_fields(type(obj))) or hasattr(obj, "__dict__")


def deserialize(cls: type[T] | None, json: Any, debug: bool = False) -> T | None:
    """Create an instance of *cls* populated from *json*.

    :param cls: Class to instantiate.  Must be constructible without
        arguments.
    :param json: Parsed JSON object.
    :param debug: Log every property assignment at ``DEBUG`` level.
    :returns: The populated instance, or ``None`` if *cls* or *json* is
        ``None`` or *json* is not a JSON object.
    """
    if cls is None or json is None:
        return None
    if not isinstance(json, Mapping):
        return None
    instance = cls()
    deserialize_into(instance, json, debug)
    return instance


def deserialize_into(instance: Any, json: Any, debug: bool = False) -> None:
    """Populate the properties of an existing *instance* from *json*.

    Every property of the instance is assigned, including those missing
    from *json*, which become ``None``.  Does nothing if either argument
    is ``None``.

    :param instance: Object to update in place.
    :param json: Parsed JSON object.
    :param debug: Log every property assignment at ``DEBUG`` level.
    """
    if instance is None or json is None:
        return
    for name in property_names(instance):
        metadata = get_property_metadata(instance, name)
        if metadata is not None and metadata.converter is not None:
            new_value = metadata.converter.from_json(_lookup(json, metadata.json_key or name))
        else:
            new_value = _map_from_json(metadata, instance, json, name, debug)
        if debug:
            logger.debug(
                "deserialize %s.%s: %r",
                type(instance).__name__,
                name,
                {
                    "metadata": metadata,
                    "json": json,
                    "key": name,
                    "original_value": getattr(instance, name, None),
                    "new_value": new_value,
                },
            )
        setattr(instance, name, new_value)


def _map_from_json(
    metadata: PropertyMetadata | None, instance: Any, json: Any, key: str, debug: bool
) -> Any:
    json_key = metadata.json_key if metadata is not None and metadata.json_key else key
    inner_json = _lookup(json, json_key) if json is not None else None
    declared = get_declared_type(instance, key)

    if declared is None:
        return _lookup(json, json_key)

    if is_array_like(declared):
        element_type = get_element_type(instance, key)
        if element_type is not None or is_primitive_like(declared):
            if inner_json is not None and is_array_like(inner_json):
                target = element_type or declared
                return [deserialize(target, item, debug) for item in inner_json]
            return None
        # Element class unknown: hand the array over untouched.
        return inner_json

    if is_mapping_like(declared):
        return inner_json

    if not is_primitive_like(declared):
        return deserialize(declared, inner_json, debug)

    return _lookup(json, json_key)


def serialize(instance: Any) -> Any:
    """Convert an instance graph into plain JSON-compatible data.

    Primitives, arrays and ``None`` are returned unchanged; arrays of
    objects are expanded by the owning property.  Properties without
    metadata are written under their own name.

    :param instance: Object to convert.  It is not modified.
    :returns: A new ``dict`` for mappable objects, otherwise *instance*.
    """
    if isinstance(instance, Mapping):
        return {key: _serialize_unannotated(value) for key, value in instance.items()}
    if not is_mappable(instance):
        return instance

    result: dict[str, Any] = {}
    for name in property_names(instance):
        value = getattr(instance, name, None)
        metadata = get_property_metadata(instance, name)
        if metadata is None:
            result[name] = _serialize_unannotated(value)
            continue
        output = serialize_property(_with_declared_element(instance, name, metadata), value)
        if output is not MISSING:
            result[metadata.json_key or name] = output
    return result


def serialize_property(metadata: PropertyMetadata | None, value: Any) -> Any:
    """Convert a single property value according to *metadata*.

    :returns: The JSON-compatible value, or :data:`MISSING` when there is
        no metadata or the property is excluded from output.
    """
    if metadata is None or metadata.exclude_from_output:
        return MISSING
    if metadata.converter is not None:
        return metadata.converter.to_json(value)
    if metadata.element_type is None:
        return value
    if is_array_like(value):
        return [serialize(item) for item in value]
    return serialize(value)


def _with_declared_element(
    instance: Any, name: str, metadata: PropertyMetadata
) -> PropertyMetadata:
    # Annotated element classes (``list[Item]``, ``item: Item``) count as declared.
    if metadata.element_type is not None or metadata.converter is not None:
        return metadata
    element_type = get_element_type(instance, name)
    if element_type is None:
        declared = get_declared_type(instance, name)
        if declared is None or is_primitive_like(declared) or is_array_like(declared):
            return metadata
        if is_mapping_like(declared):
            return metadata
        element_type = declared
    return dataclasses.replace(metadata, element_type=element_type)


def _serialize_unannotated(value: Any) -> Any:
    if is_array_like(value):
        return [serialize(item) for item in value]
    return serialize(value)
