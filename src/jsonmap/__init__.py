"""jsonmap: declarative mapping between JSON data and Python objects.

Typical usage::

    from dataclasses import dataclass
    from typing import Annotated

    from jsonmap import JsonProperty, deserialize, json_model, serialize

    @json_model
    @dataclass
    class Item:
        sku: str = ""
        qty: Annotated[int, JsonProperty("quantity")] = 0

    @json_model
    @dataclass
    class Order:
        items: list[Item] | None = None

    order = deserialize(Order, {"items": [{"sku": "A-1", "quantity": 2}]})
    assert serialize(order) == {"items": [{"sku": "A-1", "quantity": 2}]}
"""

__version__ = "0.1.0"

from jsonmap.errors import InvalidMetadataError, JsonMapError
from jsonmap.mapper import (
    MISSING,
    deserialize,
    deserialize_into,
    serialize,
    serialize_property,
)
from jsonmap.metadata import (
    Converter,
    CustomConverter,
    JsonProperty,
    PropertyMetadata,
    get_declared_type,
    get_element_type,
    get_property_metadata,
    json_model,
    set_property_metadata,
)
from jsonmap.serialization import dumps, loads
from jsonmap.types import is_array_like, is_primitive_like

__all__ = [
    "MISSING",
    "Converter",
    "CustomConverter",
    "InvalidMetadataError",
    "JsonMapError",
    "JsonProperty",
    "PropertyMetadata",
    "__version__",
    "deserialize",
    "deserialize_into",
    "dumps",
    "get_declared_type",
    "get_element_type",
    "get_property_metadata",
    "is_array_like",
    "is_primitive_like",
    "json_model",
    "loads",
    "serialize",
    "serialize_property",
    "set_property_metadata",
]
