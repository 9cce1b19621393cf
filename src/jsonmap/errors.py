"""Exception types raised by jsonmap."""

from __future__ import annotations


class JsonMapError(Exception):
    """Base exception for jsonmap errors."""


class InvalidMetadataError(JsonMapError, TypeError):
    """Property metadata was declared with an unusable value.

    Raised at declaration time, when a property is annotated or registered
    with something that is neither a JSON key string nor a metadata record.
    Mapping itself never raises this error.
    """

    def __init__(self, metadata: object, property_name: str | None = None) -> None:
        self.metadata = metadata
        self.property_name = property_name
        where = f" for property {property_name!r}" if property_name else ""
        super().__init__(
            f"Property metadata{where} must be a JSON key string or a metadata record, "
            f"got {metadata!r}"
        )
