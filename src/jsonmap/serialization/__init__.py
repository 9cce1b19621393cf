"""JSON text encoding and decoding for mapped objects.

The mapper works on parsed data; this package supplies the text codec
that sits on either side of it.
"""

from __future__ import annotations

from typing import Any, TypeVar

from jsonmap.mapper import deserialize

__all__ = ["dumps", "loads"]

T = TypeVar("T")


def dumps(obj: Any, **kwargs: Any) -> bytes:
    """Serialize a mapped object (or plain data) to JSON bytes.

    Args:
        obj: Object to serialize.
        **kwargs: Options passed to
            :class:`~jsonmap.serialization.json.JsonSerializer`.

    Returns:
        Serialized bytes.

    Raises:
        ImportError: If orjson is not installed.
    """
    from jsonmap.serialization.json import JsonSerializer

    return JsonSerializer(**kwargs).encode(obj)


def loads(cls: type[T], raw: bytes | str, debug: bool = False) -> T | None:
    """Decode JSON *raw* and map the resulting object onto a new *cls* instance.

    Args:
        cls: Class to instantiate.
        raw: Encoded document.
        debug: Log every property assignment at ``DEBUG`` level.

    Returns:
        The populated instance, or ``None`` if the document is not an object.

    Raises:
        ImportError: If orjson is not installed.
    """
    from jsonmap.serialization.json import JsonSerializer

    return deserialize(cls, JsonSerializer().decode(raw), debug)
