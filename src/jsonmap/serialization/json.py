"""JSON serializer backed by orjson."""

from __future__ import annotations

import logging
from typing import Any

try:
    import orjson
except ImportError:  # pragma: no cover
    orjson = None  # type: ignore[assignment]

from jsonmap.mapper import is_mappable, serialize

logger = logging.getLogger(__name__)


def json_default(obj: object) -> object:
    """Default handler for values orjson cannot encode natively.

    Use as the *default* argument to :func:`json.dumps` or
    :func:`orjson.dumps` so that mapped objects serialize automatically.

    Handles:

    * Mapped class instances, converted with :func:`jsonmap.serialize`.
    * ``bytes`` and ``memoryview`` → hex string.

    Example::

        import json
        from jsonmap.serialization.json import json_default

        print(json.dumps(order, default=json_default))

    :param obj: The object to convert.
    :returns: A JSON-serializable representation.
    :raises TypeError: If *obj* is not a recognised type.
    """
    if isinstance(obj, bytes):
        return obj.hex()
    if isinstance(obj, memoryview):
        return bytes(obj).hex()
    if is_mappable(obj):
        return serialize(obj)
    msg = f"Cannot serialize {type(obj).__name__}"
    logger.warning("serialize failed: %s", msg)
    raise TypeError(msg)


class JsonSerializer:
    """JSON serializer using orjson for high-performance encoding.

    Mapped objects passed to :meth:`encode` are converted with
    :func:`jsonmap.serialize`, so declared keys, exclusions and converters
    apply.  ``bytes`` and ``memoryview`` values are encoded as hex strings
    and come back from :meth:`decode` as plain strings.

    :param pretty: Indent output with 2 spaces.
    :param sort_keys: Sort dict keys alphabetically.
    """

    def __init__(
        self,
        *,
        pretty: bool = False,
        sort_keys: bool = False,
    ) -> None:
        if orjson is None:  # pragma: no cover
            msg = "orjson is required for JsonSerializer, install jsonmap-py[serialization]"
            raise ImportError(msg)
        self._options = orjson.OPT_NON_STR_KEYS
        if pretty:
            self._options |= orjson.OPT_INDENT_2
        if sort_keys:
            self._options |= orjson.OPT_SORT_KEYS

    def encode(self, data: Any) -> bytes:
        """Encode plain data or a mapped object to JSON bytes."""
        return orjson.dumps(serialize(data), default=self._default, option=self._options)

    def decode(self, raw: bytes | str) -> Any:
        """Decode JSON bytes to plain Python values."""
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            logger.warning("deserialize failed: %s", exc)
            raise

    @property
    def content_type(self) -> str:
        """MIME content type for JSON."""
        return "application/json"

    def _default(self, obj: Any) -> Any:
        """Handle values that orjson cannot serialize natively."""
        return json_default(obj)
