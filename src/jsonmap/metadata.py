"""Property metadata: how a class attribute relates to a JSON field.

Metadata is declared once per class, either inline with
:data:`typing.Annotated` on a class decorated with :func:`json_model`::

    @json_model
    @dataclass
    class Order:
        order_id: Annotated[str, JsonProperty("orderId")] = ""
        lines: Annotated[list, JsonProperty(element_type=OrderLine)] = None

or after the fact with :func:`set_property_metadata` for classes that cannot
carry annotations.  Lookups resolve from a class or an instance and follow
the MRO, so subclasses inherit the declarations of their bases.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import sys
import types
import weakref
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    ClassVar,
    Protocol,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    runtime_checkable,
)

from jsonmap.errors import InvalidMetadataError
from jsonmap.types import is_array_like, is_mapping_like, is_primitive_like

logger = logging.getLogger(__name__)

_REGISTRY_ATTR = "__jsonmap_properties__"
_LOCALNS_ATTR = "__jsonmap_localns__"
_UNSET: Any = object()

T = TypeVar("T", bound=type)

_FIELDS: weakref.WeakKeyDictionary[type, Mapping[str, FieldSpec]] = weakref.WeakKeyDictionary()


@runtime_checkable
class CustomConverter(Protocol):
    """Converts one property to and from its JSON form.

    A converter replaces the default mapping of its property in both
    directions.
    """

    def to_json(self, value: Any) -> Any:
        """Convert an attribute value to a JSON-compatible value."""
        ...

    def from_json(self, value: Any) -> Any:
        """Convert a JSON value (possibly ``None``) to an attribute value."""
        ...


@dataclass(frozen=True, slots=True)
class Converter:
    """A :class:`CustomConverter` built from two plain callables.

    Example::

        Converter(to_json=str, from_json=int)
    """

    to_json: Callable[[Any], Any]
    """Called with the attribute value when serializing."""

    from_json: Callable[[Any], Any]
    """Called with the raw JSON value when deserializing."""


@dataclass(frozen=True, slots=True)
class PropertyMetadata:
    """Mapping rules for a single property."""

    json_key: str | None = None
    """JSON field name.  ``None`` (or empty) uses the attribute name."""

    element_type: type | None = None
    """Class to instantiate for a nested object or for each array element."""

    converter: CustomConverter | None = None
    """Overrides default mapping in both directions when set."""

    exclude_from_output: bool = False
    """Omit the property from serialized output."""

    @classmethod
    def coerce(cls, metadata: Any, property_name: str | None = None) -> PropertyMetadata:
        """Build a :class:`PropertyMetadata` from any accepted declaration form.

        :param metadata: A JSON key string, a :class:`PropertyMetadata`, or a
            mapping with any of the ``json_key``, ``element_type``,
            ``converter`` and ``exclude_from_output`` keys.  A ``converter``
            given as a mapping with ``to_json``/``from_json`` callables is
            wrapped in a :class:`Converter`.
        :param property_name: Property being declared, used in error messages.
        :returns: The normalised metadata record.
        :raises InvalidMetadataError: If *metadata* is none of the above.
        """
        if isinstance(metadata, str):
            return cls(json_key=metadata)
        if isinstance(metadata, PropertyMetadata):
            return metadata
        if isinstance(metadata, Mapping):
            allowed = {f.name for f in dataclasses.fields(cls)}
            unknown = set(metadata) - allowed
            if unknown:
                logger.warning(
                    "rejected metadata for %s: unknown keys %s", property_name, sorted(unknown)
                )
                raise InvalidMetadataError(metadata, property_name)
            record = dict(metadata)
            converter = record.get("converter")
            if isinstance(converter, Mapping):
                if not {"to_json", "from_json"} <= set(converter):
                    logger.warning("rejected converter for %s: %r", property_name, converter)
                    raise InvalidMetadataError(metadata, property_name)
                record["converter"] = Converter(converter["to_json"], converter["from_json"])
            return cls(**record)
        logger.warning("rejected metadata for %s: %r", property_name, metadata)
        raise InvalidMetadataError(metadata, property_name)


def JsonProperty(
    metadata: Any = _UNSET,
    /,
    *,
    json_key: str | None = None,
    element_type: type | None = None,
    converter: CustomConverter | None = None,
    exclude_from_output: bool = False,
) -> PropertyMetadata:
    """Declare JSON mapping rules for a property.

    Intended for use inside :data:`typing.Annotated`.  The positional
    argument is the JSON key or a full metadata record; keyword arguments
    set (or override) individual fields::

        name: Annotated[str, JsonProperty("displayName")] = ""
        tags: Annotated[list, JsonProperty("tags", element_type=Tag)] = None

    :raises InvalidMetadataError: If the positional argument is not a string
        or a metadata record (``None`` included), or if nothing at all is
        declared.
    """
    overrides: dict[str, Any] = {}
    if json_key is not None:
        overrides["json_key"] = json_key
    if element_type is not None:
        overrides["element_type"] = element_type
    if converter is not None:
        overrides["converter"] = converter
    if exclude_from_output:
        overrides["exclude_from_output"] = True

    if metadata is _UNSET:
        if not overrides:
            logger.warning("rejected empty JsonProperty declaration")
            raise InvalidMetadataError(None)
        return PropertyMetadata(**overrides)
    base = PropertyMetadata.coerce(metadata)
    return dataclasses.replace(base, **overrides) if overrides else base


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Statically declared shape of one class attribute."""

    name: str
    declared_type: type | None
    """Runtime class of the annotation, ``None`` when unknown or ``Any``."""

    element_type: type | None
    """Element class taken from a ``list[X]``-style annotation."""

    metadata: PropertyMetadata | None
    """Metadata declared through ``Annotated``."""

    owner_index: int | None = None
    """Position in the MRO of the most-derived class that annotates the field."""


def _class_of(cls_or_instance: Any) -> type:
    return cls_or_instance if isinstance(cls_or_instance, type) else type(cls_or_instance)


def _strip_optional(hint: Any) -> Any:
    if get_origin(hint) in (Union, types.UnionType):
        args = [a for a in get_args(hint) if a is not type(None)]
        return args[0] if len(args) == 1 else Any
    return hint


def _split_annotated(hint: Any) -> tuple[Any, PropertyMetadata | None]:
    hint = _strip_optional(hint)
    if get_origin(hint) is not Annotated:
        return hint, None
    metadata = None
    for extra in hint.__metadata__:
        if isinstance(extra, PropertyMetadata):
            metadata = extra
    return _strip_optional(hint.__origin__), metadata


def _element_from_args(origin: type, args: tuple[Any, ...]) -> type | None:
    if not args:
        return None
    if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
        return None
    candidate, _ = _split_annotated(args[0])
    if not isinstance(candidate, type):
        return None
    # Only classes that can be mapped field by field make useful element types.
    if is_primitive_like(candidate) or is_array_like(candidate) or is_mapping_like(candidate):
        return None
    return candidate


def _field_spec(name: str, hint: Any, owner_index: int | None) -> FieldSpec | None:
    if get_origin(hint) is ClassVar:
        return None
    hint, metadata = _split_annotated(hint)
    if get_origin(hint) is ClassVar:
        return None
    origin = get_origin(hint)
    if origin is not None:
        declared = origin if isinstance(origin, type) else None
        element = _element_from_args(origin, get_args(hint)) if is_array_like(origin) else None
        return FieldSpec(name, declared, element, metadata, owner_index)
    if hint is Any or not isinstance(hint, type):
        return FieldSpec(name, None, None, metadata, owner_index)
    return FieldSpec(name, hint, None, metadata, owner_index)


def _raw_annotations(cls: type) -> dict[str, Any]:
    """Return the annotations *cls* itself declares, without resolving names."""
    if sys.version_info >= (3, 14):
        import annotationlib

        return annotationlib.get_annotations(cls, format=annotationlib.Format.FORWARDREF)
    return inspect.get_annotations(cls)


def _resolve_hints(cls: type) -> dict[str, Any]:
    """Evaluate the type hints of *cls*.

    Names are looked up in the defining module, in the scopes captured by
    :func:`json_model` for *cls* and its bases, and in ``{cls.__name__: cls}``
    so self-references resolve while the class statement is still running.

    :raises NameError: If an annotation names something that is not visible.
    :raises InvalidMetadataError: If an annotation declares bad metadata.
    """
    localns: dict[str, Any] = {}
    for base in reversed(cls.__mro__):
        localns.update(base.__dict__.get(_LOCALNS_ATTR) or {})
    localns[cls.__name__] = cls
    return get_type_hints(cls, localns=localns, include_extras=True)


def _unresolved_hints(cls: type) -> dict[str, Any]:
    hints: dict[str, Any] = {}
    for base in reversed(cls.__mro__):
        for name, hint in _raw_annotations(base).items():
            if isinstance(hint, str) and hint.startswith(("ClassVar", "typing.ClassVar")):
                continue
            hints[name] = Any
    return hints


def _build_fields(cls: type, hints: dict[str, Any]) -> Mapping[str, FieldSpec]:
    owners: dict[str, int] = {}
    for index, base in enumerate(cls.__mro__):
        for name in _raw_annotations(base):
            owners.setdefault(name, index)
    specs: dict[str, FieldSpec] = {}
    for name, hint in hints.items():
        if name.startswith("_"):
            continue
        spec = _field_spec(name, hint, owners.get(name))
        if spec is not None:
            specs[name] = spec
    return types.MappingProxyType(specs)


def class_fields(cls: type) -> Mapping[str, FieldSpec]:
    """Return the declared fields of *cls*, base-class fields first.

    ``ClassVar`` annotations and names starting with an underscore are
    skipped.  Results are cached per class for as long as the class is alive
    (a class whose fields name the class itself is never released).
    A class whose annotations cannot be resolved is logged at ``WARNING``
    and its fields map without type information.
    """
    fields = _FIELDS.get(cls)
    if fields is None:
        try:
            hints = _resolve_hints(cls)
        except NameError as exc:
            logger.warning(
                "cannot resolve annotations of %s (%s), its fields map without type "
                "information; decorate it with @json_model where it is defined",
                cls.__qualname__,
                exc,
            )
            hints = _unresolved_hints(cls)
        fields = _build_fields(cls, hints)
        _FIELDS[cls] = fields
    return fields


def json_model(cls: T) -> T:
    """Class decorator that validates JSON declarations where *cls* is defined.

    Evaluates the annotations of *cls* immediately, so a bad
    :func:`JsonProperty` raises :class:`InvalidMetadataError` from the class
    statement even under ``from __future__ import annotations``.  The locals
    of the defining scope are remembered, which lets classes declared inside
    functions refer to each other.  Apply it outermost::

        @json_model
        @dataclass
        class Order:
            lines: list[OrderLine] | None = None

    Names that are not defined yet (a class declared further down the
    module) do not fail: resolution is retried on first use.

    :raises InvalidMetadataError: If any annotation declares bad metadata.
    """
    frame = sys._getframe(1)
    if frame.f_locals is not frame.f_globals:
        setattr(cls, _LOCALNS_ATTR, dict(frame.f_locals))
    try:
        hints = _resolve_hints(cls)
    except NameError as exc:
        logger.debug("deferring field resolution for %s: %s", cls.__qualname__, exc)
        return cls
    _FIELDS[cls] = _build_fields(cls, hints)
    return cls


def property_names(instance: Any) -> list[str]:
    """Return the properties of *instance* that take part in mapping.

    Declared fields come first, followed by any other public attribute
    present on the instance itself.
    """
    names = list(class_fields(type(instance)))
    seen = set(names)
    for name in getattr(instance, "__dict__", {}):
        if name not in seen and not name.startswith("_"):
            names.append(name)
            seen.add(name)
    return names


def set_property_metadata(cls: type, property_name: str, metadata: Any) -> PropertyMetadata:
    """Register mapping rules for *property_name* on *cls*.

    Accepts the same forms as :meth:`PropertyMetadata.coerce`.  The last
    registration for a property wins and takes precedence over an
    ``Annotated`` declaration on the same class.

    :returns: The stored metadata record.
    :raises InvalidMetadataError: If *metadata* is not a string or a record.
    """
    record = PropertyMetadata.coerce(metadata, property_name)
    registry = cls.__dict__.get(_REGISTRY_ATTR)
    if registry is None:
        registry = {}
        setattr(cls, _REGISTRY_ATTR, registry)
    registry[property_name] = record
    return record


def get_property_metadata(cls_or_instance: Any, property_name: str) -> PropertyMetadata | None:
    """Return the metadata declared for a property, or ``None``.

    Classes are searched most-derived first.  On each class a registration
    wins over that class's own ``Annotated`` declaration.
    """
    cls = _class_of(cls_or_instance)
    spec = class_fields(cls).get(property_name)
    for index, base in enumerate(cls.__mro__):
        registry = base.__dict__.get(_REGISTRY_ATTR)
        if registry and property_name in registry:
            return registry[property_name]
        if spec is not None and spec.owner_index == index:
            return spec.metadata
    return spec.metadata if spec is not None else None


def get_declared_type(cls_or_instance: Any, property_name: str) -> type | None:
    """Return the statically declared class of a property.

    Works whether or not the property has metadata.  Generic annotations
    resolve to their runtime origin (``list[Item]`` gives ``list``) and
    ``Optional`` is unwrapped.  Returns ``None`` for undeclared properties
    and for ``Any``.
    """
    spec = class_fields(_class_of(cls_or_instance)).get(property_name)
    return spec.declared_type if spec is not None else None


def get_element_type(cls_or_instance: Any, property_name: str) -> type | None:
    """Return the element class for an array or nested-object property.

    Explicit ``element_type`` metadata wins over an element class taken
    from a ``list[Item]`` annotation.
    """
    metadata = get_property_metadata(cls_or_instance, property_name)
    if metadata is not None and metadata.element_type is not None:
        return metadata.element_type
    spec = class_fields(_class_of(cls_or_instance)).get(property_name)
    return spec.element_type if spec is not None else None
