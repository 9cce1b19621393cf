"""Tests for mapping JSON data onto class instances."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Annotated, Any

from jsonmap.mapper import deserialize, deserialize_into
from jsonmap.metadata import Converter, JsonProperty, json_model, set_property_metadata

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@dataclass
class Inner:
    x: int = 0


@dataclass
class Flat:
    name: str = ""
    count: int = 0
    active: bool = False


@dataclass
class Renamed:
    foo: Annotated[int, JsonProperty("bar")] = 0


@dataclass
class Converted:
    n: Annotated[int, JsonProperty(converter=Converter(to_json=str, from_json=int))] = 0


@dataclass
class KeyedConverted:
    when: Annotated[
        str | None,
        JsonProperty("ts", converter=Converter(to_json=str, from_json=lambda v: f"@{v}")),
    ] = None


@dataclass
class Outer:
    inner: Inner | None = None
    label: str = ""


@dataclass
class Container:
    items: Annotated[list, JsonProperty(element_type=Inner)] = None


@dataclass
class RenamedContainer:
    items: Annotated[list, JsonProperty("things", element_type=Inner)] = None


@dataclass
class Generic:
    items: list[Inner] | None = None
    points: Sequence[Inner] | None = None
    pairs: tuple[Inner, ...] | None = None


@dataclass
class Untyped:
    values: list | None = None
    scores: list[int] | None = None
    tags: Annotated[list, JsonProperty("labels")] = None


@dataclass
class PrimitiveElements:
    values: Annotated[list, JsonProperty(element_type=int)] = None


@dataclass
class Loose:
    anything: Any = None
    attributes: dict[str, Any] | None = None


@dataclass
class Tree:
    value: int = 0
    children: Annotated[list, JsonProperty(element_type=Inner)] = None
    parent: Outer | None = None


class Legacy:
    def __init__(self):
        self.code = "default"
        self.count = 0


class Account:
    owner: Inner

    def __init__(self):
        self.owner = None
        self.balance = 0


set_property_metadata(Account, "balance", "amount")


@dataclass
class Base:
    ident: Annotated[str, JsonProperty("id")] = ""


@dataclass
class Derived(Base):
    extra: int = 0


# ---------------------------------------------------------------------------
# Absence and root handling
# ---------------------------------------------------------------------------


class TestAbsence:
    def test_no_class(self):
        assert deserialize(None, {}) is None

    def test_no_json(self):
        assert deserialize(Flat, None) is None

    def test_non_object_root(self):
        assert deserialize(Flat, 5) is None
        assert deserialize(Flat, "x") is None
        assert deserialize(Flat, True) is None

    def test_array_root(self):
        assert deserialize(Flat, [{"name": "a"}]) is None

    def test_empty_object_gives_instance(self):
        result = deserialize(Flat, {})
        assert isinstance(result, Flat)

    def test_missing_fields_become_none(self):
        result = deserialize(Flat, {"name": "a"})
        assert result.name == "a"
        assert result.count is None
        assert result.active is None

    def test_unknown_keys_ignored(self):
        result = deserialize(Flat, {"name": "a", "other": 1})
        assert not hasattr(result, "other")


# ---------------------------------------------------------------------------
# Direct and remapped keys
# ---------------------------------------------------------------------------


class TestKeys:
    def test_direct_mapping(self):
        result = deserialize(Flat, {"name": "a", "count": 3, "active": True})
        assert result == Flat(name="a", count=3, active=True)

    def test_json_key(self):
        assert deserialize(Renamed, {"bar": 5}).foo == 5

    def test_property_name_not_used_when_remapped(self):
        assert deserialize(Renamed, {"foo": 5}).foo is None

    def test_plain_class_uses_instance_attributes(self):
        result = deserialize(Legacy, {"code": "A1"})
        assert result.code == "A1"
        assert result.count is None

    def test_registered_key_and_declared_type(self):
        result = deserialize(Account, {"owner": {"x": 4}, "amount": 10})
        assert result.owner == Inner(x=4)
        assert result.balance == 10

    def test_inherited_metadata(self):
        result = deserialize(Derived, {"id": "abc", "extra": 2})
        assert result.ident == "abc"
        assert result.extra == 2


# ---------------------------------------------------------------------------
# Custom converters
# ---------------------------------------------------------------------------


class TestConverters:
    def test_from_json(self):
        assert deserialize(Converted, {"n": "42"}).n == 42

    def test_uses_json_key(self):
        assert deserialize(KeyedConverted, {"ts": "noon"}).when == "@noon"

    def test_receives_none_when_missing(self):
        seen = []

        @dataclass
        class Recorder:
            value: Any = None

        set_property_metadata(
            Recorder, "value", {"converter": {"to_json": str, "from_json": seen.append}}
        )
        deserialize(Recorder, {})
        assert seen == [None]


# ---------------------------------------------------------------------------
# Nested objects
# ---------------------------------------------------------------------------


class TestNestedObjects:
    def test_nested_instance(self):
        result = deserialize(Outer, {"inner": {"x": 1}, "label": "l"})
        assert isinstance(result.inner, Inner)
        assert result.inner.x == 1
        assert result.label == "l"

    def test_missing_nested_is_none(self):
        assert deserialize(Outer, {"label": "l"}).inner is None

    def test_null_nested_is_none(self):
        assert deserialize(Outer, {"inner": None}).inner is None

    def test_primitive_where_object_expected(self):
        assert deserialize(Outer, {"inner": 7}).inner is None

    def test_deep_nesting(self):
        data = {"value": 1, "children": [{"x": 2}], "parent": {"inner": {"x": 3}}}
        result = deserialize(Tree, data)
        assert result.children == [Inner(x=2)]
        assert result.parent.inner == Inner(x=3)
        assert result.parent.label is None

    def test_fresh_instances_per_call(self):
        data = {"inner": {"x": 1}}
        first = deserialize(Outer, data)
        second = deserialize(Outer, data)
        assert first.inner is not second.inner


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------


class TestArrays:
    def test_element_type(self):
        result = deserialize(Container, {"items": [{"x": 1}, {"x": 2}]})
        assert result.items == [Inner(x=1), Inner(x=2)]
        assert all(isinstance(item, Inner) for item in result.items)

    def test_element_type_with_json_key(self):
        result = deserialize(RenamedContainer, {"things": [{"x": 9}]})
        assert result.items == [Inner(x=9)]

    def test_absent_array_is_none(self):
        assert deserialize(Container, {}).items is None

    def test_null_array_is_none(self):
        assert deserialize(Container, {"items": None}).items is None

    def test_non_array_value_is_none(self):
        assert deserialize(Container, {"items": {"x": 1}}).items is None

    def test_empty_array_stays_empty(self):
        assert deserialize(Container, {"items": []}).items == []

    def test_null_element(self):
        result = deserialize(Container, {"items": [{"x": 1}, None]})
        assert result.items == [Inner(x=1), None]

    def test_generic_annotations_supply_element_type(self):
        data = {"items": [{"x": 1}], "points": [{"x": 2}], "pairs": [{"x": 3}]}
        result = deserialize(Generic, data)
        assert result.items == [Inner(x=1)]
        assert result.points == [Inner(x=2)]
        assert result.pairs == [Inner(x=3)]

    def test_unknown_element_type_passes_through(self):
        data = {"values": [1, "a"], "scores": [3, 4], "labels": ["t"]}
        result = deserialize(Untyped, data)
        assert result.values == [1, "a"]
        assert result.scores == [3, 4]
        assert result.tags == ["t"]

    def test_passthrough_keeps_same_list(self):
        values = [{"x": 1}]
        result = deserialize(Untyped, {"values": values})
        assert result.values is values

    def test_primitive_element_type_maps_items_to_none(self):
        result = deserialize(PrimitiveElements, {"values": [1, 2]})
        assert result.values == [None, None]


# ---------------------------------------------------------------------------
# Untyped properties
# ---------------------------------------------------------------------------


class TestPassthrough:
    def test_any_passes_through(self):
        payload = {"nested": [1, {"a": 2}]}
        result = deserialize(Loose, {"anything": payload})
        assert result.anything is payload

    def test_dict_passes_through(self):
        result = deserialize(Loose, {"attributes": {"k": "v"}})
        assert result.attributes == {"k": "v"}


# ---------------------------------------------------------------------------
# Classes defined inside functions
# ---------------------------------------------------------------------------


class TestLocalClasses:
    def test_decorated_local_classes_nest(self, caplog):
        @json_model
        @dataclass
        class Wheel:
            size: int = 0

        @json_model
        @dataclass
        class Bike:
            front: Wheel | None = None
            wheels: list[Wheel] | None = None

        with caplog.at_level(logging.WARNING, logger="jsonmap.metadata"):
            bike = deserialize(Bike, {"front": {"size": 26}, "wheels": [{"size": 27}]})
        assert bike.front == Wheel(size=26)
        assert bike.wheels == [Wheel(size=27)]
        assert caplog.records == []

    def test_undecorated_local_reference_warns(self, caplog):
        @dataclass
        class Wheel:
            size: int = 0

        @dataclass
        class Bike:
            front: Wheel | None = None

        with caplog.at_level(logging.WARNING, logger="jsonmap.metadata"):
            bike = deserialize(Bike, {"front": {"size": 26}})
        assert bike.front == {"size": 26}
        assert "cannot resolve annotations of" in caplog.text
        assert "Bike" in caplog.text


# ---------------------------------------------------------------------------
# deserialize_into
# ---------------------------------------------------------------------------


class TestDeserializeInto:
    def test_updates_in_place(self):
        target = Flat(name="old", count=1, active=True)
        deserialize_into(target, {"name": "new"})
        assert target.name == "new"
        assert target.count is None
        assert target.active is None

    def test_returns_none(self):
        assert deserialize_into(Flat(), {"name": "x"}) is None

    def test_none_instance_is_noop(self):
        deserialize_into(None, {"name": "x"})

    def test_none_json_is_noop(self):
        target = Flat(name="keep")
        deserialize_into(target, None)
        assert target.name == "keep"

    def test_non_object_json_clears_properties(self):
        target = Flat(name="keep")
        deserialize_into(target, 5)
        assert target.name is None


# ---------------------------------------------------------------------------
# Debug logging
# ---------------------------------------------------------------------------


class TestDebug:
    def test_logs_each_property(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="jsonmap.mapper"):
            deserialize(Renamed, {"bar": 5}, debug=True)
        assert len(caplog.records) == 1
        message = caplog.messages[0]
        assert "Renamed.foo" in message
        assert "'original_value': 0" in message
        assert "'new_value': 5" in message

    def test_propagates_to_nested(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="jsonmap.mapper"):
            deserialize(Outer, {"inner": {"x": 1}}, debug=True)
        assert any("Inner.x" in m for m in caplog.messages)
        assert any("Outer.inner" in m for m in caplog.messages)

    def test_silent_by_default(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="jsonmap.mapper"):
            deserialize(Renamed, {"bar": 5})
        assert caplog.records == []

    def test_does_not_change_result(self):
        assert deserialize(Tree, {"value": 3}, debug=True) == deserialize(Tree, {"value": 3})
