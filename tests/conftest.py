"""
Shared builders for property bags and serialized exports.
"""

from typing import Callable, Iterable, List

import pytest

from uexports import (ArchiveWriter, ArrayProperty, FloatProperty,
                      GameplayTagContainer, IntProperty, LinearColor,
                      LinearColorProperty, Property, StructProperty,
                      write_properties)


def _bag_bytes(bag: List[Property]) -> bytes:
    writer = ArchiveWriter()
    write_properties(writer, bag)
    return writer.getvalue()


def _float_array(name: str, values: Iterable[float]) -> ArrayProperty:
    return ArrayProperty(name, "FloatProperty", [FloatProperty(name, v) for v in values])


def _int_array(name: str, values: Iterable[int]) -> ArrayProperty:
    return ArrayProperty(name, "IntProperty", [IntProperty(name, v) for v in values])


def _field_struct(name: str, struct_type: str, **fields: float) -> StructProperty:
    return StructProperty(name, struct_type, [FloatProperty(k, v) for k, v in fields.items()])


def _records(namespace: str, records, tagged: bool, trailing=None) -> bytes:
    """Serialize string table records; in tagged mode each record is (key, value, tags)."""
    writer = ArchiveWriter()
    writer.write_fstring(namespace)
    writer.write_i32(len(records))
    for record in records:
        writer.write_fstring(record[0])
        writer.write_fstring(record[1])
        if tagged:
            GameplayTagContainer(list(record[2])).write(writer)
    if tagged:
        GameplayTagContainer(list(trailing or [])).write(writer)
    return writer.getvalue()


@pytest.fixture
def bag_bytes() -> Callable[[List[Property]], bytes]:
    return _bag_bytes


@pytest.fixture
def float_array() -> Callable[..., ArrayProperty]:
    return _float_array


@pytest.fixture
def int_array() -> Callable[..., ArrayProperty]:
    return _int_array


@pytest.fixture
def field_struct() -> Callable[..., StructProperty]:
    return _field_struct


@pytest.fixture
def string_table_bytes() -> Callable[..., bytes]:
    return _records


@pytest.fixture
def mixed_color_array() -> ArrayProperty:
    """ColorData with struct, composite, malformed and struct elements, in that order."""
    return ArrayProperty("ColorData", "StructProperty", [
        StructProperty("ColorData", "LinearColor", [
            FloatProperty("R", 0.5),
            FloatProperty("G", 0.25),
            FloatProperty("Custom", 7.0),
        ]),
        LinearColorProperty("ColorData", LinearColor(0.0, 1.0, 0.0, 0.5)),
        IntProperty("ColorData", 3),
        _field_struct("ColorData", "LinearColor", R=1.0, G=1.0, B=1.0, A=0.75),
    ])
