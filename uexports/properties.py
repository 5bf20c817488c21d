import inspect
import logging
from abc import ABC, abstractmethod
from typing import *

from .archive import ArchiveError, ArchiveReader, ArchiveWriter
from .structs import (LinearColor, Vector2, Vector3, read_components,
                      write_components)

logger = logging.getLogger(__name__)

NONE_NAME = "None"  # property list terminator

# native structs whose bodies are kept as raw bytes
_NATIVE_STRUCT_SIZES: Dict[str, int] = {
    "Guid": 16,
    "DateTime": 8,
    "Timespan": 8,
    "Quat": 16,
    "Rotator": 12,
    "Color": 4,
    "IntPoint": 8,
}


class PropertyError(ArchiveError):
    pass


def read_property(reader: ArchiveReader) -> Optional['Property']:
    name = reader.read_fstring()
    if name == NONE_NAME or name == "":
        return None

    prop_type = reader.read_fstring()
    size = reader.read_u32()
    array_index = reader.read_u32()

    return PropertyFactory.create_property(
        name=name,
        prop_type=prop_type,
        size=size,
        array_index=array_index,
        reader=reader,
    )


def write_property(writer: ArchiveWriter, prop: 'Property') -> None:
    body = ArchiveWriter()
    prop.write_value(body)
    payload = body.getvalue()

    writer.write_fstring(prop.name)
    writer.write_fstring(prop.type_name)
    writer.write_u32(len(payload))
    writer.write_u32(prop.array_index)
    prop.write_tag(writer)
    writer.write_u8(0)  # no property guid
    writer.write_bytes(payload)


def read_properties(reader: ArchiveReader) -> List['Property']:
    """Read tagged properties up to and including the "None" terminator."""
    properties = []
    while True:
        prop = read_property(reader)
        if prop is None:
            break
        properties.append(prop)
    return properties


def write_properties(writer: ArchiveWriter, properties: List['Property']) -> None:
    for prop in properties:
        write_property(writer, prop)

    writer.write_fstring(NONE_NAME)


def _expect_end(reader: ArchiveReader, end: int, what: str) -> None:
    if reader.position != end:
        raise PropertyError(
            f"{what} ended at offset {reader.position}, expected {end}")


class Property(ABC):
    def __init__(self, name: str, array_index: int = 0):
        self._name = name
        self._array_index = array_index

    @property
    def name(self) -> str:
        return self._name

    @property
    def array_index(self) -> int:
        return self._array_index

    @property
    def type_name(self) -> str:
        return self.__class__.__name__

    @property
    @abstractmethod
    def value(self) -> Any:
        pass

    @classmethod
    @abstractmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> 'Property':
        """Read the type-specific tag data, the guid flag and the value."""

    def write_tag(self, writer: ArchiveWriter) -> None:
        pass

    @abstractmethod
    def write_value(self, writer: ArchiveWriter) -> None:
        pass

    def __str__(self):
        return f"{self.type_name}(name={self._name}, value={self.value})"


class _NumericProperty(Property):
    KIND: ClassVar[str]
    SIZE: ClassVar[int]

    def __init__(self, name: str, value: Union[int, float], array_index: int = 0):
        super().__init__(name, array_index)
        self._value = value

    @property
    def value(self) -> Union[int, float]:
        return self._value

    @value.setter
    def value(self, v: Union[int, float]) -> None:
        self._value = v

    @classmethod
    def read_element(cls, name: str, reader: ArchiveReader) -> '_NumericProperty':
        return cls(name, getattr(reader, 'read_' + cls.KIND)())

    def write_element(self, writer: ArchiveWriter) -> None:
        getattr(writer, 'write_' + self.KIND)(self._value)

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> '_NumericProperty':
        reader.expect_zero("property guid")
        if size != cls.SIZE:
            raise PropertyError(f"{cls.__name__} {name} has size {size}, expected {cls.SIZE}")
        prop = cls.read_element(name, reader)
        prop._array_index = array_index
        return prop

    def write_value(self, writer: ArchiveWriter) -> None:
        self.write_element(writer)


class FloatProperty(_NumericProperty):
    KIND = 'f32'
    SIZE = 4


class DoubleProperty(_NumericProperty):
    KIND = 'f64'
    SIZE = 8


class IntProperty(_NumericProperty):
    KIND = 'i32'
    SIZE = 4


class Int64Property(_NumericProperty):
    KIND = 'i64'
    SIZE = 8


class UInt32Property(_NumericProperty):
    KIND = 'u32'
    SIZE = 4


class UInt64Property(_NumericProperty):
    KIND = 'u64'
    SIZE = 8


class BoolProperty(Property):
    def __init__(self, name: str, value: bool, array_index: int = 0):
        super().__init__(name, array_index)
        self._value = value

    @property
    def value(self) -> bool:
        return self._value

    @value.setter
    def value(self, v: bool) -> None:
        self._value = bool(v)

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> 'BoolProperty':
        # the value lives in the tag, so the size field is always 0
        value = bool(reader.read_u8())
        reader.expect_zero("property guid")
        return cls(name, value, array_index)

    def write_tag(self, writer: ArchiveWriter) -> None:
        writer.write_u8(1 if self._value else 0)

    def write_value(self, writer: ArchiveWriter) -> None:
        pass


class _StringProperty(Property):
    def __init__(self, name: str, value: str, array_index: int = 0):
        super().__init__(name, array_index)
        self._value = value

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, v: str) -> None:
        self._value = v

    @classmethod
    def read_element(cls, name: str, reader: ArchiveReader) -> '_StringProperty':
        return cls(name, reader.read_fstring())

    def write_element(self, writer: ArchiveWriter) -> None:
        writer.write_fstring(self._value)

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> '_StringProperty':
        reader.expect_zero("property guid")
        end = reader.position + size
        prop = cls.read_element(name, reader)
        _expect_end(reader, end, f"{cls.__name__} {name}")
        prop._array_index = array_index
        return prop

    def write_value(self, writer: ArchiveWriter) -> None:
        self.write_element(writer)


class StrProperty(_StringProperty):
    pass


class NameProperty(_StringProperty):
    pass


class ObjectProperty(_StringProperty):
    pass


class ByteProperty(Property):
    """Either a plain byte (enum name "None") or an enum value stored as a name."""

    def __init__(self, name: str, enum_name: str, value: Union[int, str], array_index: int = 0):
        super().__init__(name, array_index)
        self._enum_name = enum_name
        self._value = value

    @property
    def value(self) -> Union[int, str]:
        return self._value

    @property
    def enum_name(self) -> str:
        return self._enum_name

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> 'ByteProperty':
        enum_name = reader.read_fstring()
        reader.expect_zero("property guid")
        if size == 1:
            value = reader.read_u8()
        else:
            value = reader.read_fstring()
        return cls(name, enum_name, value, array_index)

    def write_tag(self, writer: ArchiveWriter) -> None:
        writer.write_fstring(self._enum_name)

    def write_value(self, writer: ArchiveWriter) -> None:
        if isinstance(self._value, int):
            writer.write_u8(self._value)
        else:
            writer.write_fstring(self._value)


class _RawProperty(Property):
    """Value kept as opaque bytes; only the size from the tag is trusted."""

    def __init__(self, name: str, raw: bytes, array_index: int = 0):
        super().__init__(name, array_index)
        self._raw = raw

    @property
    def value(self) -> bytes:
        return self._raw

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> '_RawProperty':
        reader.expect_zero("property guid")
        return cls(name, reader.read_bytes(size), array_index)

    def write_value(self, writer: ArchiveWriter) -> None:
        writer.write_bytes(self._raw)

    def __str__(self):
        return f"{self.type_name}(name={self._name}, value=<bytes len={len(self._raw)}>)"


class TextProperty(_RawProperty):
    pass


class MapProperty(Property):
    def __init__(self, name: str, key_type: str, value_type: str, raw: bytes, array_index: int = 0):
        super().__init__(name, array_index)
        self._key_type = key_type
        self._value_type = value_type
        self._raw = raw

    @property
    def value(self) -> Dict[str, Any]:
        return {"__key_type": self._key_type, "__value_type": self._value_type, "__raw": self._raw}

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> 'MapProperty':
        key_type = reader.read_fstring()
        value_type = reader.read_fstring()
        reader.expect_zero("property guid")
        return cls(name, key_type, value_type, reader.read_bytes(size), array_index)

    def write_tag(self, writer: ArchiveWriter) -> None:
        writer.write_fstring(self._key_type)
        writer.write_fstring(self._value_type)

    def write_value(self, writer: ArchiveWriter) -> None:
        writer.write_bytes(self._raw)

    def __str__(self):
        return (f"MapProperty(name={self._name}, key_type={self._key_type}, "
                f"value_type={self._value_type}, raw_size={len(self._raw)})")


class StructProperty(Property):
    """A struct serialized as its own tagged property list.

    Natively serialized core structs never come back as a StructProperty:
    LinearColor/Vector/Vector2D bodies become composite properties, and the
    other fixed-size natives keep their body in ``raw``.
    """

    def __init__(self, name: str, struct_type: str, fields: List[Property],
                 guid: Optional[str] = None, array_index: int = 0, raw: Optional[bytes] = None):
        super().__init__(name, array_index)
        self._struct_type = struct_type
        self._guid = guid
        self._fields = fields
        self._raw = raw

    @property
    def value(self) -> Dict[str, Any]:
        return {
            "__type": self._struct_type,
            "__guid": self._guid,
            "__fields": self._fields,
        }

    @property
    def struct_type(self) -> str:
        return self._struct_type

    @property
    def guid(self) -> Optional[str]:
        return self._guid

    @property
    def fields(self) -> List[Property]:
        return self._fields

    @property
    def raw(self) -> Optional[bytes]:
        return self._raw

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> Property:
        struct_type = reader.read_fstring()
        guid = reader.read_guid()
        reader.expect_zero("property guid")

        composite = _COMPOSITE_STRUCTS.get(struct_type)
        if composite is not None and size == composite.SIZE:
            value = read_components(reader, composite.VALUE_CLS)
            return composite(name, value, guid=guid, array_index=array_index)
        if _NATIVE_STRUCT_SIZES.get(struct_type) == size:
            return cls(name, struct_type, [], guid=guid, array_index=array_index,
                       raw=reader.read_bytes(size))

        fields = []
        end = reader.position + size
        while reader.position < end:
            field = read_property(reader)
            if field is None:
                break
            fields.append(field)
        _expect_end(reader, end, f"StructProperty {name} ({struct_type})")

        return cls(name, struct_type, fields, guid=guid, array_index=array_index)

    def write_tag(self, writer: ArchiveWriter) -> None:
        writer.write_fstring(self._struct_type)
        writer.write_guid(self._guid)

    def write_value(self, writer: ArchiveWriter) -> None:
        if self._raw is not None:
            writer.write_bytes(self._raw)
            return
        write_properties(writer, self._fields)

    def __str__(self):
        return f"StructProperty(name={self._name}, type={self._struct_type}, fields={len(self._fields)})"


class _CompositeStructProperty(Property):
    """A core struct stored as one fixed-layout value instead of tagged fields."""
    STRUCT_TYPE: ClassVar[str]
    VALUE_CLS: ClassVar[type]
    SIZE: ClassVar[int]

    def __init__(self, name: str, value: Any, guid: Optional[str] = None, array_index: int = 0):
        super().__init__(name, array_index)
        self._guid = guid
        self.value = value

    @property
    def type_name(self) -> str:
        return "StructProperty"

    @property
    def struct_type(self) -> str:
        return self.STRUCT_TYPE

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, v: Any) -> None:
        if not isinstance(v, self.VALUE_CLS):
            raise TypeError(f"{self.__class__.__name__} expects {self.VALUE_CLS.__name__}, got {type(v).__name__}")
        self._value = v

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> Property:
        return StructProperty.from_archive(name, size, array_index, reader)

    def write_tag(self, writer: ArchiveWriter) -> None:
        writer.write_fstring(self.STRUCT_TYPE)
        writer.write_guid(self._guid)

    def write_value(self, writer: ArchiveWriter) -> None:
        write_components(writer, self._value)

    def __str__(self):
        return f"{self.__class__.__name__}(name={self._name}, value={self._value})"


class LinearColorProperty(_CompositeStructProperty):
    STRUCT_TYPE = "LinearColor"
    VALUE_CLS = LinearColor
    SIZE = 16


class VectorProperty(_CompositeStructProperty):
    STRUCT_TYPE = "Vector"
    VALUE_CLS = Vector3
    SIZE = 12


class Vector2DProperty(_CompositeStructProperty):
    STRUCT_TYPE = "Vector2D"
    VALUE_CLS = Vector2
    SIZE = 8


_COMPOSITE_STRUCTS: Dict[str, Type[_CompositeStructProperty]] = {
    c.STRUCT_TYPE: c for c in (LinearColorProperty, VectorProperty, Vector2DProperty)
}


def composite_property_class(value_cls: type) -> Type[_CompositeStructProperty]:
    for composite in _COMPOSITE_STRUCTS.values():
        if composite.VALUE_CLS is value_cls:
            return composite
    raise KeyError(f"No composite property holds {value_cls.__name__}")


class ArrayProperty(Property):
    """Array of properties sharing one inner type.

    Float/Int/Str/Name-style elements are property objects carrying the
    array's name; struct elements are full tagged properties terminated by
    "None"; Byte and unknown inner types keep their payload as raw bytes.
    """

    def __init__(self, name: str, inner_type: str, values: Union[bytes, List[Property]],
                 array_index: int = 0, count: Optional[int] = None):
        super().__init__(name, array_index)
        self._inner_type = inner_type
        self._values = values
        self._count = count

    @property
    def value(self) -> Dict[str, Any]:
        return {"__array_type": self._inner_type, "__values": self._values}

    @property
    def inner_type(self) -> str:
        return self._inner_type

    @property
    def values(self) -> Union[bytes, List[Property]]:
        return self._values

    def __getitem__(self, index: int) -> Any:
        return self._values[index]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    @classmethod
    def from_archive(cls, name: str, size: int, array_index: int, reader: ArchiveReader) -> 'ArrayProperty':
        inner_type = reader.read_fstring()
        reader.expect_zero("property guid")
        end = reader.position + size
        count = reader.read_i32()
        if count < 0:
            raise PropertyError(f"ArrayProperty {name} has negative length {count}")

        element_cls = PropertyFactory.element_class(inner_type)
        if inner_type == "StructProperty":
            values = []
            while reader.position < end:
                elem = read_property(reader)
                if elem is None:
                    break
                values.append(elem)
        elif element_cls is not None:
            values = [element_cls.read_element(name, reader) for _ in range(count)]
        else:
            # fallback: store raw bytes for byte arrays and unknown inner types
            values = reader.read_bytes(end - reader.position)
        _expect_end(reader, end, f"ArrayProperty {name} ({inner_type})")

        return cls(name, inner_type, values, array_index=array_index, count=count)

    def write_tag(self, writer: ArchiveWriter) -> None:
        writer.write_fstring(self._inner_type)

    def write_value(self, writer: ArchiveWriter) -> None:
        if isinstance(self._values, (bytes, bytearray)):
            count = len(self._values) if self._inner_type == "ByteProperty" else self._count
            writer.write_i32(count or 0)
            writer.write_bytes(self._values)
            return
        writer.write_i32(len(self._values))
        if self._inner_type == "StructProperty":
            write_properties(writer, self._values)
            return
        for elem in self._values:
            elem.write_element(writer)

    def __str__(self):
        return f"ArrayProperty(name={self._name}, inner_type={self._inner_type}, length={len(self._values)})"


class PropertyFactory:
    _TYPE_MAP: Dict[str, Type[Property]] = {}

    @classmethod
    def _build_type_map(cls):
        pending = list(Property.__subclasses__())
        while pending:
            subclass = pending.pop()
            pending.extend(subclass.__subclasses__())
            if subclass.__name__.startswith('_') or inspect.isabstract(subclass):
                continue
            cls._TYPE_MAP[subclass.__name__] = subclass

    @classmethod
    def property_class(cls, prop_type: str) -> Optional[Type[Property]]:
        if not cls._TYPE_MAP:
            cls._build_type_map()
        return cls._TYPE_MAP.get(prop_type)

    @classmethod
    def element_class(cls, inner_type: str) -> Optional[Type[Property]]:
        prop_cls = cls.property_class(inner_type)
        if prop_cls is None or not hasattr(prop_cls, 'read_element'):
            return None
        return prop_cls

    @classmethod
    def create_property(cls, name: str, prop_type: str, size: int, array_index: int,
                        reader: ArchiveReader) -> Property:
        prop_cls = cls.property_class(prop_type)
        if prop_cls is None:
            raise PropertyError(f"Unknown property type {prop_type!r} for {name!r}")
        return prop_cls.from_archive(name, size, array_index, reader)
