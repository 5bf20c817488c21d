from dataclasses import dataclass, field
from typing import *

from .archive import ArchiveError, ArchiveReader, ArchiveWriter


@dataclass(frozen=True)
class LinearColor:
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0

    # property field names, in component order
    FIELDS: ClassVar[Tuple[str, ...]] = ("R", "G", "B", "A")

    def components(self) -> Tuple[float, ...]:
        return (self.r, self.g, self.b, self.a)

    def __str__(self):
        return f"({self.r:.3f}, {self.g:.3f}, {self.b:.3f}, {self.a:.3f})"


@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    FIELDS: ClassVar[Tuple[str, ...]] = ("X", "Y", "Z")

    def components(self) -> Tuple[float, ...]:
        return (self.x, self.y, self.z)

    def __str__(self):
        return f"({self.x:.3f}, {self.y:.3f}, {self.z:.3f})"


@dataclass(frozen=True)
class Vector2:
    x: float = 0.0
    y: float = 0.0

    FIELDS: ClassVar[Tuple[str, ...]] = ("X", "Y")

    def components(self) -> Tuple[float, ...]:
        return (self.x, self.y)

    def __str__(self):
        return f"({self.x:.3f}, {self.y:.3f})"


def read_components(reader: ArchiveReader, value_cls: type) -> Any:
    return value_cls(*(reader.read_f32() for _ in value_cls.FIELDS))


def write_components(writer: ArchiveWriter, value: Any) -> None:
    for c in value.components():
        writer.write_f32(c)


@dataclass
class RichCurveKey:
    """One FRichCurveKey: three mode bytes, a pad byte and six floats (28 bytes)."""
    interp_mode: int = 0
    tangent_mode: int = 0
    tangent_weight_mode: int = 0
    time: float = 0.0
    value: float = 0.0
    arrive_tangent: float = 0.0
    arrive_tangent_weight: float = 0.0
    leave_tangent: float = 0.0
    leave_tangent_weight: float = 0.0

    SERIALIZED_SIZE: ClassVar[int] = 28

    @classmethod
    def read(cls, reader: ArchiveReader) -> 'RichCurveKey':
        modes = [reader.read_u8() for _ in range(3)]
        reader.read_u8()  # padding
        floats = [reader.read_f32() for _ in range(6)]
        return cls(*modes, *floats)

    def write(self, writer: ArchiveWriter) -> None:
        writer.write_u8(self.interp_mode)
        writer.write_u8(self.tangent_mode)
        writer.write_u8(self.tangent_weight_mode)
        writer.write_u8(0)  # padding
        for v in (self.time, self.value, self.arrive_tangent, self.arrive_tangent_weight,
                  self.leave_tangent, self.leave_tangent_weight):
            writer.write_f32(v)


@dataclass
class RichCurve:
    default_value: float = 0.0
    pre_infinity_extrap: int = 0
    post_infinity_extrap: int = 0
    keys: List[RichCurveKey] = field(default_factory=list)

    @classmethod
    def read(cls, reader: ArchiveReader) -> 'RichCurve':
        default_value = reader.read_f32()
        pre = reader.read_u8()
        post = reader.read_u8()
        reader.read_bytes(2)  # padding
        key_count = reader.read_i32()
        if key_count < 0 or key_count * RichCurveKey.SERIALIZED_SIZE > reader.remaining:
            raise ArchiveError(f"Invalid curve key count {key_count}")
        keys = [RichCurveKey.read(reader) for _ in range(key_count)]
        return cls(default_value=default_value, pre_infinity_extrap=pre,
                   post_infinity_extrap=post, keys=keys)

    def write(self, writer: ArchiveWriter) -> None:
        writer.write_f32(self.default_value)
        writer.write_u8(self.pre_infinity_extrap)
        writer.write_u8(self.post_infinity_extrap)
        writer.write_bytes(b'\x00\x00')  # padding
        writer.write_i32(len(self.keys))
        for key in self.keys:
            key.write(writer)
