"""Shader lookup tables: flat float arrays read as fixed-width tuples.

Niagara curve data interfaces bake their curves into a ``ShaderLUT`` array of
plain floats, laid out as ``[R0, G0, B0, A0, R1, G1, ...]`` for colors (and
likewise for 1, 2 and 3 component curves) so the GPU can sample it directly.
"""
import logging
from typing import *

from .archive import ArchiveReader, ArchiveWriter

logger = logging.getLogger(__name__)

T = TypeVar('T')


def value_width(value_cls: type) -> int:
    if value_cls is float:
        return 1
    return len(value_cls.FIELDS)


def pack_value(value_cls: type, components: Sequence[float]) -> Any:
    if value_cls is float:
        return float(components[0])
    return value_cls(*components)


def unpack_value(value: Any) -> Tuple[float, ...]:
    if isinstance(value, (int, float)):
        return (float(value),)
    return value.components()


class FlatWindowProjector:
    """Maps a flat scalar sequence onto tuples of ``width`` consecutive items.

    Tuple ``i`` always covers positions ``[i*width, i*width + width)``; the
    ``n % width`` trailing items belong to no tuple and are never touched.
    """

    def __init__(self, width: int):
        if width not in (1, 2, 3, 4):
            raise ValueError(f"Window width must be 1-4, got {width}")
        self._width = width

    @property
    def width(self) -> int:
        return self._width

    def count(self, flat_length: int) -> int:
        return flat_length // self._width

    def project(self, flat: Sequence[float]) -> List[Tuple[float, ...]]:
        w = self._width
        return [tuple(flat[i * w: i * w + w]) for i in range(self.count(len(flat)))]

    def scatter(self, tuples: Iterable[Sequence[float]], dest: MutableSequence[float]) -> int:
        """Write tuples back over ``dest`` in place; returns how many were written.

        Stops at the first tuple that would not fit whole. ``dest`` is never
        resized.
        """
        w = self._width
        written = 0
        for components in tuples:
            if len(components) != w:
                raise ValueError(f"Expected {w} components, got {len(components)}")
            start = written * w
            if len(dest) - start < w:
                break
            for k in range(w):
                dest[start + k] = components[k]
            written += 1
        return written


class ShaderLUT(Generic[T]):
    def __init__(self, value_cls: type, values: Optional[List[T]] = None):
        self._value_cls = value_cls
        self._projector = FlatWindowProjector(value_width(value_cls))
        self.values: List[T] = values if values is not None else []

    @property
    def value_cls(self) -> type:
        return self._value_cls

    @property
    def width(self) -> int:
        return self._projector.width

    @property
    def projector(self) -> FlatWindowProjector:
        return self._projector

    @property
    def float_count(self) -> int:
        return len(self.values) * self.width

    @classmethod
    def from_floats(cls, value_cls: type, flat: Sequence[float]) -> 'ShaderLUT':
        lut = cls(value_cls)
        lut.values = [pack_value(value_cls, t) for t in lut._projector.project(flat)]
        orphans = len(flat) % lut.width
        if orphans:
            logger.debug("ShaderLUT of %d floats leaves %d orphan float(s)", len(flat), orphans)
        return lut

    def to_floats(self) -> List[float]:
        flat: List[float] = []
        for v in self.values:
            flat.extend(unpack_value(v))
        return flat

    @classmethod
    def read(cls, reader: ArchiveReader, value_cls: type, float_count: int) -> 'ShaderLUT':
        """Read ``float_count`` packed floats; a partial trailing tuple is consumed and dropped."""
        flat = [reader.read_f32() for _ in range(float_count)]
        return cls.from_floats(value_cls, flat)

    def write(self, writer: ArchiveWriter) -> None:
        for f in self.to_floats():
            writer.write_f32(f)

    def __len__(self) -> int:
        return len(self.values)

    def get_value(self, index: int) -> Optional[T]:
        if 0 <= index < len(self.values):
            return self.values[index]
        return None

    def set_value(self, index: int, value: T) -> None:
        if 0 <= index < len(self.values):
            self.values[index] = value

    def set_all_values(self, value: T) -> None:
        for i in range(len(self.values)):
            self.values[i] = value

    def __str__(self):
        return f"ShaderLUT<{self._value_cls.__name__}>(count={len(self.values)})"
