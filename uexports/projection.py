"""Typed views over arrays inside a property bag.

A projection finds a named ``ArrayProperty`` in a bag, turns its elements into
plain values (floats, ints, ``LinearColor``, ``Vector3``...) and, right before
the bag is written, pushes the values back into the very same element
objects. The bag itself is never reordered, resized or replaced.
"""
import logging
from abc import ABC, abstractmethod
from typing import *

from .lut import ShaderLUT, unpack_value, value_width
from .properties import (ArrayProperty, FloatProperty, IntProperty, Property,
                         StructProperty, composite_property_class)

logger = logging.getLogger(__name__)

T = TypeVar('T')

Names = Union[str, Sequence[str]]


def _as_names(names: Names) -> Tuple[str, ...]:
    if isinstance(names, str):
        return (names,)
    return tuple(names)


def locate_array(bag: Sequence[Property], names: Names) -> Optional[Tuple[int, ArrayProperty]]:
    """Return ``(index, array)`` for the first array property named one of ``names``."""
    accepted = _as_names(names)
    for index, prop in enumerate(bag):
        if prop.name in accepted and isinstance(prop, ArrayProperty):
            return index, prop
    return None


class ElementAdapter(ABC, Generic[T]):
    @abstractmethod
    def read(self, element: Property) -> Optional[T]:
        """Typed value of ``element``, or None if this adapter does not handle it."""

    @abstractmethod
    def write(self, element: Property, value: T) -> bool:
        pass


class ScalarAdapter(ElementAdapter):
    def __init__(self, prop_cls: Type[Property]):
        self._prop_cls = prop_cls
        self._coerce = int if issubclass(prop_cls, IntProperty) else float

    def read(self, element: Property) -> Optional[Union[int, float]]:
        if isinstance(element, self._prop_cls):
            return element.value
        return None

    def write(self, element: Property, value: Union[int, float]) -> bool:
        if not isinstance(element, self._prop_cls):
            return False
        element.value = self._coerce(value)
        return True


class DualEncodingAdapter(ElementAdapter):
    """Reads a color/vector element stored either as tagged float fields or as one composite value.

    Struct elements keep any fields it does not recognize; missing recognized
    fields take the value type's defaults (alpha 1.0, everything else 0.0).
    """

    def __init__(self, value_cls: type):
        self._value_cls = value_cls
        self._fields = value_cls.FIELDS
        self._defaults = value_cls().components()
        self._composite_cls = composite_property_class(value_cls)

    @property
    def value_cls(self) -> type:
        return self._value_cls

    def read(self, element: Property) -> Any:
        if isinstance(element, StructProperty):
            if element.raw is not None:
                return None
            components = list(self._defaults)
            for field in element.fields:
                if isinstance(field, FloatProperty) and field.name in self._fields:
                    components[self._fields.index(field.name)] = field.value
            return self._value_cls(*components)
        if isinstance(element, self._composite_cls):
            return element.value
        return None

    def write(self, element: Property, value: Any) -> bool:
        if isinstance(element, StructProperty) and element.raw is None:
            components = value.components()
            for field in element.fields:
                if isinstance(field, FloatProperty) and field.name in self._fields:
                    field.value = components[self._fields.index(field.name)]
            return True
        if isinstance(element, self._composite_cls):
            element.value = value
            return True
        return False


class TypedArrayProjection(ABC, Generic[T]):
    def __init__(self, names: Names):
        self._names = _as_names(names)
        self.values: List[T] = []
        self._source_index: Optional[int] = None

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    @property
    def source_index(self) -> Optional[int]:
        return self._source_index

    @property
    def present(self) -> bool:
        return self._source_index is not None

    def parse(self, bag: Sequence[Property]) -> None:
        self.values = []
        self._source_index = None
        found = locate_array(bag, self._names)
        if found is None:
            logger.debug("No array named %s; projection left empty", "/".join(self._names))
            return
        self._source_index, array = found
        self._materialize(array)
        logger.debug("Projected %d value(s) from %s at index %d",
                     len(self.values), array.name, self._source_index)

    def count(self) -> int:
        return len(self.values)

    def get(self, index: int) -> Optional[T]:
        if 0 <= index < len(self.values):
            return self.values[index]
        return None

    def set(self, index: int, value: T) -> None:
        if 0 <= index < len(self.values):
            self.values[index] = value

    def set_all(self, value: T) -> None:
        for i in range(len(self.values)):
            self.values[i] = value

    def sync_to_source(self, bag: Sequence[Property]) -> None:
        """Copy the current values into the array they were read from."""
        if self._source_index is None:
            return
        if self._source_index >= len(bag) or not isinstance(bag[self._source_index], ArrayProperty):
            logger.warning("Property at index %d is no longer an array; %s not written back",
                           self._source_index, "/".join(self._names))
            return
        self._write_back(bag[self._source_index])

    @abstractmethod
    def _materialize(self, array: ArrayProperty) -> None:
        pass

    @abstractmethod
    def _write_back(self, array: ArrayProperty) -> None:
        pass

    def __str__(self):
        return f"{self.__class__.__name__}(names={'/'.join(self._names)}, count={len(self.values)})"


class ElementArrayProjection(TypedArrayProjection):
    """One value per array element, decoded by an ElementAdapter.

    Each value remembers the slot it came from, so elements skipped as
    malformed do not shift the write-back of the ones after them.
    """

    def __init__(self, names: Names, adapter: ElementAdapter):
        super().__init__(names)
        self._adapter = adapter
        self._slots: List[int] = []

    @property
    def adapter(self) -> ElementAdapter:
        return self._adapter

    def _materialize(self, array: ArrayProperty) -> None:
        self._slots = []
        if isinstance(array.values, (bytes, bytearray)):
            return
        for slot, element in enumerate(array.values):
            value = self._adapter.read(element)
            if value is None:
                logger.debug("Skipping %s element %d of unexpected kind %s",
                             array.name, slot, element.__class__.__name__)
                continue
            self.values.append(value)
            self._slots.append(slot)

    def _write_back(self, array: ArrayProperty) -> None:
        if isinstance(array.values, (bytes, bytearray)):
            return
        for slot, value in zip(self._slots, self.values):
            if slot < len(array.values):
                self._adapter.write(array.values[slot], value)


class ShaderLUTProjection(TypedArrayProjection):
    """A ``ShaderLUT`` float array read ``width`` floats at a time.

    Non-float elements inside the array read as 0.0 and are never written.
    """

    def __init__(self, value_cls: type, names: Names = "ShaderLUT"):
        super().__init__(names)
        self._value_cls = value_cls

    @property
    def width(self) -> int:
        return value_width(self._value_cls)

    @property
    def lut(self) -> ShaderLUT:
        return ShaderLUT(self._value_cls, self.values)

    @staticmethod
    def _flatten(array: ArrayProperty) -> List[float]:
        if isinstance(array.values, (bytes, bytearray)):
            return []
        return [e.value if isinstance(e, FloatProperty) else 0.0 for e in array.values]

    def _materialize(self, array: ArrayProperty) -> None:
        self.values = ShaderLUT.from_floats(self._value_cls, self._flatten(array)).values

    def _write_back(self, array: ArrayProperty) -> None:
        flat = self._flatten(array)
        lut = self.lut
        written = lut.projector.scatter((unpack_value(v) for v in self.values), flat)
        for slot in range(written * lut.width):
            element = array.values[slot]
            if isinstance(element, FloatProperty):
                element.value = flat[slot]
