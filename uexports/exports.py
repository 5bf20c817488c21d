import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import *

from .archive import ArchiveError, ArchiveReader, ArchiveWriter
from .compression import decompress_payload
from .lut import ShaderLUT
from .projection import (DualEncodingAdapter, ElementArrayProjection,
                         ScalarAdapter, ShaderLUTProjection,
                         TypedArrayProjection)
from .properties import (FloatProperty, IntProperty, Property,
                         read_properties, write_properties)
from .string_table import StringTable, read_string_table, write_string_table
from .structs import LinearColor, Vector2, Vector3

logger = logging.getLogger(__name__)


class Export:
    """A serialized object: its tagged property bag plus any unparsed tail.

    ``extras`` holds the bytes between the end of what the export understands
    and ``next_starting``; they are written back untouched.
    """
    CLASS_NAME: ClassVar[str] = ""

    def __init__(self, data: Optional[List[Property]] = None):
        self.data: List[Property] = data if data is not None else []
        self.extras: bytes = b""

    @property
    def projections(self) -> List[TypedArrayProjection]:
        return []

    def read(self, reader: ArchiveReader, next_starting: int) -> None:
        self.data = read_properties(reader)
        for projection in self.projections:
            projection.parse(self.data)

    def sync_before_write(self) -> None:
        for projection in self.projections:
            projection.sync_to_source(self.data)

    def write(self, writer: ArchiveWriter) -> None:
        self.sync_before_write()
        write_properties(writer, self.data)

    def describe(self) -> Dict[str, Any]:
        return {"class": self.CLASS_NAME or self.__class__.__name__,
                "properties": len(self.data), "extras": len(self.extras)}


class ProjectedExport(Export, ABC):
    """Export exposing one typed array projection through count/get/set/set_all."""

    def __init__(self, data: Optional[List[Property]] = None):
        super().__init__(data)
        self.projection = self.create_projection()

    @classmethod
    @abstractmethod
    def create_projection(cls) -> TypedArrayProjection:
        pass

    @property
    def projections(self) -> List[TypedArrayProjection]:
        return [self.projection]

    @property
    def values(self) -> List[Any]:
        return self.projection.values

    def count(self) -> int:
        return self.projection.count()

    def get(self, index: int) -> Any:
        return self.projection.get(index)

    def set(self, index: int, value: Any) -> None:
        self.projection.set(index, value)

    def set_all(self, value: Any) -> None:
        self.projection.set_all(value)

    def describe(self) -> Dict[str, Any]:
        info = super().describe()
        info.update({
            "projection": "/".join(self.projection.names),
            "present": self.projection.present,
            "count": self.count(),
            "values": [_describe_value(v) for v in self.values],
        })
        return info


def _describe_value(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return value
    return list(value.components())


class NiagaraDataInterfaceArrayColorExport(ProjectedExport):
    CLASS_NAME = "NiagaraDataInterfaceArrayColor"

    @classmethod
    def create_projection(cls) -> TypedArrayProjection:
        return ElementArrayProjection("ColorData", DualEncodingAdapter(LinearColor))


class NiagaraDataInterfaceArrayFloatExport(ProjectedExport):
    CLASS_NAME = "NiagaraDataInterfaceArrayFloat"

    @classmethod
    def create_projection(cls) -> TypedArrayProjection:
        return ElementArrayProjection("FloatData", ScalarAdapter(FloatProperty))


class NiagaraDataInterfaceArrayFloat2Export(ProjectedExport):
    CLASS_NAME = "NiagaraDataInterfaceArrayFloat2"

    @classmethod
    def create_projection(cls) -> TypedArrayProjection:
        return ElementArrayProjection(("Vector2DData", "InternalVector2DData"), DualEncodingAdapter(Vector2))


class NiagaraDataInterfaceArrayFloat3Export(ProjectedExport):
    CLASS_NAME = "NiagaraDataInterfaceArrayFloat3"

    @classmethod
    def create_projection(cls) -> TypedArrayProjection:
        return ElementArrayProjection(("VectorData", "InternalVectorData"), DualEncodingAdapter(Vector3))


class NiagaraDataInterfaceArrayInt32Export(ProjectedExport):
    CLASS_NAME = "NiagaraDataInterfaceArrayInt32"

    @classmethod
    def create_projection(cls) -> TypedArrayProjection:
        return ElementArrayProjection("IntData", ScalarAdapter(IntProperty))


class _CurveExport(ProjectedExport):
    """Curve data interfaces: only the baked ShaderLUT is projected."""
    VALUE_CLS: ClassVar[type]

    @classmethod
    def create_projection(cls) -> TypedArrayProjection:
        return ShaderLUTProjection(cls.VALUE_CLS)

    @property
    def shader_lut(self) -> Optional[ShaderLUT]:
        """None when the asset has no ShaderLUT array."""
        if not self.projection.present:
            return None
        return self.projection.lut


class NiagaraDataInterfaceCurveExport(_CurveExport):
    CLASS_NAME = "NiagaraDataInterfaceCurve"
    VALUE_CLS = float


class NiagaraDataInterfaceVector2DCurveExport(_CurveExport):
    CLASS_NAME = "NiagaraDataInterfaceVector2DCurve"
    VALUE_CLS = Vector2


class NiagaraDataInterfaceVectorCurveExport(_CurveExport):
    CLASS_NAME = "NiagaraDataInterfaceVectorCurve"
    VALUE_CLS = Vector3


class NiagaraDataInterfaceColorCurveExport(_CurveExport):
    CLASS_NAME = "NiagaraDataInterfaceColorCurve"
    VALUE_CLS = LinearColor


class StringTableExport(Export):
    CLASS_NAME = "StringTable"

    def __init__(self, data: Optional[List[Property]] = None, table: Optional[StringTable] = None):
        super().__init__(data)
        self.table = table if table is not None else StringTable()

    def read(self, reader: ArchiveReader, next_starting: int) -> None:
        super().read(reader, next_starting)
        self.table = read_string_table(reader, next_starting)

    def write(self, writer: ArchiveWriter) -> None:
        super().write(writer)
        write_string_table(writer, self.table)

    def describe(self) -> Dict[str, Any]:
        info = super().describe()
        info.update({
            "namespace": self.table.namespace,
            "tagged_format": self.table.tagged_format,
            "entries": dict(self.table.entries),
        })
        return info


class ExportFactory:
    _CLASS_MAP: Dict[str, Type[Export]] = {}

    @classmethod
    def _build_class_map(cls):
        pending = list(Export.__subclasses__())
        while pending:
            subclass = pending.pop()
            pending.extend(subclass.__subclasses__())
            if subclass.CLASS_NAME:
                cls._CLASS_MAP[subclass.CLASS_NAME] = subclass

    @classmethod
    def class_names(cls) -> List[str]:
        if not cls._CLASS_MAP:
            cls._build_class_map()
        return sorted(cls._CLASS_MAP)

    @classmethod
    def create(cls, class_name: str) -> Export:
        if not cls._CLASS_MAP:
            cls._build_class_map()
        export_cls = cls._CLASS_MAP.get(class_name)
        if export_cls is None:
            logger.debug("No typed export for class %r; reading properties only", class_name)
            return Export()
        return export_cls()


def read_export(data: bytes, class_name: str, next_starting: Optional[int] = None) -> Export:
    if next_starting is None:
        next_starting = len(data)
    export = ExportFactory.create(class_name)
    reader = ArchiveReader(data)
    export.read(reader, next_starting)

    if reader.position > next_starting:
        raise ArchiveError(
            f"{class_name} export overran its end: offset {reader.position}, next export at {next_starting}")
    if reader.position < next_starting:
        logger.warning("%s export: keeping %d unparsed trailing byte(s)",
                       class_name, next_starting - reader.position)
        export.extras = reader.read_bytes(next_starting - reader.position)
    return export


def write_export(export: Export) -> bytes:
    writer = ArchiveWriter()
    export.write(writer)
    writer.write_bytes(export.extras)
    return writer.getvalue()


def load_export(path: Path, class_name: str, compression: str = "none") -> Export:
    data = decompress_payload(Path(path).read_bytes(), method=compression)
    export = read_export(data, class_name)
    logger.info("Loaded %s export from %s (%d bytes, %d properties)",
                class_name, path, len(data), len(export.data))
    return export


def save_export(path: Path, export: Export) -> None:
    # TODO: accept a compression method and re-compress with the codec load_export detected
    data = write_export(export)
    Path(path).write_bytes(data)
    logger.info("Saved %s export to %s (%d bytes)", export.CLASS_NAME or "plain", path, len(data))
