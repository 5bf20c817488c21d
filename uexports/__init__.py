from .archive import ArchiveError, ArchiveReader, ArchiveWriter
from .compression import DecompressionError, decompress_payload
from .exports import (Export, ExportFactory,
                      NiagaraDataInterfaceArrayColorExport,
                      NiagaraDataInterfaceArrayFloat2Export,
                      NiagaraDataInterfaceArrayFloat3Export,
                      NiagaraDataInterfaceArrayFloatExport,
                      NiagaraDataInterfaceArrayInt32Export,
                      NiagaraDataInterfaceColorCurveExport,
                      NiagaraDataInterfaceCurveExport,
                      NiagaraDataInterfaceVector2DCurveExport,
                      NiagaraDataInterfaceVectorCurveExport, ProjectedExport,
                      StringTableExport, load_export, read_export, save_export,
                      write_export)
from .lut import FlatWindowProjector, ShaderLUT
from .projection import (DualEncodingAdapter, ElementAdapter,
                         ElementArrayProjection, ScalarAdapter,
                         ShaderLUTProjection, TypedArrayProjection,
                         locate_array)
from .properties import (ArrayProperty, BoolProperty, ByteProperty,
                         DoubleProperty, FloatProperty, Int64Property,
                         IntProperty, LinearColorProperty, MapProperty,
                         NameProperty, ObjectProperty, Property, PropertyError,
                         PropertyFactory, StrProperty, StructProperty,
                         TextProperty, UInt32Property, UInt64Property,
                         Vector2DProperty, VectorProperty, read_properties,
                         write_properties)
from .string_table import (GameplayTagContainer, StringTable,
                           read_string_table, write_string_table)
from .structs import LinearColor, RichCurve, RichCurveKey, Vector2, Vector3

__version__ = "0.1.0"
