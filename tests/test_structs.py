import pytest

from uexports import (ArchiveError, ArchiveReader, ArchiveWriter, LinearColor,
                      RichCurve, RichCurveKey, Vector2, Vector3)


def test_value_defaults():
    assert LinearColor().components() == (0.0, 0.0, 0.0, 1.0)
    assert Vector3().components() == (0.0, 0.0, 0.0)
    assert Vector2(0.5).components() == (0.5, 0.0)


def test_rich_curve_layout():
    curve = RichCurve(default_value=0.5, pre_infinity_extrap=1, post_infinity_extrap=2, keys=[
        RichCurveKey(interp_mode=1, time=0.0, value=1.0),
        RichCurveKey(interp_mode=3, tangent_mode=1, time=1.0, value=0.25, leave_tangent=0.5),
    ])
    writer = ArchiveWriter()
    curve.write(writer)
    data = writer.getvalue()
    assert len(data) == 12 + 2 * RichCurveKey.SERIALIZED_SIZE

    reader = ArchiveReader(data)
    assert RichCurve.read(reader) == curve
    assert reader.remaining == 0


def test_rich_curve_rejects_impossible_key_count():
    writer = ArchiveWriter()
    RichCurve(keys=[RichCurveKey()]).write(writer)
    data = bytearray(writer.getvalue())
    data[8:12] = (5).to_bytes(4, "little")
    with pytest.raises(ArchiveError):
        RichCurve.read(ArchiveReader(bytes(data)))
