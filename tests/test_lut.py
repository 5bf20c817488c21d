import pytest

from uexports import (ArchiveReader, ArchiveWriter, FlatWindowProjector,
                      LinearColor, ShaderLUT, Vector2, Vector3)


def test_project_binds_absolute_positions():
    projector = FlatWindowProjector(3)
    flat = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0]
    assert projector.count(len(flat)) == 2
    assert projector.project(flat) == [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)]


def test_scatter_stops_before_partial_tuple():
    projector = FlatWindowProjector(3)
    dest = [0.0] * 7
    written = projector.scatter([(9.0, 9.0, 9.0), (8.0, 8.0, 8.0), (7.0, 7.0, 7.0)], dest)
    assert written == 2
    assert dest == [9.0, 9.0, 9.0, 8.0, 8.0, 8.0, 0.0]


def test_scatter_never_grows_destination():
    projector = FlatWindowProjector(2)
    dest = [0.0, 0.0]
    assert projector.scatter([(1.0, 2.0), (3.0, 4.0)], dest) == 1
    assert dest == [1.0, 2.0]


@pytest.mark.parametrize("width", [0, 5])
def test_invalid_width(width):
    with pytest.raises(ValueError):
        FlatWindowProjector(width)


def test_scatter_rejects_wrong_tuple_width():
    with pytest.raises(ValueError):
        FlatWindowProjector(2).scatter([(1.0, 2.0, 3.0)], [0.0] * 4)


@pytest.mark.parametrize("width", [1, 2, 3, 4])
@pytest.mark.parametrize("n", [0, 1, 5, 9])
def test_windowing_round_trip_leaves_tail_alone(width, n):
    flat = [float(i) + 0.5 for i in range(n)]
    projector = FlatWindowProjector(width)
    dest = [-1.0] * n
    written = projector.scatter(projector.project(flat), dest)

    full = (n // width) * width
    assert written == n // width
    assert dest[:full] == flat[:full]
    assert dest[full:] == [-1.0] * (n - full)


def test_lut_from_floats_picks_value_type():
    assert ShaderLUT.from_floats(float, [0.5, 0.25]).values == [0.5, 0.25]
    assert ShaderLUT.from_floats(Vector2, [1.0, 2.0, 3.0]).values == [Vector2(1.0, 2.0)]
    assert ShaderLUT.from_floats(Vector3, [1.0, 2.0, 3.0]).values == [Vector3(1.0, 2.0, 3.0)]
    lut = ShaderLUT.from_floats(LinearColor, [1.0, 0.5, 0.25, 1.0, 0.0])
    assert lut.values == [LinearColor(1.0, 0.5, 0.25, 1.0)]
    assert lut.width == 4
    assert lut.float_count == 4


def test_lut_read_consumes_orphans_and_write_drops_them():
    writer = ArchiveWriter()
    for i in range(9):
        writer.write_f32(i * 0.5)
    reader = ArchiveReader(writer.getvalue())

    lut = ShaderLUT.read(reader, LinearColor, 9)
    assert reader.remaining == 0
    assert len(lut) == 2
    assert lut.values[1] == LinearColor(2.0, 2.5, 3.0, 3.5)

    out = ArchiveWriter()
    lut.write(out)
    assert len(out.getvalue()) == 8 * 4


def test_lut_accessors_are_bounds_checked():
    lut = ShaderLUT.from_floats(Vector2, [0.0] * 4)
    lut.set_value(1, Vector2(1.0, 1.0))
    lut.set_value(2, Vector2(5.0, 5.0))
    lut.set_value(-1, Vector2(5.0, 5.0))
    assert lut.values == [Vector2(0.0, 0.0), Vector2(1.0, 1.0)]
    assert lut.get_value(2) is None
    assert lut.get_value(-1) is None

    lut.set_all_values(Vector2(0.25, 0.75))
    assert lut.to_floats() == [0.25, 0.75, 0.25, 0.75]
