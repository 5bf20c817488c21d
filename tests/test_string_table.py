import pytest

from uexports import (ArchiveError, ArchiveReader, ArchiveWriter,
                      GameplayTagContainer, StringTable, read_string_table,
                      write_string_table)


def _read(data: bytes, next_starting=None):
    reader = ArchiveReader(data)
    table = read_string_table(reader, len(data) if next_starting is None else next_starting)
    return table, reader


def _written(table: StringTable) -> bytes:
    writer = ArchiveWriter()
    write_string_table(writer, table)
    return writer.getvalue()


def test_tagged_layout_is_detected(string_table_bytes):
    data = string_table_bytes("UI", [("k1", "Hello", [(3, 0)]), ("k2", "World", [])],
                              tagged=True, trailing=[(9, 1)])
    table, reader = _read(data)

    assert table.tagged_format is True
    assert table.namespace == "UI"
    assert table.entries == {"k1": "Hello", "k2": "World"}
    assert [t.tags for t in table.entry_tags] == [[(3, 0)], []]
    assert table.trailing_tags.tags == [(9, 1)]
    assert reader.position == len(data)


def test_plain_layout_fallback(string_table_bytes):
    data = string_table_bytes("UI", [("k1", "Hello"), ("k2", "World")], tagged=False)
    table, reader = _read(data)

    assert table.tagged_format is False
    assert table.entries == {"k1": "Hello", "k2": "World"}
    assert table.entry_tags is None
    assert table.trailing_tags is None
    assert reader.position == len(data)


def test_tagged_parse_must_end_at_next_export(string_table_bytes):
    # decodes as tagged (two empty containers) but stops 4 bytes short
    plain = string_table_bytes("ns", [("a", "b")], tagged=False)
    data = plain + b"\x00" * 12
    table, reader = _read(data)

    assert table.tagged_format is False
    assert table.entries == {"a": "b"}
    assert reader.position == len(plain)


def test_duplicate_keys_last_wins_and_tags_kept(string_table_bytes):
    data = string_table_bytes("ns", [("k", "first", [(1, 0)]), ("j", "x", []), ("k", "second", [(2, 0)])],
                              tagged=True)
    table, _ = _read(data)

    assert table.entries == {"k": "second", "j": "x"}
    assert list(table.entries) == ["k", "j"]
    assert len(table) == 2
    assert [t.tags for t in table.entry_tags] == [[(1, 0)], [], [(2, 0)]]


def test_empty_key_skipped_but_tag_slot_kept(string_table_bytes):
    data = string_table_bytes("ns", [("", "orphan", [(5, 0)]), ("k", "v", [])], tagged=True)
    table, _ = _read(data)

    assert table.entries == {"k": "v"}
    assert len(table.entry_tags) == 2
    assert table.entry_tags[0].tags == [(5, 0)]


def test_empty_tables(string_table_bytes):
    tagged, _ = _read(string_table_bytes("ns", [], tagged=True))
    assert tagged.tagged_format is True
    assert tagged.entries == {}

    plain, _ = _read(string_table_bytes("ns", [], tagged=False))
    assert plain.tagged_format is False
    assert plain.entries == {}


def test_neither_layout_fits(string_table_bytes):
    data = string_table_bytes("ns", [("a", "b")], tagged=False)
    # claim two records while only one is present
    data = data.replace(b"\x01\x00\x00\x00", b"\x02\x00\x00\x00", 1)
    with pytest.raises(ArchiveError):
        _read(data)


def test_negative_count_raises():
    writer = ArchiveWriter()
    writer.write_fstring("ns")
    writer.write_i32(-1)
    with pytest.raises(ArchiveError):
        _read(writer.getvalue())


def test_tag_container_count_is_bounded():
    with pytest.raises(ArchiveError):
        GameplayTagContainer.read(ArchiveReader(b"\xff\x00\x00\x00" + b"\x00" * 8))


def test_tagged_round_trip_is_byte_identical(string_table_bytes):
    data = string_table_bytes("UI", [("k1", "Hello", [(3, 0), (4, 2)]), ("k2", "Wörld", [])],
                              tagged=True, trailing=[(9, 1)])
    table, _ = _read(data)
    assert _written(table) == data


def test_plain_round_trip_is_byte_identical(string_table_bytes):
    data = string_table_bytes("UI", [("k1", "Hello"), ("k2", "日本")], tagged=False)
    table, _ = _read(data)
    assert _written(table) == data


def test_missing_tag_containers_are_synthesized(string_table_bytes):
    table = StringTable(namespace="ns", entries={"a": "b", "c": "d"}, tagged_format=True)
    expected = string_table_bytes("ns", [("a", "b", []), ("c", "d", [])], tagged=True)
    assert _written(table) == expected


def test_edited_entries_are_written(string_table_bytes):
    data = string_table_bytes("ns", [("a", "b", [(1, 1)])], tagged=True)
    table, _ = _read(data)
    table.entries["a"] = "changed"

    reread, _ = _read(_written(table))
    assert reread.entries == {"a": "changed"}
    assert reread.entry_tags[0].tags == [(1, 1)]


def test_tagged_parse_running_past_next_export(string_table_bytes):
    # the tagged attempt can read on into the next export's bytes
    plain = string_table_bytes("ns", [("a", "b"), ("c", "d")], tagged=False)
    table, reader = _read(plain + b"\x00" * 16, next_starting=len(plain))

    assert table.tagged_format is False
    assert table.entries == {"a": "b", "c": "d"}
    assert reader.position == len(plain)
