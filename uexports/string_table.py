"""String table export payload.

Two layouts exist for the records that follow the entry count, with nothing
in the stream saying which one is used:

    plain:   n * (key, value)
    tagged:  n * (key, value, tag container), trailing tag container

The tagged layout is tried first on a forked cursor and accepted only if it
decodes cleanly and ends exactly at the start of the next export.
"""
import logging
from dataclasses import dataclass, field
from typing import *

from .archive import ArchiveError, ArchiveReader, ArchiveWriter

logger = logging.getLogger(__name__)

_NAME_REF_SIZE = 8


@dataclass
class GameplayTagContainer:
    """Opaque list of name-map references ``(name_index, number)``."""
    tags: List[Tuple[int, int]] = field(default_factory=list)

    @classmethod
    def read(cls, reader: ArchiveReader) -> 'GameplayTagContainer':
        offset = reader.position
        count = reader.read_i32()
        if count < 0 or count * _NAME_REF_SIZE > reader.remaining:
            raise ArchiveError(f"Invalid tag count {count} at offset {offset}")
        return cls([(reader.read_i32(), reader.read_i32()) for _ in range(count)])

    def write(self, writer: ArchiveWriter) -> None:
        writer.write_i32(len(self.tags))
        for name_index, number in self.tags:
            writer.write_i32(name_index)
            writer.write_i32(number)


@dataclass
class StringTable:
    namespace: str = ""
    entries: Dict[str, str] = field(default_factory=dict)
    # one container per record read, duplicates included; None for the plain layout
    entry_tags: Optional[List[GameplayTagContainer]] = None
    trailing_tags: Optional[GameplayTagContainer] = None
    tagged_format: bool = False

    def __len__(self) -> int:
        return len(self.entries)


Record = Tuple[str, str]


def _read_plain_records(reader: ArchiveReader, count: int) -> List[Record]:
    return [(reader.read_fstring(), reader.read_fstring()) for _ in range(count)]


def _try_tagged_records(reader: ArchiveReader, count: int, next_starting: int
                        ) -> Optional[Tuple[List[Record], List[GameplayTagContainer], GameplayTagContainer, int]]:
    probe = reader.fork()
    try:
        records = []
        tags = []
        for _ in range(count):
            key = probe.read_fstring()
            value = probe.read_fstring()
            tags.append(GameplayTagContainer.read(probe))
            records.append((key, value))
        trailing = GameplayTagContainer.read(probe)
    except ArchiveError as e:
        logger.debug("Tagged string table layout rejected at offset %d: %s", probe.position, e)
        return None
    if probe.position != next_starting:
        logger.debug("Tagged string table layout rejected: ends at %d, next export starts at %d",
                     probe.position, next_starting)
        return None
    return records, tags, trailing, probe.position


def read_string_table(reader: ArchiveReader, next_starting: int) -> StringTable:
    table = StringTable(namespace=reader.read_fstring())
    count = reader.read_i32()
    if count < 0:
        raise ArchiveError(f"Negative string table entry count {count}")

    tagged = _try_tagged_records(reader, count, next_starting)
    if tagged is not None:
        records, table.entry_tags, table.trailing_tags, end = tagged
        reader.seek(end)
        table.tagged_format = True
    else:
        records = _read_plain_records(reader, count)

    for key, value in records:
        if not key:
            continue
        table.entries[key] = value

    logger.debug("String table %r: %d record(s), %d key(s), tagged=%s",
                 table.namespace, count, len(table.entries), table.tagged_format)
    return table


def write_string_table(writer: ArchiveWriter, table: StringTable) -> None:
    writer.write_fstring(table.namespace)
    writer.write_i32(len(table.entries))
    entry_tags = table.entry_tags or []
    for i, (key, value) in enumerate(table.entries.items()):
        writer.write_fstring(key)
        writer.write_fstring(value)
        if table.tagged_format:
            tags = entry_tags[i] if i < len(entry_tags) else GameplayTagContainer()
            tags.write(writer)

    if table.tagged_format:
        (table.trailing_tags or GameplayTagContainer()).write(writer)
