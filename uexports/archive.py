import struct
from typing import *


class ArchiveError(Exception):
    pass


class ArchiveReader:
    """Bounds-checked little-endian cursor over an export buffer.

    Every read past the end of the buffer raises ArchiveError instead of
    returning a short slice, so callers can treat any exception as a
    structural failure of the bytes they were trying to decode.
    """

    def __init__(self, data: bytes, position: int = 0):
        self._data = data
        self._pos = position

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def data(self) -> bytes:
        return self._data

    def seek(self, position: int) -> None:
        if not 0 <= position <= len(self._data):
            raise ArchiveError(
                f"Seek to {position} outside buffer of {len(self._data)} bytes")
        self._pos = position

    def fork(self) -> 'ArchiveReader':
        return ArchiveReader(self._data, self._pos)

    def read_bytes(self, n: int) -> bytes:
        if n < 0 or self._pos + n > len(self._data):
            raise ArchiveError(
                f"Read of {n} bytes at offset {self._pos} exceeds buffer of {len(self._data)} bytes")
        chunk = self._data[self._pos: self._pos + n]
        self._pos += n
        return chunk

    def _unpack(self, fmt: str, size: int) -> Any:
        return struct.unpack('<' + fmt, self.read_bytes(size))[0]

    def read_u8(self) -> int:
        return self._unpack('B', 1)

    def read_i32(self) -> int:
        return self._unpack('i', 4)

    def read_u32(self) -> int:
        return self._unpack('I', 4)

    def read_i64(self) -> int:
        return self._unpack('q', 8)

    def read_u64(self) -> int:
        return self._unpack('Q', 8)

    def read_f32(self) -> float:
        return self._unpack('f', 4)

    def read_f64(self) -> float:
        return self._unpack('d', 8)

    def expect_zero(self, what: str = "padding") -> None:
        offset = self._pos
        if self.read_u8() != 0:
            raise ArchiveError(f"Expected zero {what} byte at offset {offset}")

    def read_fstring(self) -> str:
        """Read UE FString: int32 length. If negative, it's UTF-16LE and -length is the character count.
        Length includes the null terminator; 0 means empty.
        """
        offset = self._pos
        strlen = self.read_i32()
        if strlen == 0:
            return ""
        if strlen < 0:
            if strlen == -0x80000000:
                raise ArchiveError(f"Invalid FString length at offset {offset}")
            raw = self.read_bytes(-strlen * 2)
            terminator, encoding = b'\x00\x00', 'utf-16-le'
        else:
            raw = self.read_bytes(strlen)
            terminator, encoding = b'\x00', 'latin-1'
        if not raw.endswith(terminator):
            raise ArchiveError(f"Unterminated FString at offset {offset}")
        try:
            return raw[:-len(terminator)].decode(encoding)
        except UnicodeDecodeError as e:
            raise ArchiveError(f"Undecodable FString at offset {offset}: {e}") from e

    def read_guid(self) -> str:
        """Read a 16-byte GUID and return as standard hex string."""
        raw = self.read_bytes(16)
        # UE stores the first three groups little-endian
        return (f"{raw[0:4][::-1].hex()}-{raw[4:6][::-1].hex()}-{raw[6:8][::-1].hex()}-"
                f"{raw[8:10].hex()}-{raw[10:16].hex()}")


class ArchiveWriter:
    def __init__(self):
        self._data = bytearray()

    @property
    def position(self) -> int:
        return len(self._data)

    def getvalue(self) -> bytes:
        return bytes(self._data)

    def write_bytes(self, raw: bytes) -> None:
        self._data.extend(raw)

    def write_u8(self, v: int) -> None:
        self._data.append(int(v) & 0xFF)

    def write_i32(self, v: int) -> None:
        self._data.extend(struct.pack('<i', int(v)))

    def write_u32(self, v: int) -> None:
        self._data.extend(struct.pack('<I', int(v) & 0xFFFFFFFF))

    def write_i64(self, v: int) -> None:
        self._data.extend(struct.pack('<q', int(v)))

    def write_u64(self, v: int) -> None:
        self._data.extend(struct.pack('<Q', int(v)))

    def write_f32(self, v: float) -> None:
        self._data.extend(struct.pack('<f', float(v)))

    def write_f64(self, v: float) -> None:
        self._data.extend(struct.pack('<d', float(v)))

    def write_fstring(self, s: str) -> None:
        """Write a UE FString (length includes trailing NUL; 0 means empty)."""
        if not s:
            self.write_i32(0)
            return
        try:
            raw = s.encode('latin-1')
        except UnicodeEncodeError:
            raw = s.encode('utf-16-le')
            self.write_i32(-(len(raw) // 2 + 1))
            self._data.extend(raw)
            self._data.extend(b'\x00\x00')
            return
        self.write_i32(len(raw) + 1)
        self._data.extend(raw)
        self._data.append(0)

    def write_guid(self, guid: Optional[str]) -> None:
        """Write a GUID string as 16 raw bytes; anything unparsable becomes the zero GUID."""
        parts = (guid or "").split('-')
        try:
            if len(parts) != 5:
                raise ValueError("Invalid GUID")
            raw = (bytes.fromhex(parts[0])[::-1] + bytes.fromhex(parts[1])[::-1] +
                   bytes.fromhex(parts[2])[::-1] + bytes.fromhex(parts[3]) + bytes.fromhex(parts[4]))
            if len(raw) != 16:
                raise ValueError("Invalid GUID part length")
        except ValueError:
            raw = b'\x00' * 16
        self._data.extend(raw)
