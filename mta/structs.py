"""Low-level layout helpers shared by the YSFC readers and writers.

Three offset reference frames exist in an ``.MTA`` file and they are easy
to confuse:

* absolute file offsets (chunk directory, kit/voice positions),
* offsets relative to a chunk's *start* (``EWAV`` -> ``DWAV`` directory
  indirection),
* offsets relative to a chunk's *data section*, which begins after the
  32-byte chunk header (``EKIT`` -> ``DKIT`` indirection and every
  ``DKIT``/``DWAV`` data offset).

Each frame has its own wrapper type.  Only ``AbsOffset`` can index a
buffer; the relative types must go through a ``ChunkFrame`` first.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Union


CHUNK_HEADER_SIZE = 0x20
SLOT_SIZE = 0x20
NAME_SIZE = 16
END_OFFSET = 0xFFFFFFFF


@dataclass(frozen=True, order=True)
class AbsOffset:
    """Absolute byte position inside the file."""

    value: int

    def __add__(self, delta: int) -> "AbsOffset":
        if not isinstance(delta, int):
            return NotImplemented
        return AbsOffset(self.value + delta)

    def __sub__(self, other: Union["AbsOffset", int]):
        if isinstance(other, AbsOffset):
            return self.value - other.value
        if isinstance(other, int):
            return AbsOffset(self.value - other)
        return NotImplemented

    def __index__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"AbsOffset(0x{self.value:X})"


@dataclass(frozen=True, order=True)
class ChunkRel:
    """Offset counted from the first byte of a chunk (its ID)."""

    value: int

    def __add__(self, delta: int) -> "ChunkRel":
        if not isinstance(delta, int):
            return NotImplemented
        return ChunkRel(self.value + delta)

    def __repr__(self) -> str:
        return f"ChunkRel(0x{self.value:X})"


@dataclass(frozen=True, order=True)
class DataRel:
    """Offset counted from a chunk's data section (chunk start + 0x20)."""

    value: int

    def __add__(self, delta: int) -> "DataRel":
        if not isinstance(delta, int):
            return NotImplemented
        return DataRel(self.value + delta)

    def __repr__(self) -> str:
        return f"DataRel(0x{self.value:X})"


@dataclass(frozen=True)
class ChunkFrame:
    """Conversion context for one chunk."""

    chunk_id: str
    start: AbsOffset

    @property
    def data_start(self) -> AbsOffset:
        return self.start + CHUNK_HEADER_SIZE

    def to_absolute(self, offset: Union[AbsOffset, ChunkRel, DataRel]) -> AbsOffset:
        if isinstance(offset, AbsOffset):
            return offset
        if isinstance(offset, ChunkRel):
            return self.start + offset.value
        if isinstance(offset, DataRel):
            return self.data_start + offset.value
        raise TypeError(f"not a frame-tagged offset: {offset!r}")

    def to_chunk_rel(self, offset: Union[AbsOffset, ChunkRel, DataRel]) -> ChunkRel:
        return ChunkRel(self.to_absolute(offset) - self.start)

    def to_data_rel(self, offset: Union[AbsOffset, ChunkRel, DataRel]) -> DataRel:
        return DataRel(self.to_absolute(offset) - self.data_start)


def read_u32(data: bytes, offset: AbsOffset) -> int:
    return struct.unpack_from(">I", data, offset.value)[0]


def write_u32(buf: bytearray, offset: int, value: int) -> None:
    struct.pack_into(">I", buf, offset, value & 0xFFFFFFFF)


def in_bounds(data: bytes, offset: AbsOffset, length: int) -> bool:
    return 0 <= offset.value and offset.value + length <= len(data)


def decode_name(raw: bytes) -> str:
    """Decode a NUL-terminated 16-byte name field, trimmed."""

    end = raw.find(b"\x00")
    if end != -1:
        raw = raw[:end]
    return raw.decode("latin-1").strip()


def encode_name(name: str) -> bytes:
    """Encode a name into a NUL-padded 16-byte field (longer names are cut)."""

    raw = name.encode("latin-1")[:NAME_SIZE]
    return raw.ljust(NAME_SIZE, b"\x00")


@dataclass(frozen=True)
class DirectorySlot:
    """The shared 32-byte slot shape of the ``EKIT`` and ``EWAV`` tables."""

    name: str
    index: int
    data_size: int
    dir_offset: int
    seq_id: int

    @classmethod
    def from_bytes(cls, data: bytes, offset: AbsOffset) -> "DirectorySlot":
        name = decode_name(data[offset.value : offset.value + NAME_SIZE])
        index, data_size, dir_offset, seq_id = struct.unpack_from(
            ">4I", data, offset.value + NAME_SIZE
        )
        return cls(
            name=name,
            index=index,
            data_size=data_size,
            dir_offset=dir_offset,
            seq_id=seq_id,
        )

    def to_bytes(self) -> bytes:
        return encode_name(self.name) + struct.pack(
            ">4I", self.index, self.data_size, self.dir_offset, self.seq_id
        )


def chunk_header(chunk_id: str, data_size: int) -> bytes:
    """Return a 32-byte chunk header: ID, big-endian size, 0xFF fill."""

    if len(chunk_id) != 4:
        raise ValueError(f"chunk id must be 4 characters, got {chunk_id!r}")
    header = bytearray(b"\xFF" * CHUNK_HEADER_SIZE)
    header[0:4] = chunk_id.encode("ascii")
    write_u32(header, 4, data_size)
    return bytes(header)
