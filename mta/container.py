from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .structs import (
    CHUNK_HEADER_SIZE,
    END_OFFSET,
    AbsOffset,
    ChunkFrame,
    in_bounds,
    read_u32,
)


MAGIC = b"YSFC"
MAGIC_OFFSET = 0x30
DIRECTORY_OFFSET = 0x80
DIRECTORY_ENTRY_SIZE = 8

KIT_DIRECTORY = "EKIT"
KIT_DATA = "DKIT"
WAVE_DIRECTORY = "EWAV"
WAVE_DATA = "DWAV"
REQUIRED_CHUNKS = (KIT_DIRECTORY, KIT_DATA)

_CHUNK_ID = re.compile(rb"[A-Z]{4}")


class FormatError(ValueError):
    """The buffer is not a decodable YSFC container."""


@dataclass(frozen=True)
class DirectoryEntry:
    chunk_id: str
    offset: AbsOffset  # where the chunk starts
    position: AbsOffset  # where this 8-byte entry sits in the directory


@dataclass(frozen=True)
class ChunkHeader:
    chunk_id: str
    offset: AbsOffset
    data_size: int

    @property
    def data_start(self) -> AbsOffset:
        return self.offset + CHUNK_HEADER_SIZE

    @property
    def total_size(self) -> int:
        return CHUNK_HEADER_SIZE + self.data_size

    @property
    def end(self) -> AbsOffset:
        return self.offset + self.total_size


def read_directory(data: bytes) -> Tuple[DirectoryEntry, ...]:
    """Read the self-terminating chunk directory at 0x80.

    There is no entry count: reading stops at the first entry whose ID is
    not four uppercase ASCII letters or whose offset is 0xFFFFFFFF.
    """

    entries = []
    pos = AbsOffset(DIRECTORY_OFFSET)
    while in_bounds(data, pos, DIRECTORY_ENTRY_SIZE):
        raw_id = data[pos.value : pos.value + 4]
        offset = read_u32(data, pos + 4)
        if offset == END_OFFSET or not _CHUNK_ID.fullmatch(raw_id):
            break
        entries.append(
            DirectoryEntry(
                chunk_id=raw_id.decode("ascii"),
                offset=AbsOffset(offset),
                position=pos,
            )
        )
        pos = pos + DIRECTORY_ENTRY_SIZE
    return tuple(entries)


@dataclass(frozen=True)
class YSFCContainer:
    """Raw file bytes plus the decoded top-level chunk directory."""

    raw: bytes
    directory: Tuple[DirectoryEntry, ...]

    @classmethod
    def from_bytes(cls, data: bytes) -> "YSFCContainer":
        if len(data) < MAGIC_OFFSET + len(MAGIC):
            raise FormatError(f"file too short ({len(data)} bytes)")
        magic = data[MAGIC_OFFSET : MAGIC_OFFSET + len(MAGIC)]
        if magic != MAGIC:
            raise FormatError(
                f"not a YSFC file (magic {magic!r} at 0x{MAGIC_OFFSET:02X})"
            )
        container = cls(raw=bytes(data), directory=read_directory(data))
        for chunk_id in REQUIRED_CHUNKS:
            if chunk_id not in container.chunks:
                raise FormatError(f"{chunk_id} chunk not found")
        return container

    @property
    def chunks(self) -> Dict[str, AbsOffset]:
        # A repeated ID keeps the later offset.
        return {entry.chunk_id: entry.offset for entry in self.directory}

    def offset_of(self, chunk_id: str) -> Optional[AbsOffset]:
        return self.chunks.get(chunk_id)

    def frame(self, chunk_id: str) -> Optional[ChunkFrame]:
        offset = self.offset_of(chunk_id)
        if offset is None:
            return None
        return ChunkFrame(chunk_id=chunk_id, start=offset)

    def header(self, chunk_id: str) -> Optional[ChunkHeader]:
        offset = self.offset_of(chunk_id)
        if offset is None or not in_bounds(self.raw, offset, CHUNK_HEADER_SIZE):
            return None
        return ChunkHeader(
            chunk_id=chunk_id,
            offset=offset,
            data_size=read_u32(self.raw, offset + 4),
        )
