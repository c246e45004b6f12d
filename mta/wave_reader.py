"""Decode the wave directory (``EWAV``) and wave data (``DWAV``) chunks.

``EWAV`` is a variable-length table of 32-byte slots terminated by a slot
whose first byte is 0xFF or whose filename is empty.  Unlike the kit
case, each slot's directory offset is relative to the ``DWAV`` chunk
*start*; the data offset stored in the ``DWAV`` directory record is
relative to the ``DWAV`` data section.

Wave block layout (at ``DWAV data start + data offset``)::

    +0x00  64-byte header, sample rate u32 BE at +20
    +0x40  PCM, signed 16-bit big-endian
    ...    32 bytes of the next record's metadata (every record but the last)

The slot's ``data_size`` covers the header, the PCM, and those trailing
32 bytes, which are never audio.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .structs import (
    SLOT_SIZE,
    AbsOffset,
    ChunkFrame,
    ChunkRel,
    DataRel,
    DirectorySlot,
    in_bounds,
    read_u32,
)


WAVE_TABLE_CAP = 256
WAVE_TABLE_SENTINEL = 0xFF
WAVE_DIR_RECORD_SIZE = 12
WAVE_HEADER_SIZE = 64
WAVE_META_SIZE = 32
SAMPLE_RATE_OFFSET = 20
DEFAULT_SAMPLE_RATE = 44100


@dataclass(frozen=True)
class WaveEntry:
    filename: str
    index: int
    data_size: int
    dwav_dir_offset: ChunkRel
    seq_id: int


@dataclass(frozen=True)
class WaveBlock:
    seq_id: int
    sample_rate: int
    samples: Tuple[int, ...]
    is_last: bool

    @property
    def pcm_size(self) -> int:
        return 2 * len(self.samples)

    @property
    def duration(self) -> float:
        if not self.sample_rate:
            return 0.0
        return len(self.samples) / self.sample_rate


def decode_pcm(raw: bytes) -> Tuple[int, ...]:
    """Big-endian 16-bit PCM to signed ints (0x8000 -> -32768)."""

    count = len(raw) // 2
    return struct.unpack(f">{count}h", raw[: count * 2])


def encode_pcm(samples: Sequence[int]) -> bytes:
    return struct.pack(f">{len(samples)}h", *samples)


def pcm_size_for(data_size: int, is_last: bool) -> int:
    """PCM byte count inside a block whose slot says ``data_size``."""

    trailing = 0 if is_last else WAVE_META_SIZE
    return data_size - WAVE_HEADER_SIZE - trailing


def read_wave_entries(
    data: bytes, frame: ChunkFrame, end: Optional[AbsOffset] = None
) -> List[WaveEntry]:
    """Read ``EWAV`` slots up to the sentinel, the 256-slot cap, or ``end``.

    ``end`` is the end of the chunk's declared data section.  A rebuilt
    table is followed directly by the next chunk, so it has no sentinel.
    """

    entries: List[WaveEntry] = []
    pos = frame.data_start
    for _ in range(WAVE_TABLE_CAP):
        if not in_bounds(data, pos, SLOT_SIZE):
            break
        if end is not None and pos + SLOT_SIZE > end:
            break
        if data[pos.value] == WAVE_TABLE_SENTINEL:
            break
        slot = DirectorySlot.from_bytes(data, pos)
        if not slot.name:
            break
        entries.append(
            WaveEntry(
                filename=slot.name,
                index=slot.index,
                data_size=slot.data_size,
                dwav_dir_offset=ChunkRel(slot.dir_offset),
                seq_id=slot.seq_id,
            )
        )
        pos = pos + SLOT_SIZE
    return entries


def decode_wave_block(
    data: bytes, block: AbsOffset, *, seq_id: int, data_size: int, is_last: bool
) -> WaveBlock:
    sample_rate = read_u32(data, block + SAMPLE_RATE_OFFSET)
    pcm_bytes = pcm_size_for(data_size, is_last)
    if pcm_bytes < 2:
        return WaveBlock(seq_id=seq_id, sample_rate=sample_rate, samples=(), is_last=is_last)

    pcm_start = (block + WAVE_HEADER_SIZE).value
    pcm_end = min(pcm_start + (pcm_bytes // 2) * 2, len(data))
    return WaveBlock(
        seq_id=seq_id,
        sample_rate=sample_rate,
        samples=decode_pcm(data[pcm_start:pcm_end]),
        is_last=is_last,
    )


def extract_wave_blocks(
    data: bytes, frame: ChunkFrame, entries: List[WaveEntry]
) -> List[WaveBlock]:
    blocks: List[WaveBlock] = []
    for i, entry in enumerate(entries):
        is_last = i == len(entries) - 1

        dir_record = frame.to_absolute(entry.dwav_dir_offset)
        if not in_bounds(data, dir_record, WAVE_DIR_RECORD_SIZE):
            continue
        seq_id = read_u32(data, dir_record)
        block = frame.to_absolute(DataRel(read_u32(data, dir_record + 8)))
        if not in_bounds(data, block, WAVE_HEADER_SIZE):
            continue

        blocks.append(
            decode_wave_block(
                data,
                block,
                seq_id=seq_id,
                data_size=entry.data_size,
                is_last=is_last,
            )
        )
    return blocks
