"""Serialise an ``MtaFile`` back to bytes.

Two strategies:

* ``write_in_place`` for fixed-size edits (voice fields).  Every kit block
  is copied back over its resolved offset; the file length never changes.
* ``rebuild_wave_sections`` for structural wave edits.  ``EWAV`` and
  ``DWAV`` are rebuilt from the model, spliced into the file, and the
  resulting length delta is pushed into the top-level chunk directory.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

from .container import (
    DIRECTORY_ENTRY_SIZE,
    DIRECTORY_OFFSET,
    WAVE_DATA,
    WAVE_DIRECTORY,
    ChunkHeader,
    DirectoryEntry,
    FormatError,
)
from .structs import (
    CHUNK_HEADER_SIZE,
    SLOT_SIZE,
    AbsOffset,
    ChunkRel,
    DirectorySlot,
    chunk_header,
    encode_name,
    write_u32,
)
from .wave_reader import (
    WAVE_HEADER_SIZE,
    WAVE_META_SIZE,
    WaveBlock,
    WaveEntry,
    encode_pcm,
)

if TYPE_CHECKING:  # pragma: no cover
    from .mta_file import MtaFile


WAVE_FORMAT_MARKER = b"\x00\x00\x05\x01"
LOOP_POINT_OFFSETS = (32, 36)
LOOP_POINT_DIVISOR = 32


def write_in_place(mta: "MtaFile") -> bytes:
    out = bytearray(mta.raw)
    for block in mta.kit_blocks:
        start = block.offset.value
        end = start + len(block.raw)
        # Unchanged copies must not overwrite a patched block at the same offset.
        if end > len(out) or mta.raw[start:end] == block.raw:
            continue
        out[start:end] = block.raw
    return bytes(out)


def build_wave_header(sample_rate: int, pcm_size: int) -> bytes:
    header = bytearray(WAVE_HEADER_SIZE)
    header[0:4] = WAVE_FORMAT_MARKER
    write_u32(header, 20, sample_rate)
    loop_point = pcm_size // LOOP_POINT_DIVISOR
    for offset in LOOP_POINT_OFFSETS:
        write_u32(header, offset, loop_point)
    return bytes(header)


def build_dwav_chunk(
    pairs: Sequence[Tuple[WaveEntry, WaveBlock]],
) -> Tuple[bytes, List[WaveEntry]]:
    """Build a ``DWAV`` chunk and return it with the re-pointed wave entries.

    The data section starts with one 32-byte directory record per wave;
    each wave then contributes its 32-byte filename block, the 64-byte
    header and the PCM.  Every wave but the last also reserves 32 trailing
    bytes that its ``data_size`` counts.
    """

    dir_size = len(pairs) * SLOT_SIZE
    data_offsets: List[int] = []
    data_sizes: List[int] = []
    cursor = dir_size
    for i, (_, block) in enumerate(pairs):
        is_last = i == len(pairs) - 1
        trailing = 0 if is_last else WAVE_META_SIZE
        data_size = WAVE_HEADER_SIZE + block.pcm_size + trailing
        data_offsets.append(cursor + WAVE_META_SIZE)
        data_sizes.append(data_size)
        cursor += WAVE_META_SIZE + data_size

    chunk = bytearray(b"\xFF" * (CHUNK_HEADER_SIZE + cursor))
    chunk[0:CHUNK_HEADER_SIZE] = chunk_header(WAVE_DATA, cursor)

    updated: List[WaveEntry] = []
    for i, (entry, block) in enumerate(pairs):
        record = CHUNK_HEADER_SIZE + i * SLOT_SIZE
        write_u32(chunk, record, block.seq_id)
        write_u32(chunk, record + 4, 0)
        write_u32(chunk, record + 8, data_offsets[i])
        # Each EWAV slot points back at its own DWAV directory record.
        updated.append(
            replace(entry, data_size=data_sizes[i], dwav_dir_offset=ChunkRel(record))
        )

    for i, (entry, block) in enumerate(pairs):
        header_pos = CHUNK_HEADER_SIZE + data_offsets[i]
        meta_pos = header_pos - WAVE_META_SIZE
        chunk[meta_pos : meta_pos + WAVE_META_SIZE] = encode_name(entry.filename).ljust(
            WAVE_META_SIZE, b"\x00"
        )
        pcm = encode_pcm(block.samples)
        chunk[header_pos : header_pos + WAVE_HEADER_SIZE] = build_wave_header(
            block.sample_rate, len(pcm)
        )
        pcm_pos = header_pos + WAVE_HEADER_SIZE
        chunk[pcm_pos : pcm_pos + len(pcm)] = pcm

    return bytes(chunk), updated


def build_ewav_chunk(entries: Sequence[WaveEntry]) -> bytes:
    parts = [chunk_header(WAVE_DIRECTORY, len(entries) * SLOT_SIZE)]
    for entry in entries:
        slot = DirectorySlot(
            name=entry.filename,
            index=entry.index,
            data_size=entry.data_size,
            dir_offset=entry.dwav_dir_offset.value,
            seq_id=entry.seq_id,
        )
        parts.append(slot.to_bytes())
    return b"".join(parts)


@dataclass(frozen=True)
class SpliceResult:
    new_ewav_offset: AbsOffset
    new_dwav_offset: AbsOffset
    ewav_delta: int
    dwav_delta: int


def relocate_directory(
    directory: Sequence[DirectoryEntry],
    *,
    old_ewav: AbsOffset,
    old_dwav: AbsOffset,
    splice: SpliceResult,
) -> Dict[AbsOffset, AbsOffset]:
    """Map each directory entry position to the chunk offset it must hold.

    Entries located after the old ``DWAV`` chunk shift by the combined size
    delta.  Chunks sitting between ``EWAV`` and ``DWAV`` only move by the
    ``EWAV`` delta.  Chunks before ``EWAV`` are unchanged and omitted.
    """

    updates: Dict[AbsOffset, AbsOffset] = {}
    for entry in directory:
        if entry.chunk_id == WAVE_DIRECTORY:
            updates[entry.position] = splice.new_ewav_offset
        elif entry.chunk_id == WAVE_DATA:
            updates[entry.position] = splice.new_dwav_offset
        elif entry.offset > old_dwav:
            updates[entry.position] = entry.offset + (splice.ewav_delta + splice.dwav_delta)
        elif entry.offset > old_ewav:
            updates[entry.position] = entry.offset + splice.ewav_delta
    return updates


def _pair_waves(
    waves: Sequence[WaveEntry], blocks: Sequence[WaveBlock]
) -> List[Tuple[WaveEntry, WaveBlock]]:
    by_seq = {block.seq_id: block for block in blocks}
    return [(entry, by_seq[entry.seq_id]) for entry in waves if entry.seq_id in by_seq]


def rebuild_wave_sections(
    mta: "MtaFile",
    waves: Sequence[WaveEntry] | None = None,
    wave_blocks: Sequence[WaveBlock] | None = None,
) -> bytes:
    """Rebuild ``EWAV``/``DWAV`` from the model and splice them into the file.

    Entries without a matching block (by ``seq_id``) are dropped.  Without
    both wave chunks the file is written in place instead.
    """

    waves = mta.waves if waves is None else waves
    wave_blocks = mta.wave_blocks if wave_blocks is None else wave_blocks

    ewav = mta.container.header(WAVE_DIRECTORY)
    dwav = mta.container.header(WAVE_DATA)
    if ewav is None or dwav is None:
        return write_in_place(mta)
    directory_end = DIRECTORY_OFFSET + len(mta.container.directory) * DIRECTORY_ENTRY_SIZE
    _check_wave_region(ewav, dwav, len(mta.raw), directory_end)

    new_dwav_chunk, updated = build_dwav_chunk(_pair_waves(waves, wave_blocks))
    new_ewav_chunk = build_ewav_chunk(updated)

    # Kit patches first; the patched buffer has the original length.
    base = write_in_place(mta)
    before = base[: ewav.offset.value]
    between = base[ewav.end.value : dwav.offset.value]
    after = base[dwav.end.value :]

    splice = SpliceResult(
        new_ewav_offset=ewav.offset,
        new_dwav_offset=ewav.offset + len(new_ewav_chunk) + len(between),
        ewav_delta=len(new_ewav_chunk) - ewav.total_size,
        dwav_delta=len(new_dwav_chunk) - dwav.total_size,
    )
    updates = relocate_directory(
        mta.container.directory,
        old_ewav=ewav.offset,
        old_dwav=dwav.offset,
        splice=splice,
    )

    out = bytearray(before + new_ewav_chunk + between + new_dwav_chunk + after)
    for position, offset in updates.items():
        write_u32(out, position.value + 4, offset.value)
    return bytes(out)


def _check_wave_region(
    ewav: ChunkHeader, dwav: ChunkHeader, length: int, directory_end: int
) -> None:
    if ewav.offset.value < directory_end:
        raise FormatError(
            f"EWAV chunk at 0x{ewav.offset.value:X} overlaps the chunk directory"
        )
    if ewav.end > dwav.offset:
        raise FormatError(
            f"EWAV (0x{ewav.offset.value:X}..0x{ewav.end.value:X}) must end before "
            f"DWAV (0x{dwav.offset.value:X})"
        )
    if dwav.end.value > length:
        raise FormatError(
            f"DWAV chunk ends at 0x{dwav.end.value:X}, past end of file (0x{length:X})"
        )
