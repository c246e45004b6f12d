"""Edit operations on ``MtaFile`` snapshots.

Every function validates its request before building anything and
returns a new ``MtaFile``; the input snapshot is never modified.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence, Tuple

from .mta_file import MtaFile
from .structs import NAME_SIZE, AbsOffset, ChunkRel
from .wave_reader import (
    DEFAULT_SAMPLE_RATE,
    WAVE_HEADER_SIZE,
    WAVE_TABLE_CAP,
    WAVE_TABLE_SENTINEL,
    WaveBlock,
    WaveEntry,
)


FIRST_WAVE_SEQ_ID = 0xC9


def edit_voice(mta: MtaFile, byte_offset: AbsOffset, field: str, value: int) -> MtaFile:
    """Overwrite one single-byte voice field; file length is unaffected."""

    block = mta.kit_block_containing(byte_offset)
    if block is None:
        raise ValueError(f"no voice record at 0x{byte_offset.value:X}")
    patched = block.with_voice_field(byte_offset, field, value)
    # Slots sharing a DKIT record decode to copies of one block; keep them in step.
    kit_blocks = tuple(patched if b.offset == block.offset else b for b in mta.kit_blocks)
    return replace(mta, kit_blocks=kit_blocks)


def _relabel_last(blocks: Sequence[WaveBlock]) -> Tuple[WaveBlock, ...]:
    last = len(blocks) - 1
    return tuple(
        block if block.is_last == (i == last) else replace(block, is_last=(i == last))
        for i, block in enumerate(blocks)
    )


def _check_filename(filename: str) -> None:
    try:
        raw = filename.encode("latin-1")
    except UnicodeEncodeError as exc:
        raise ValueError(f"wave filename {filename!r} is not latin-1") from exc
    if not filename.strip():
        raise ValueError("wave filename must not be empty")
    if len(raw) > NAME_SIZE:
        raise ValueError(f"wave filename {filename!r} exceeds {NAME_SIZE} bytes")
    if raw[0] == WAVE_TABLE_SENTINEL or b"\x00" in raw:
        raise ValueError(f"wave filename {filename!r} contains a reserved byte")


def add_wave(
    mta: MtaFile,
    filename: str,
    samples: Sequence[int],
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> MtaFile:
    """Append a user wave; the next write rebuilds the wave sections."""

    _check_filename(filename)
    if len(mta.waves) >= WAVE_TABLE_CAP:
        raise ValueError(f"wave table is full ({WAVE_TABLE_CAP} entries)")
    for i, sample in enumerate(samples):
        if not -0x8000 <= sample <= 0x7FFF:
            raise ValueError(f"sample[{i}] = {sample} is outside the signed 16-bit range")

    if mta.waves:
        seq_id = max(w.seq_id for w in mta.waves) + 1
        index = max(w.index for w in mta.waves) + 1
    else:
        seq_id = FIRST_WAVE_SEQ_ID
        index = 0

    entry = WaveEntry(
        filename=filename.strip(),
        index=index,
        data_size=WAVE_HEADER_SIZE + 2 * len(samples),
        dwav_dir_offset=ChunkRel(0),  # assigned by the rebuild
        seq_id=seq_id,
    )
    block = WaveBlock(
        seq_id=seq_id,
        sample_rate=sample_rate,
        samples=tuple(samples),
        is_last=True,
    )
    return replace(
        mta,
        waves=mta.waves + (entry,),
        wave_blocks=_relabel_last(mta.wave_blocks + (block,)),
        waves_changed=True,
    )


def delete_wave(mta: MtaFile, seq_id: int) -> MtaFile:
    if not any(w.seq_id == seq_id for w in mta.waves):
        raise ValueError(f"no wave with seq_id {seq_id}")
    return replace(
        mta,
        waves=tuple(w for w in mta.waves if w.seq_id != seq_id),
        wave_blocks=_relabel_last(
            [b for b in mta.wave_blocks if b.seq_id != seq_id]
        ),
        waves_changed=True,
    )


def commit(mta: MtaFile) -> MtaFile:
    """Serialise and decode again, giving a snapshot with resolved offsets."""

    return MtaFile.from_bytes(mta.to_bytes())
