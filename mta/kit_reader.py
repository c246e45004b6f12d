"""Decode the kit directory (``EKIT``) and kit data (``DKIT``) chunks.

``EKIT`` is a fixed table of 200 slots; slot *i* is bank position *i*
whether or not it carries a name.  Each slot points (relative to the
``DKIT`` data section) at a small directory record inside ``DKIT``::

    +0  seq_id       u32 BE
    +4  reserved     u32
    +8  data offset  u32 BE, relative to the DKIT data section

which in turn points at a fixed 3872-byte kit block.  Voice records have
no count anywhere; they are found by scanning bytes 0x154..0x9A8 of the
block for the 26-byte record signature.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Tuple

from .structs import (
    SLOT_SIZE,
    AbsOffset,
    ChunkFrame,
    DataRel,
    DirectorySlot,
    in_bounds,
    read_u32,
)


KIT_SLOT_COUNT = 200
KIT_BLOCK_SIZE = 3872  # 0x0F20
KIT_DIR_RECORD_SIZE = 12
VOICE_REGION_START = 0x154
VOICE_REGION_END = 0x9A8
VOICE_RECORD_SIZE = 26
VOICE_SIGNATURE: Tuple[Tuple[int, int], ...] = ((0, 0x7C), (10, 0x3C), (18, 0x01))

# Single-byte voice fields and their position inside the 26-byte record.
VOICE_FIELD_OFFSETS = {
    "pad_number": 1,
    "zone_type": 2,
    "vel_upper": 3,
    "midi_note": 4,
    "vel_sensitivity": 5,
    "volume": 6,
    "pan": 7,
    "flags": 19,
}
EFFECT_ROUTING_OFFSET = 8
SENDS_OFFSET = 12
SEND_COUNT = 5


@dataclass(frozen=True)
class KitEntry:
    name: str
    index: int
    data_size: int
    dkit_dir_offset: DataRel
    seq_id: int

    @property
    def is_named(self) -> bool:
        return bool(self.name)


@dataclass(frozen=True)
class VoiceEntry:
    """One pad/zone assignment.  Identified by ``byte_offset``, not by index."""

    pad_number: int
    zone_type: int
    vel_upper: int
    midi_note: int
    vel_sensitivity: int
    volume: int
    pan: int
    effect_routing: Tuple[int, int]
    sends: Tuple[int, int, int, int, int]
    flags: int
    byte_offset: AbsOffset

    @classmethod
    def from_bytes(cls, data: bytes, offset: AbsOffset) -> "VoiceEntry":
        pos = offset.value
        record = data[pos : pos + VOICE_RECORD_SIZE]
        if len(record) < VOICE_RECORD_SIZE:
            raise ValueError(f"voice record at 0x{pos:X} runs past end of data")
        return cls(
            pad_number=record[1],
            zone_type=record[2],
            vel_upper=record[3],
            midi_note=record[4],
            vel_sensitivity=record[5],
            volume=record[6],
            pan=record[7],
            effect_routing=(record[8], record[9]),
            sends=tuple(record[SENDS_OFFSET : SENDS_OFFSET + SEND_COUNT]),
            flags=record[19],
            byte_offset=offset,
        )


@dataclass(frozen=True)
class KitBlock:
    """Raw kit block plus the voice records scanned out of it.

    ``raw`` is the unit written back to the file, so bytes that are not
    modelled by ``VoiceEntry`` survive edits untouched.
    """

    seq_id: int
    offset: AbsOffset
    raw: bytes
    voices: Tuple[VoiceEntry, ...]

    def voice_at(self, byte_offset: AbsOffset) -> Optional[VoiceEntry]:
        for voice in self.voices:
            if voice.byte_offset == byte_offset:
                return voice
        return None

    def with_voice_field(
        self, byte_offset: AbsOffset, field: str, value: int
    ) -> "KitBlock":
        """Return a copy with one single-byte voice field overwritten."""

        if field not in VOICE_FIELD_OFFSETS:
            valid = ", ".join(sorted(VOICE_FIELD_OFFSETS))
            raise ValueError(f"unknown voice field {field!r}; expected one of: {valid}")
        if not 0 <= value <= 0xFF:
            raise ValueError(f"{field} must be in [0, 255], got {value}")
        voice = self.voice_at(byte_offset)
        if voice is None:
            raise ValueError(
                f"no voice record at 0x{byte_offset.value:X} in kit seq_id {self.seq_id}"
            )

        raw = bytearray(self.raw)
        raw[(byte_offset - self.offset) + VOICE_FIELD_OFFSETS[field]] = value
        patched = bytes(raw)

        # Re-decode from the patched block so the model mirrors the bytes.
        rel = AbsOffset(byte_offset - self.offset)
        updated = replace(VoiceEntry.from_bytes(patched, rel), byte_offset=byte_offset)
        voices = tuple(
            updated if v.byte_offset == byte_offset else v for v in self.voices
        )
        return replace(self, raw=patched, voices=voices)


def read_kit_entries(data: bytes, frame: ChunkFrame) -> List[KitEntry]:
    """Decode the 200 fixed ``EKIT`` slots (fewer only if the file is truncated)."""

    entries: List[KitEntry] = []
    for i in range(KIT_SLOT_COUNT):
        base = frame.data_start + i * SLOT_SIZE
        if not in_bounds(data, base, SLOT_SIZE):
            break
        slot = DirectorySlot.from_bytes(data, base)
        entries.append(
            KitEntry(
                name=slot.name,
                index=slot.index,
                data_size=slot.data_size,
                dkit_dir_offset=DataRel(slot.dir_offset),
                seq_id=slot.seq_id,
            )
        )
    return entries


def matches_voice_signature(data: bytes, pos: AbsOffset) -> bool:
    if not in_bounds(data, pos, VOICE_RECORD_SIZE):
        return False
    return all(data[pos.value + rel] == value for rel, value in VOICE_SIGNATURE)


def find_next_voice(
    data: bytes, pos: AbsOffset, end: AbsOffset
) -> Optional[Tuple[AbsOffset, VoiceEntry]]:
    """Return the first voice record starting in ``[pos, end - 26]``.

    The caller resumes at ``offset + VOICE_RECORD_SIZE`` after a hit.
    Records are not guaranteed to be contiguous, so the scan slides one
    byte at a time between matches.
    """

    while pos + VOICE_RECORD_SIZE <= end:
        if matches_voice_signature(data, pos):
            return pos, VoiceEntry.from_bytes(data, pos)
        pos = pos + 1
    return None


def iter_voices(data: bytes, start: AbsOffset, end: AbsOffset) -> Iterator[VoiceEntry]:
    pos = start
    while True:
        hit = find_next_voice(data, pos, end)
        if hit is None:
            return
        offset, voice = hit
        yield voice
        pos = offset + VOICE_RECORD_SIZE


def resolve_kit_block(
    data: bytes, frame: ChunkFrame, entry: KitEntry
) -> Optional[Tuple[int, AbsOffset]]:
    """Follow ``EKIT`` -> ``DKIT`` directory -> block.  ``None`` if out of bounds."""

    dir_record = frame.to_absolute(entry.dkit_dir_offset)
    if not in_bounds(data, dir_record, KIT_DIR_RECORD_SIZE):
        return None
    seq_id = read_u32(data, dir_record)
    block = frame.to_absolute(DataRel(read_u32(data, dir_record + 8)))
    if not in_bounds(data, block, KIT_BLOCK_SIZE):
        return None
    return seq_id, block


def extract_kit_blocks(
    data: bytes, frame: ChunkFrame, entries: List[KitEntry]
) -> List[KitBlock]:
    blocks: List[KitBlock] = []
    for entry in entries:
        resolved = resolve_kit_block(data, frame, entry)
        if resolved is None:
            continue
        seq_id, base = resolved
        voices = tuple(
            iter_voices(data, base + VOICE_REGION_START, base + VOICE_REGION_END)
        )
        blocks.append(
            KitBlock(
                seq_id=seq_id,
                offset=base,
                raw=data[base.value : base.value + KIT_BLOCK_SIZE],
                voices=voices,
            )
        )
    return blocks
