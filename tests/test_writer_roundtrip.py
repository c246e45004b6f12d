from dataclasses import replace
from pathlib import Path
import struct
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mta.editor import edit_voice  # noqa: E402
from mta.mta_file import MtaFile  # noqa: E402
from mta.writer import write_in_place  # noqa: E402
from synthetic_mta import (  # noqa: E402
    SynthWave,
    build_mta,
    chunk_offset,
    default_kits,
    default_waves,
)


CASES = {
    "full": lambda: build_mta(default_kits(), default_waves()),
    "no-waves": lambda: build_mta(default_kits(), with_waves=False),
    "empty-wave-table": lambda: build_mta(default_kits(), []),
    "single-wave": lambda: build_mta(default_kits(), [SynthWave("ONLY~1", [3, -3])]),
    "reversed-wave-dir": lambda: build_mta(
        default_kits(), default_waves(), reverse_wave_directory=True
    ),
    "between-chunk": lambda: build_mta(default_kits(), default_waves(), between=b"\x01" * 40),
    "no-kits": lambda: build_mta([], default_waves()),
}


@pytest.mark.parametrize("name", sorted(CASES))
def test_unedited_file_roundtrips_byte_exact(name: str) -> None:
    data = CASES[name]()
    assert MtaFile.from_bytes(data).to_bytes() == data


def test_voice_edit_changes_one_byte() -> None:
    data = build_mta(default_kits(), default_waves())
    mta = MtaFile.from_bytes(data)
    voice = mta.kit_block_for(mta.kits[4]).voices[1]

    edited = edit_voice(mta, voice.byte_offset, "pan", 3)
    out = edited.to_bytes()

    assert len(out) == len(data)
    diff = [i for i in range(len(data)) if out[i] != data[i]]
    assert diff == [voice.byte_offset.value + 7]
    assert out[voice.byte_offset.value + 7] == 3


def test_voice_edit_decodes_back() -> None:
    mta = MtaFile.from_bytes(build_mta(default_kits(), default_waves()))
    voice = mta.kit_block_for(mta.kits[0]).voices[2]
    edited = edit_voice(mta, voice.byte_offset, "midi_note", 44)

    reparsed = MtaFile.from_bytes(edited.to_bytes())
    notes = [v.midi_note for v in reparsed.kit_block_for(reparsed.kits[0]).voices]
    assert notes == [38, 40, 44]
    # Waves are untouched by the in-place writer.
    assert [b.samples for b in reparsed.wave_blocks] == [b.samples for b in mta.wave_blocks]


def test_edit_does_not_mutate_source_snapshot() -> None:
    data = build_mta(default_kits(), default_waves())
    mta = MtaFile.from_bytes(data)
    voice = mta.kit_block_for(mta.kits[0]).voices[0]
    edit_voice(mta, voice.byte_offset, "volume", 1)
    assert mta.to_bytes() == data
    assert write_in_place(mta) == data


def test_edit_voice_rejects_unknown_offset() -> None:
    mta = MtaFile.from_bytes(build_mta(default_kits(), default_waves()))
    with pytest.raises(ValueError, match="no voice record"):
        edit_voice(mta, mta.kit_blocks[0].offset, "volume", 1)


def _shared_record_file() -> bytes:
    # Point unnamed EKIT slot 1 at slot 0's DKIT directory record.
    data = bytearray(build_mta(default_kits(), default_waves()))
    slot1 = chunk_offset(bytes(data), "EKIT") + 0x20 + 32
    struct.pack_into(">I", data, slot1 + 24, 0)
    return bytes(data)


def _blocks_at(mta: MtaFile, offset) -> list:
    return [b for b in mta.kit_blocks if b.offset == offset]


def test_shared_kit_record_keeps_voice_edit() -> None:
    mta = MtaFile.from_bytes(_shared_record_file())
    first = mta.kit_block_for(mta.kits[0])
    assert len(_blocks_at(mta, first.offset)) == 2

    voice = first.voices[0]
    edited = edit_voice(mta, voice.byte_offset, "volume", 5)
    assert [b.voices[0].volume for b in _blocks_at(edited, first.offset)] == [5, 5]

    reparsed = MtaFile.from_bytes(edited.to_bytes())
    assert [b.voices[0].volume for b in _blocks_at(reparsed, first.offset)] == [5, 5]


def test_in_place_writer_skips_unchanged_duplicate_blocks() -> None:
    mta = MtaFile.from_bytes(_shared_record_file())
    first = mta.kit_block_for(mta.kits[0])
    patched = first.with_voice_field(first.voices[0].byte_offset, "pan", 9)
    # Only the first copy is patched; the stale copy follows it.
    blocks = (patched,) + tuple(b for b in mta.kit_blocks if b is not first)
    out = write_in_place(replace(mta, kit_blocks=blocks))
    assert out[first.voices[0].byte_offset.value + 7] == 9
