from pathlib import Path
import sys

import mido
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mta.midi import (  # noqa: E402
    DRUM_CHANNEL,
    flag_label,
    kit_to_midi,
    note_label,
    note_name,
    zone_label,
)
from mta.mta_file import MtaFile  # noqa: E402
from synthetic_mta import SynthKit, SynthVoice, build_mta, contiguous, default_kits  # noqa: E402


@pytest.mark.parametrize(
    "n,expected",
    [(0, "C-1"), (36, "C2"), (38, "D2"), (60, "C4"), (61, "C#4"), (127, "G9"), (128, "?128"), (-1, "?-1")],
)
def test_note_name(n: int, expected: str) -> None:
    assert note_name(n) == expected


def test_labels() -> None:
    assert note_label(38) == "D2 / 38"
    assert zone_label(0x41) == "HH-open"
    assert zone_label(0x7E) == "0x7e"
    assert flag_label(0x00) == ""
    assert flag_label(0x02) == "HH close"
    assert flag_label(0x30) == "0x30"


def test_kit_audition_strikes_each_voice_in_pad_order() -> None:
    kit = SynthKit(
        slot=0,
        name="Order",
        voices=contiguous(
            [
                SynthVoice(pad=3, note=49, vel_upper=90),
                SynthVoice(pad=0, note=36, vel_upper=0),
                SynthVoice(pad=0, note=37, vel_upper=127),
                SynthVoice(pad=1, note=200),
            ]
        ),
    )
    mta = MtaFile.from_bytes(build_mta([kit], with_waves=False))
    mid = kit_to_midi(mta.kit_blocks[0], bpm=90)

    assert mid.ticks_per_beat == 480
    track = mid.tracks[0]
    assert track[0].type == "set_tempo"
    assert track[0].tempo == mido.bpm2tempo(90)
    assert track[-1].type == "end_of_track"

    notes_on = [m for m in track if m.type == "note_on"]
    assert [m.note for m in notes_on] == [36, 37, 49]
    assert [m.velocity for m in notes_on] == [1, 127, 90]
    assert {m.channel for m in notes_on} == {DRUM_CHANNEL}
    assert [m.time for m in notes_on] == [0, 240, 240]
    assert all(m.time == 120 for m in track if m.type == "note_off")


def test_kit_audition_saves(tmp_path: Path) -> None:
    mta = MtaFile.from_bytes(build_mta(default_kits(), with_waves=False))
    mid = kit_to_midi(mta.kit_block_for(mta.kits[0]))
    out = tmp_path / "kit.mid"
    mid.save(str(out))
    loaded = mido.MidiFile(str(out))
    assert [m.note for m in loaded.tracks[0] if m.type == "note_on"] == [38, 40, 42]
