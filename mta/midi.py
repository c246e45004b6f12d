from __future__ import annotations

from typing import Iterable

import mido

from .kit_reader import KitBlock, VoiceEntry


NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

ZONE_LABELS = {
    0x00: "head",
    0x01: "rim",
    0x02: "head-alt",
    0x03: "edge",
    0x04: "bell",
    0x10: "HH-bow",
    0x11: "HH-edge",
    0x20: "bow",
    0x21: "edge",
    0x40: "HH-closed",
    0x41: "HH-open",
    0x42: "HH-half",
    0x43: "HH-splash",
}

FLAG_LABELS = {
    0x00: "",
    0x01: "HH open",
    0x02: "HH close",
    0x04: "cymbal",
    0x05: "HH edge",
}

DRUM_CHANNEL = 9  # MIDI channel 10, zero-based
AUDITION_TICKS_PER_BEAT = 480
AUDITION_GAP_TICKS = 240
AUDITION_GATE_TICKS = 120


def note_name(n: int) -> str:
    """MIDI note number to name; octave is n // 12 - 1, so 60 is C4."""

    if n < 0 or n > 127:
        return f"?{n}"
    return f"{NOTE_NAMES[n % 12]}{n // 12 - 1}"


def note_label(n: int) -> str:
    return f"{note_name(n)} / {n}"


def zone_label(zone_type: int) -> str:
    return ZONE_LABELS.get(zone_type, f"0x{zone_type:02x}")


def flag_label(flags: int) -> str:
    return FLAG_LABELS.get(flags, f"0x{flags:x}")


def _audition_order(voices: Iterable[VoiceEntry]) -> list[VoiceEntry]:
    return sorted(voices, key=lambda v: (v.pad_number, v.byte_offset))


def kit_to_midi(block: KitBlock, *, bpm: float = 120.0) -> mido.MidiFile:
    """Build a MIDI file that strikes every voice of a kit once, in pad order.

    Velocity is the voice's velocity-split upper bound, so each zone of a
    velocity-layered pad is triggered in its own layer.
    """

    mid = mido.MidiFile(ticks_per_beat=AUDITION_TICKS_PER_BEAT)
    track = mido.MidiTrack()
    mid.tracks.append(track)
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm), time=0))

    pending_gap = 0
    for voice in _audition_order(block.voices):
        if voice.midi_note > 127:
            continue
        velocity = max(1, min(voice.vel_upper, 127))
        track.append(
            mido.Message(
                "note_on",
                channel=DRUM_CHANNEL,
                note=voice.midi_note,
                velocity=velocity,
                time=pending_gap,
            )
        )
        track.append(
            mido.Message(
                "note_off",
                channel=DRUM_CHANNEL,
                note=voice.midi_note,
                velocity=0,
                time=AUDITION_GATE_TICKS,
            )
        )
        pending_gap = AUDITION_GAP_TICKS
    track.append(mido.MetaMessage("end_of_track", time=pending_gap))
    return mid
