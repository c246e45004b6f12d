"""WAV boundary: import user samples, export decoded wave blocks.

The device only accepts mono, 16-bit, 44100 Hz PCM.  WAV data is
little-endian; conversion to the container's big-endian PCM happens in
``mta.writer``.
"""

from __future__ import annotations

import re
import struct
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .wave_reader import DEFAULT_SAMPLE_RATE, WaveBlock


DOS_BASENAME_CHARS = 6


@dataclass(frozen=True)
class WavData:
    samples: Tuple[int, ...]
    sample_rate: int
    channels: int
    bits_per_sample: int


def read_wav(path: Path | str) -> WavData:
    try:
        with wave.open(str(path), "rb") as w:
            channels = w.getnchannels()
            sampwidth = w.getsampwidth()
            framerate = w.getframerate()
            frames = w.readframes(w.getnframes())
    except wave.Error as exc:
        raise ValueError(f"Not a supported WAV file: {exc}") from exc
    except EOFError as exc:
        raise ValueError("Not a WAV file (truncated header)") from exc

    if sampwidth != 2:
        raise ValueError(
            f"Only 16-bit WAV files are supported (got {sampwidth * 8}-bit)"
        )
    if framerate != DEFAULT_SAMPLE_RATE:
        raise ValueError(
            f"Sample rate must be {DEFAULT_SAMPLE_RATE} Hz (got {framerate} Hz). "
            "Please resample the file before importing."
        )
    if channels != 1:
        raise ValueError(
            f"Only mono (1 channel) WAV files are supported (got {channels} channels). "
            "Please convert to mono before importing."
        )

    count = len(frames) // 2
    samples = struct.unpack(f"<{count}h", frames[: count * 2])
    return WavData(
        samples=samples,
        sample_rate=framerate,
        channels=channels,
        bits_per_sample=sampwidth * 8,
    )


def write_wav(path: Path | str, block: WaveBlock) -> None:
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(block.sample_rate or DEFAULT_SAMPLE_RATE)
        w.writeframes(struct.pack(f"<{len(block.samples)}h", *block.samples))


def to_dos_filename(name: str) -> str:
    """``"Snare Hit.wav"`` -> ``"SNAREH~1"``."""

    stem = name.rsplit(".", 1)[0] if "." in name else name
    cleaned = re.sub(r"[^A-Za-z0-9_]", "", stem).upper()
    return f"{cleaned[:DOS_BASENAME_CHARS]}~1"
