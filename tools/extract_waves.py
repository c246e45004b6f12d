#!/usr/bin/env python3
"""Export every user wave of an ``.MTA`` backup as a mono 16-bit WAV file."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mta.mta_file import MtaFile  # noqa: E402
from mta.wav_io import write_wav  # noqa: E402


def _safe_stem(name: str) -> str:
    return "".join(c if c.isalnum() or c in "-_~" else "_" for c in name) or "wave"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Extract user waves from a .MTA file.")
    parser.add_argument("path", type=Path, help="Input .MTA file")
    parser.add_argument("output_dir", type=Path, help="Directory for the WAV files")
    args = parser.parse_args(argv)

    try:
        mta = MtaFile.from_bytes(args.path.read_bytes())
    except ValueError as exc:
        print(f"ERR  {args.path}: {exc}", file=sys.stderr)
        return 1

    args.output_dir.mkdir(parents=True, exist_ok=True)
    count = 0
    for wave in mta.waves:
        block = mta.wave_block_for(wave)
        if block is None or not block.samples:
            print(f"skip {wave.filename} (ID {wave.seq_id}): no audio data")
            continue
        out_file = args.output_dir / f"{wave.seq_id:03d}_{_safe_stem(wave.filename)}.wav"
        write_wav(out_file, block)
        print(f"wrote {out_file} ({len(block.samples)} samples @ {block.sample_rate} Hz)")
        count += 1

    print(f"Extracted {count} waves.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
