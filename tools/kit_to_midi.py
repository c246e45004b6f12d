#!/usr/bin/env python3
"""Write a MIDI file that auditions every pad zone of one kit.

Examples
--------
    python tools/kit_to_midi.py F.MTA 1 -o kit001.mid
    python tools/kit_to_midi.py F.MTA 12 --bpm 90 -o kit012.mid
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mta.midi import kit_to_midi  # noqa: E402
from mta.mta_file import MtaFile  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export a kit audition as a MIDI file.")
    parser.add_argument("path", type=Path, help="Input .MTA file")
    parser.add_argument("kit", type=int, help="1-based bank position (U001 = 1)")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output .mid path")
    parser.add_argument("--bpm", type=float, default=120.0, help="Tempo (default 120)")
    args = parser.parse_args(argv)

    try:
        mta = MtaFile.from_bytes(args.path.read_bytes())
    except ValueError as exc:
        print(f"ERR  {args.path}: {exc}", file=sys.stderr)
        return 1

    if not 1 <= args.kit <= len(mta.kits):
        parser.error(f"kit must be in [1, {len(mta.kits)}]")
    kit = mta.kits[args.kit - 1]
    block = mta.kit_block_for(kit)
    if block is None:
        print(f"ERR  kit {args.kit}: kit block not reachable", file=sys.stderr)
        return 1

    mid = kit_to_midi(block, bpm=args.bpm)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    mid.save(str(args.output))
    print(f"wrote {args.output} ({len(block.voices)} voices, kit {kit.name or '(unnamed)'})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
