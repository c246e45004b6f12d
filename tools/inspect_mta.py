#!/usr/bin/env python3
"""Human-readable ``.MTA`` backup inspector.

Prints the chunk directory, the kit bank (named slots only unless
``--all-slots``), the pad table of selected kits, and the user waves.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import List, Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mta.kit_reader import KitBlock, KitEntry  # noqa: E402
from mta.midi import flag_label, note_label, zone_label  # noqa: E402
from mta.mta_file import MtaFile  # noqa: E402


def bank_label(position: int) -> str:
    return f"U{position + 1:03d}"


def format_pad_table(block: KitBlock) -> List[str]:
    if not block.voices:
        return ["    (no voice entries found in this kit)"]
    lines = [
        "    Pad  Zone        MIDI Note     VelLim  Vol  Pan  Sends             Flags     @Offset"
    ]
    for voice in sorted(block.voices, key=lambda v: (v.pad_number, v.byte_offset)):
        sends = " ".join(f"{s:3d}" for s in voice.sends)
        lines.append(
            f"    {voice.pad_number + 1:>3}  {zone_label(voice.zone_type):<10}  "
            f"{note_label(voice.midi_note):<12}  {voice.vel_upper:>6}  {voice.volume:>3}  "
            f"{voice.pan:>3}  {sends}  {flag_label(voice.flags):<8}  "
            f"0x{voice.byte_offset.value:06X}"
        )
    return lines


def generate_report(
    path: Path, mta: MtaFile, *, kits: Sequence[int] = (), all_slots: bool = False
) -> str:
    lines: List[str] = []
    lines.append("MTA Backup Inspect")
    lines.append("=" * 18)
    lines.append(f"File: {path.name}   Size: {len(mta.raw):,} B")
    lines.append("")

    lines.append("[Chunk Directory @0x80]")
    for entry in mta.container.directory:
        header = mta.container.header(entry.chunk_id)
        size = f"{header.data_size:,} B" if header is not None else "?"
        lines.append(f"  {entry.chunk_id}  @0x{entry.offset.value:08X}  data={size}")
    lines.append("")

    named = sum(1 for kit in mta.kits if kit.is_named)
    lines.append(f"[Kit Bank]  {len(mta.kits)} slots, {named} named")
    for position, kit in enumerate(mta.kits):
        if not kit.is_named and not all_slots:
            continue
        block = mta.kit_block_for(kit)
        voices = "-" if block is None else str(len(block.voices))
        lines.append(
            f"  {bank_label(position)}  {kit.name or '-':<16}  seq={kit.seq_id:<5}  voices={voices}"
        )
    lines.append("")

    for number in kits:
        if not 1 <= number <= len(mta.kits):
            lines.append(f"[Kit {number}] out of range")
            lines.append("")
            continue
        kit: KitEntry = mta.kits[number - 1]
        lines.append(f"[Kit {bank_label(number - 1)}] {kit.name or '(unnamed)'}  seq {kit.seq_id}")
        block = mta.kit_block_for(kit)
        if block is None:
            lines.append("    (kit block not reachable)")
        else:
            lines.extend(format_pad_table(block))
        lines.append("")

    lines.append(f"[User Waves]  {len(mta.waves)}")
    if not mta.waves:
        lines.append("  (no user waves in this file)")
    for wave in mta.waves:
        block = mta.wave_block_for(wave)
        if block is None or not block.samples:
            detail = "no audio data"
        else:
            detail = (
                f"{len(block.samples):,} samples @ {block.sample_rate} Hz "
                f"({block.duration:.2f}s)"
            )
        lines.append(f"  {wave.filename:<16}  ID {wave.seq_id:<5}  {detail}")

    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a single .MTA backup file.")
    parser.add_argument("path", type=Path, help="Path to the .MTA file to inspect.")
    parser.add_argument(
        "-k",
        "--kit",
        type=int,
        action="append",
        default=[],
        help="1-based bank position whose pad table to print (repeatable).",
    )
    parser.add_argument(
        "--all-slots", action="store_true", help="List unnamed kit slots too."
    )
    args = parser.parse_args(argv)

    try:
        mta = MtaFile.from_bytes(args.path.read_bytes())
    except ValueError as exc:
        print(f"ERR  {args.path}: {exc}", file=sys.stderr)
        return 1
    print(generate_report(args.path, mta, kits=args.kit, all_slots=args.all_slots))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
