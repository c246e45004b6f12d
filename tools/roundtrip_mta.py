#!/usr/bin/env python3
"""Round-trip ``.MTA`` backups through the decoder and both writers."""

from __future__ import annotations

import argparse
import glob
from pathlib import Path
import sys
from typing import Dict, Iterable, List, Optional, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mta.mta_file import MtaFile  # noqa: E402
from mta.writer import rebuild_wave_sections  # noqa: E402


MTA_SUFFIX = ".mta"


def _is_backup(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() == MTA_SUFFIX


def collect_paths(targets: Iterable[str]) -> List[Path]:
    """Expand files, directories and glob patterns into unique ``.MTA`` paths."""

    found: Dict[Path, Path] = {}
    for target in targets:
        candidate = Path(target)
        if candidate.is_dir():
            matches = sorted(p for p in candidate.rglob("*") if _is_backup(p))
        elif candidate.exists():
            matches = [candidate] if _is_backup(candidate) else []
        else:
            hits = (Path(p) for p in glob.glob(target, recursive=True))
            matches = sorted(p for p in hits if _is_backup(p))
        for path in matches:
            found.setdefault(path.resolve(), path)
    return list(found.values())


def first_diff(a: bytes, b: bytes) -> Optional[int]:
    """Offset of the first differing byte, or of the shorter buffer's end."""

    for idx, (left, right) in enumerate(zip(a, b)):
        if left != right:
            return idx
    return None if len(a) == len(b) else min(len(a), len(b))


def wave_contents(mta: MtaFile) -> List[Tuple[str, int, tuple]]:
    contents = []
    for wave in mta.waves:
        block = mta.wave_block_for(wave)
        if block is not None:
            contents.append((wave.filename, block.sample_rate, block.samples))
    return contents


def describe_mismatch(label: str, path: Path, data: bytes, rebuilt: bytes) -> Optional[str]:
    offset = first_diff(data, rebuilt)
    if offset is None:
        return None
    if len(data) != len(rebuilt):
        return (
            f"FAIL {path} [{label}]: size {len(data)} -> {len(rebuilt)}, "
            f"first diff at 0x{offset:06X}"
        )
    return (
        f"FAIL {path} [{label}]: diff at 0x{offset:06X} "
        f"(orig=0x{data[offset]:02X} new=0x{rebuilt[offset]:02X})"
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Decode + re-encode .MTA files and report mismatches."
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help=".MTA files, directories or glob patterns (quotes recommended for wildcards).",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Also re-encode through the wave-section rebuild and check it re-decodes "
        "to the same waves.",
    )
    args = parser.parse_args(argv)

    targets = collect_paths(args.paths)
    if not targets:
        parser.error("No files matched the provided paths/patterns.")

    failures = 0
    for path in targets:
        data = path.read_bytes()
        try:
            mta = MtaFile.from_bytes(data)
        except ValueError as exc:
            failures += 1
            print(f"ERR  {path}: {exc}")
            continue

        problem = describe_mismatch("in-place", path, data, mta.to_bytes())
        if problem is None and args.rebuild:
            try:
                rebuilt = MtaFile.from_bytes(rebuild_wave_sections(mta))
            except ValueError as exc:
                problem = f"ERR  {path} [rebuild]: {exc}"
            else:
                if wave_contents(mta) != wave_contents(rebuilt):
                    problem = f"FAIL {path} [rebuild]: wave contents changed"

        if problem is None:
            print(f"OK   {path}  kits={len(mta.kit_blocks)} waves={len(mta.waves)}")
        else:
            failures += 1
            print(problem)

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
