#!/usr/bin/env python3
"""Apply a JSON edit spec to an ``.MTA`` backup."""

from __future__ import annotations

import argparse
import hashlib
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mta.edit_spec import build_mta_bytes, load_edit_spec  # noqa: E402
from mta.mta_file import MtaFile  # noqa: E402


def _sha1(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Apply voice edits and wave additions/deletions from a JSON spec",
    )
    parser.add_argument(
        "spec",
        type=Path,
        help="Path to JSON edit spec",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output .MTA path (overrides spec.output)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and apply without writing output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        spec = load_edit_spec(args.spec)
    except ValueError as exc:
        print(f"ERR  {args.spec}: {exc}", file=sys.stderr)
        return 1
    out_path = args.output if args.output is not None else spec.output

    if not args.dry_run and out_path is None:
        parser.error("output path required: set spec.output or pass --output")

    try:
        mta_bytes = build_mta_bytes(spec)
        # The result must decode and re-encode byte-exactly.
        reparsed = MtaFile.from_bytes(mta_bytes)
        if reparsed.to_bytes() != mta_bytes:
            raise ValueError("edited output failed MtaFile round-trip validation")
    except ValueError as exc:
        print(f"ERR  {spec.input}: {exc}", file=sys.stderr)
        return 1

    summary = (
        f"voice_edits={len(spec.voice_edits)} deleted={len(spec.delete_waves)} "
        f"added={len(spec.add_waves)} waves={len(reparsed.waves)}"
    )
    if args.dry_run:
        print(f"dry-run OK: {summary} size={len(mta_bytes)}B input={spec.input}")
        return 0

    assert out_path is not None  # checked above
    out_path = out_path.expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(mta_bytes)

    print(f"Wrote {len(mta_bytes)} bytes -> {out_path}")
    print(f"  {summary}")
    print(f"  sha1={_sha1(mta_bytes)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
