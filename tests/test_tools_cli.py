"""CLI integration tests for the tools/ scripts."""

from __future__ import annotations

import json
import os
from pathlib import Path
import subprocess
import sys
import wave

import mido

REPO_ROOT = Path(__file__).resolve().parents[1]
TOOLS = REPO_ROOT / "tools"
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mta.mta_file import MtaFile  # noqa: E402
from synthetic_mta import build_mta, default_kits, default_waves  # noqa: E402


def _run(script: str, *args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = str(REPO_ROOT)
    return subprocess.run(
        [sys.executable, str(TOOLS / script), *args],
        cwd=str(REPO_ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def _mta_file(tmp_path: Path, name: str = "F.MTA") -> Path:
    path = tmp_path / name
    path.write_bytes(build_mta(default_kits(), default_waves()))
    return path


def test_inspect_reports_bank_pads_and_waves(tmp_path: Path) -> None:
    path = _mta_file(tmp_path)
    result = _run("inspect_mta.py", str(path), "-k", "1")
    assert result.returncode == 0, result.stderr
    out = result.stdout
    assert "[Kit Bank]  200 slots, 3 named" in out
    assert "U001  Maple Custom" in out
    assert "U005  Electro" in out
    assert "U002" not in out
    assert "[Kit U001] Maple Custom" in out
    assert "D2 / 38" in out
    assert "HH close" in out
    assert "KICK~1" in out and "ID 201" in out


def test_inspect_rejects_non_ysfc(tmp_path: Path) -> None:
    path = tmp_path / "bad.MTA"
    path.write_bytes(b"\x00" * 0x100)
    result = _run("inspect_mta.py", str(path))
    assert result.returncode == 1
    assert "not a YSFC file" in result.stderr


def test_roundtrip_reports_ok(tmp_path: Path) -> None:
    _mta_file(tmp_path, "A.MTA")
    _mta_file(tmp_path, "B.MTA")
    result = _run("roundtrip_mta.py", str(tmp_path / "*.MTA"), "--rebuild")
    assert result.returncode == 0, result.stdout
    lines = result.stdout.strip().splitlines()
    assert len(lines) == 2
    assert all(line.startswith("OK   ") for line in lines)
    assert "kits=3 waves=3" in lines[0]


def test_apply_edits_writes_output(tmp_path: Path) -> None:
    _mta_file(tmp_path)
    spec = tmp_path / "edits.json"
    spec.write_text(
        json.dumps(
            {
                "version": 1,
                "input": "F.MTA",
                "output": "out/G.MTA",
                "voice_edits": [{"kit": 1, "voice": 0, "field": "pan", "value": 10}],
                "delete_waves": [201],
            }
        ),
        encoding="utf-8",
    )
    dry = _run("apply_mta_edits.py", str(spec), "--dry-run")
    assert dry.returncode == 0, dry.stderr
    assert dry.stdout.startswith("dry-run OK:")
    assert not (tmp_path / "out" / "G.MTA").exists()

    result = _run("apply_mta_edits.py", str(spec))
    assert result.returncode == 0, result.stderr
    written = MtaFile.from_bytes((tmp_path / "out" / "G.MTA").read_bytes())
    assert [w.filename for w in written.waves] == ["SNARE~1", "CLAP~1"]
    assert written.kit_block_for(written.kits[0]).voices[0].pan == 10


def test_apply_edits_reports_bad_spec(tmp_path: Path) -> None:
    spec = tmp_path / "edits.json"
    spec.write_text(json.dumps({"version": 9, "input": "F.MTA"}), encoding="utf-8")
    result = _run("apply_mta_edits.py", str(spec), "--dry-run")
    assert result.returncode == 1
    assert "unsupported spec version 9" in result.stderr


def test_extract_waves(tmp_path: Path) -> None:
    path = _mta_file(tmp_path)
    result = _run("extract_waves.py", str(path), str(tmp_path / "waves"))
    assert result.returncode == 0, result.stderr
    assert "Extracted 3 waves." in result.stdout
    out = tmp_path / "waves" / "202_SNARE~1.wav"
    with wave.open(str(out), "rb") as w:
        assert w.getnframes() == 3
        assert w.getframerate() == 44100


def test_kit_to_midi(tmp_path: Path) -> None:
    path = _mta_file(tmp_path)
    out = tmp_path / "kit5.mid"
    result = _run("kit_to_midi.py", str(path), "5", "-o", str(out))
    assert result.returncode == 0, result.stderr
    notes = [m.note for m in mido.MidiFile(str(out)).tracks[0] if m.type == "note_on"]
    assert notes == [36, 49]

    missing = _run("kit_to_midi.py", str(path), "2", "-o", str(out))
    assert missing.returncode == 1
    assert "kit block not reachable" in missing.stderr
