from __future__ import annotations

from pathlib import Path

from sdkrel.platform.files import atomic_write_text, copy_file, reset_dir


def test_atomic_write_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b.pom"

    atomic_write_text(target, "<project/>\n")

    assert target.read_text(encoding="utf-8") == "<project/>\n"
    assert list(target.parent.iterdir()) == [target]


def test_copy_file_keeps_source(tmp_path: Path) -> None:
    src = tmp_path / "src.jar"
    src.write_bytes(b"PK")

    dest = copy_file(src, tmp_path / "out" / "x-1.0.jar")

    assert dest.read_bytes() == b"PK"
    assert src.read_bytes() == b"PK"


def test_reset_dir_empties_existing(tmp_path: Path) -> None:
    d = tmp_path / "unit"
    d.mkdir()
    (d / "stale.jar").write_bytes(b"old")

    assert reset_dir(d) == d
    assert list(d.iterdir()) == []
