from __future__ import annotations

from pathlib import Path

from ghr.cli.files import expand_glob
from ghr.core.result import Err, Ok


def test_matches_are_sorted_files(tmp_path: Path) -> None:
    (tmp_path / "b.zip").write_bytes(b"b")
    (tmp_path / "a.zip").write_bytes(b"a")
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")

    result = expand_glob(str(tmp_path / "*.zip"))

    assert result == Ok([tmp_path / "a.zip", tmp_path / "b.zip"])


def test_directories_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "dist.zip").mkdir()
    (tmp_path / "app.zip").write_bytes(b"a")

    result = expand_glob(str(tmp_path / "*.zip"))

    assert result == Ok([tmp_path / "app.zip"])


def test_recursive_pattern(tmp_path: Path) -> None:
    nested = tmp_path / "out" / "linux"
    nested.mkdir(parents=True)
    (nested / "tool.tar.gz").write_bytes(b"t")

    result = expand_glob(str(tmp_path / "**" / "*.tar.gz"))

    assert result == Ok([nested / "tool.tar.gz"])


def test_no_match_is_empty(tmp_path: Path) -> None:
    assert expand_glob(str(tmp_path / "*.deb")) == Ok([])


def test_empty_pattern_is_error() -> None:
    result = expand_glob("  ")
    assert isinstance(result, Err)
