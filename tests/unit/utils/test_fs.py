"""Unit tests for atomic writes and directory bookkeeping."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from spec_delta.utils.fs import atomic_write, ensure_directory, remove_empty_directories


@pytest.mark.unit
def test_atomic_write_replaces_content_without_temp_leftovers(tmp_path: Path) -> None:
    target = tmp_path / "spec.md"
    target.write_text("old\n", encoding="utf-8")

    atomic_write(target, "new\r\nline\n")

    assert target.read_bytes() == b"new\r\nline\n"
    assert sorted(path.name for path in tmp_path.iterdir()) == ["spec.md"]


@pytest.mark.unit
def test_atomic_write_requires_existing_parent(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        atomic_write(tmp_path / "missing" / "spec.md", "x")


@pytest.mark.unit
def test_atomic_write_cleans_temp_file_on_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail_replace(src: str, dst: str) -> None:
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(os, "replace", _fail_replace)

    with pytest.raises(PermissionError):
        atomic_write(tmp_path / "spec.md", "data")

    assert list(tmp_path.iterdir()) == []


@pytest.mark.unit
def test_ensure_directory_reports_created_deepest_first(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "c"

    created = ensure_directory(target)

    assert created == [tmp_path / "a" / "b" / "c", tmp_path / "a" / "b", tmp_path / "a"]
    assert target.is_dir()
    assert ensure_directory(target) == []


@pytest.mark.unit
def test_remove_empty_directories_keeps_non_empty(tmp_path: Path) -> None:
    created = ensure_directory(tmp_path / "a" / "b")
    (tmp_path / "a" / "keep.txt").write_text("x", encoding="utf-8")

    remove_empty_directories(created)

    assert not (tmp_path / "a" / "b").exists()
    assert (tmp_path / "a").is_dir()
