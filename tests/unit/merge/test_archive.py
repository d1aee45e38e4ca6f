"""
spec-delta — unit tests for change archiving

File: tests/unit/merge/test_archive.py
Last updated: 2026-10-19

Purpose
- Verify multi-capability archives are all-or-nothing.

What this test file should cover
- Discovery of capability deltas and their target specs.
- Combined and per-capability operation counts.
- Dry runs leave the specs tree untouched.
- Staging failures abort before any write; write failures roll back.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import structlog

from spec_delta.delta.models import OperationCounts
from spec_delta.errors import ArchiveError, DeltaConflictError, PreMergeValidationError, SpecFileError
from spec_delta.merge import archive_change, discover_spec_updates
from spec_delta.merge import archive as archive_module

ALPHA_BASE = """# Alpha Specification

## Requirements

### Requirement: Ping
The system SHALL answer pings.

#### Scenario: Ping
- **WHEN** pinged
- **THEN** it answers
"""

ALPHA_DELTA = """## MODIFIED Requirements

### Requirement: Ping
The system SHALL answer pings within a second.

#### Scenario: Fast ping
- **WHEN** pinged
- **THEN** it answers quickly
"""

BETA_DELTA = """## ADDED Requirements

### Requirement: Pong
The system MUST send pongs.

#### Scenario: Pong
- **WHEN** a ping arrives
- **THEN** a pong leaves
"""


def _write_spec(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path: Path) -> tuple[Path, Path]:
    specs = tmp_path / "specs"
    change = tmp_path / "changes" / "add-pong"
    _write_spec(tmp_path, "specs/alpha/spec.md", ALPHA_BASE)
    _write_spec(tmp_path, "changes/add-pong/specs/alpha/spec.md", ALPHA_DELTA)
    _write_spec(tmp_path, "changes/add-pong/specs/beta/spec.md", BETA_DELTA)
    (change / "specs" / "empty-dir").mkdir()
    return change, specs


@pytest.mark.unit
def test_discover_spec_updates_sorted_with_existence(workspace: tuple[Path, Path]) -> None:
    change, specs = workspace
    updates = discover_spec_updates(change, specs)

    assert [update.capability for update in updates] == ["alpha", "beta"]
    assert [update.exists for update in updates] == [True, False]
    assert updates[1].target == specs / "beta" / "spec.md"
    assert updates[0].to_dict()["source"] == str(change / "specs" / "alpha" / "spec.md")


@pytest.mark.unit
def test_discover_without_specs_dir_is_empty(tmp_path: Path) -> None:
    assert discover_spec_updates(tmp_path / "change", tmp_path / "specs") == ()


@pytest.mark.unit
def test_archive_writes_every_capability(workspace: tuple[Path, Path]) -> None:
    change, specs = workspace
    result = archive_change(change, specs)

    assert result.capabilities == ("alpha", "beta")
    assert result.counts == OperationCounts(added=1, modified=1)
    assert result.per_capability["beta"] == OperationCounts(added=1)
    assert not result.dry_run

    alpha = (specs / "alpha" / "spec.md").read_text(encoding="utf-8")
    assert "within a second" in alpha
    beta = (specs / "beta" / "spec.md").read_text(encoding="utf-8")
    assert beta.startswith("# Beta Specification\n\n## Requirements\n\n### Requirement: Pong\n")

    payload = result.to_dict()
    assert payload["counts"] == {"added": 1, "modified": 1, "removed": 0, "renamed": 0}


@pytest.mark.unit
def test_dry_run_leaves_tree_untouched(workspace: tuple[Path, Path]) -> None:
    change, specs = workspace
    result = archive_change(change, specs, dry_run=True)

    assert result.dry_run
    assert result.counts.total == 2
    assert (specs / "alpha" / "spec.md").read_text(encoding="utf-8") == ALPHA_BASE
    assert not (specs / "beta").exists()


@pytest.mark.unit
def test_staging_failure_aborts_before_any_write(workspace: tuple[Path, Path]) -> None:
    change, specs = workspace
    _write_spec(
        change.parent.parent,
        "changes/add-pong/specs/beta/spec.md",
        BETA_DELTA + "\n## REMOVED Requirements\n\n### Requirement: Pong\n",
    )

    with pytest.raises(ArchiveError) as excinfo:
        archive_change(change, specs)

    assert excinfo.value.capability == "beta"
    assert isinstance(excinfo.value.cause, DeltaConflictError)
    assert (specs / "alpha" / "spec.md").read_text(encoding="utf-8") == ALPHA_BASE
    assert not (specs / "beta").exists()


@pytest.mark.unit
def test_pre_merge_validation_can_be_disabled(workspace: tuple[Path, Path]) -> None:
    change, specs = workspace
    _write_spec(
        change.parent.parent,
        "changes/add-pong/specs/alpha/spec.md",
        ALPHA_DELTA + "\n## REMOVED Requirements\n\n### Requirement: Ghost\n",
    )

    with pytest.raises(ArchiveError) as excinfo:
        archive_change(change, specs)
    assert isinstance(excinfo.value.cause, PreMergeValidationError)

    result = archive_change(change, specs, validate=False)
    assert result.per_capability["alpha"] == OperationCounts(modified=1)


@pytest.mark.unit
def test_write_failure_rolls_back_earlier_writes(
    workspace: tuple[Path, Path], monkeypatch: pytest.MonkeyPatch
) -> None:
    change, specs = workspace
    real_atomic_write = archive_module.atomic_write

    def _flaky_atomic_write(path: Path, data: str, **kwargs: object) -> None:
        if Path(path).parent.name == "beta":
            raise PermissionError(13, "Permission denied")
        real_atomic_write(path, data, **kwargs)

    monkeypatch.setattr(archive_module, "atomic_write", _flaky_atomic_write)

    with structlog.testing.capture_logs() as logs:
        with pytest.raises(ArchiveError) as excinfo:
            archive_change(change, specs)

    error = excinfo.value
    assert error.capability == "beta"
    assert isinstance(error.cause, SpecFileError)
    assert error.cause.reason == "Permission denied"
    assert (specs / "alpha" / "spec.md").read_text(encoding="utf-8") == ALPHA_BASE
    assert not (specs / "beta").exists()
    assert any(entry["event"] == "spec_archive_rolled_back" for entry in logs)


@pytest.mark.unit
def test_archive_logs_completion(workspace: tuple[Path, Path]) -> None:
    change, specs = workspace
    with structlog.testing.capture_logs() as logs:
        archive_change(change, specs, dry_run=True)

    completed = [entry for entry in logs if entry["event"] == "spec_archive_completed"]
    assert completed[0]["capabilities"] == ["alpha", "beta"]
    assert completed[0]["dry_run"] is True
