"""
spec-delta — CLI subprocess smoke contracts

File: tests/integration/test_cli_smoke.py
Last updated: 2026-10-19

Purpose
- Enforce CLI behavior for `python -m spec_delta` merge/validate/archive/tokens.
- Verify exit codes, stdout/stderr separation, and on-disk side effects.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

BASE = """# Auth Specification

## Purpose
1. First step
4. Second step

## Requirements

### Requirement: Login
The system SHALL log users in.

#### Scenario: Valid credentials
- **WHEN** credentials are valid
- **THEN** a session starts

### Requirement: Logout
The system SHALL end sessions.

#### Scenario: Explicit logout
- **WHEN** the user logs out
- **THEN** the session ends
"""

REMOVE_LOGOUT = "## REMOVED Requirements\n\n### Requirement: Logout\n"

ADD_TWO_FACTOR = """## ADDED Requirements

### Requirement: Two Factor
The system MUST require a second factor.

#### Scenario: Code prompt
- **WHEN** a user signs in
- **THEN** a code is requested
"""


def _run_cli(cwd: Path, *args: str) -> subprocess.CompletedProcess[str]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("SPEC_DELTA_")}
    existing_pythonpath = env.get("PYTHONPATH")
    src_pythonpath = str(SRC_PATH)
    env["PYTHONPATH"] = (
        src_pythonpath if not existing_pythonpath else f"{src_pythonpath}{os.pathsep}{existing_pythonpath}"
    )
    return subprocess.run(
        [sys.executable, "-m", "spec_delta", *args],
        cwd=cwd,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )


def _write(path: Path, contents: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")


@pytest.mark.integration
def test_merge_prints_merged_spec_and_reports_counts_on_stderr(tmp_path: Path) -> None:
    _write(tmp_path / "specs" / "auth" / "spec.md", BASE)
    _write(tmp_path / "delta.md", REMOVE_LOGOUT)

    completed = _run_cli(tmp_path, "merge", "specs/auth/spec.md", "delta.md")

    assert completed.returncode == 0, completed.stderr
    assert "### Requirement: Logout" not in completed.stdout
    assert "1. First step\n4. Second step\n" in completed.stdout
    assert completed.stdout.endswith("- **THEN** a session starts\n")
    assert "operations: added 0, modified 0, removed 1, renamed 0" in completed.stderr


@pytest.mark.integration
def test_merge_new_spec_writes_output_file(tmp_path: Path) -> None:
    _write(tmp_path / "delta.md", ADD_TWO_FACTOR)
    target = tmp_path / "specs" / "two-factor" / "spec.md"

    completed = _run_cli(
        tmp_path,
        "merge",
        "specs/two-factor/spec.md",
        "delta.md",
        "--new",
        "--output",
        "specs/two-factor/spec.md",
    )

    assert completed.returncode == 0, completed.stderr
    assert target.read_text(encoding="utf-8").startswith(
        "# Two Factor Specification\n\n## Requirements\n\n### Requirement: Two Factor\n"
    )
    assert "operations: added 1, modified 0, removed 0, renamed 0" in completed.stdout


@pytest.mark.integration
def test_merge_json_payload(tmp_path: Path) -> None:
    _write(tmp_path / "specs" / "auth" / "spec.md", BASE)
    _write(tmp_path / "delta.md", REMOVE_LOGOUT)

    completed = _run_cli(tmp_path, "merge", "specs/auth/spec.md", "delta.md", "--format", "json")

    assert completed.returncode == 0, completed.stderr
    payload = json.loads(completed.stdout)
    assert payload["command"] == "merge"
    assert payload["counts"] == {"added": 0, "modified": 0, "removed": 1, "renamed": 0}
    assert "### Requirement: Login" in payload["text"]


@pytest.mark.integration
def test_merge_missing_base_requires_new_flag(tmp_path: Path) -> None:
    _write(tmp_path / "delta.md", ADD_TWO_FACTOR)

    completed = _run_cli(tmp_path, "merge", "specs/missing/spec.md", "delta.md")

    assert completed.returncode == 2
    assert completed.stderr.startswith("error: base spec not found")
    assert completed.stdout == ""


@pytest.mark.integration
def test_merge_conflicting_delta_is_rejected(tmp_path: Path) -> None:
    _write(tmp_path / "specs" / "auth" / "spec.md", BASE)
    _write(
        tmp_path / "delta.md",
        "## MODIFIED Requirements\n\n### Requirement: Logout\nThe system SHALL x.\n\n"
        "#### Scenario: S\n- ok\n\n" + REMOVE_LOGOUT,
    )

    completed = _run_cli(tmp_path, "merge", "specs/auth/spec.md", "delta.md")

    assert completed.returncode == 1
    assert "appears in both MODIFIED and REMOVED sections" in completed.stderr
    assert completed.stdout == ""


@pytest.mark.integration
def test_merge_pre_validation_reports_missing_targets(tmp_path: Path) -> None:
    _write(tmp_path / "specs" / "auth" / "spec.md", BASE)
    _write(tmp_path / "delta.md", "## REMOVED Requirements\n\n### Requirement: Ghost\n")

    rejected = _run_cli(tmp_path, "merge", "specs/auth/spec.md", "delta.md")
    lenient = _run_cli(tmp_path, "merge", "specs/auth/spec.md", "delta.md", "--no-validate")

    assert rejected.returncode == 1
    assert "REMOVED requirement 'Ghost' does not exist in base spec" in rejected.stderr
    assert lenient.returncode == 0
    assert lenient.stdout == BASE


@pytest.mark.integration
def test_validate_exit_codes_and_json_report(tmp_path: Path) -> None:
    _write(tmp_path / "good.md", BASE)
    _write(tmp_path / "vague.md", "## Requirements\n\n### Requirement: X\nUsers log in.\n")

    good = _run_cli(tmp_path, "validate", "good.md")
    strict = _run_cli(tmp_path, "validate", "vague.md", "--format", "json")
    lenient = _run_cli(tmp_path, "validate", "vague.md", "--no-strict")

    assert good.returncode == 0
    assert good.stdout == "good.md: valid\n"

    assert strict.returncode == 1
    report = json.loads(strict.stdout)
    assert report["valid"] is False
    assert report["strict"] is True
    assert report["summary"] == {"errors": 2, "warnings": 0}

    assert lenient.returncode == 0
    assert lenient.stdout.startswith("vague.md: valid (0 errors, 2 warnings)\n")


@pytest.mark.integration
def test_validate_delta_flag(tmp_path: Path) -> None:
    _write(tmp_path / "delta.md", "# Delta\n\nNothing declared.\n")

    completed = _run_cli(tmp_path, "validate", "delta.md", "--delta")

    assert completed.returncode == 1
    assert "must declare at least one ADDED" in completed.stdout


@pytest.mark.integration
def test_tokens_json_dump(tmp_path: Path) -> None:
    _write(tmp_path / "doc.md", "# T\n```\n# fenced\n```\n")

    completed = _run_cli(tmp_path, "tokens", "doc.md", "--format", "json")

    assert completed.returncode == 0, completed.stderr
    kinds = [token["kind"] for token in json.loads(completed.stdout)["tokens"]]
    assert kinds == ["Header", "CodeFence", "CodeContent", "CodeFence", "EOF"]


@pytest.mark.integration
def test_archive_by_change_name_with_dry_run(tmp_path: Path) -> None:
    _write(tmp_path / "specs" / "auth" / "spec.md", BASE)
    _write(tmp_path / "changes" / "add-2fa" / "specs" / "auth" / "spec.md", ADD_TWO_FACTOR)

    dry = _run_cli(tmp_path, "archive", "add-2fa", "--dry-run")

    assert dry.returncode == 0, dry.stderr
    assert dry.stdout.startswith("Archived add-2fa (dry run)\n")
    assert "operations: added 1, modified 0, removed 0, renamed 0" in dry.stdout
    assert (tmp_path / "specs" / "auth" / "spec.md").read_text(encoding="utf-8") == BASE

    real = _run_cli(tmp_path, "archive", "changes/add-2fa", "--format", "yaml")

    assert real.returncode == 0, real.stderr
    assert "dry_run: false" in real.stdout
    merged = (tmp_path / "specs" / "auth" / "spec.md").read_text(encoding="utf-8")
    assert merged.endswith("- **THEN** a code is requested\n")
    assert "### Requirement: Two Factor" in merged


@pytest.mark.integration
def test_archive_missing_change_and_missing_config(tmp_path: Path) -> None:
    missing_change = _run_cli(tmp_path, "archive", "nope")
    missing_config = _run_cli(tmp_path, "validate", "x.md", "--config", "absent.toml")

    assert missing_change.returncode == 2
    assert "change directory not found" in missing_change.stderr
    assert missing_config.returncode == 2
    assert "config file not found" in missing_config.stderr


@pytest.mark.integration
def test_info_logs_go_to_stderr_as_json_lines(tmp_path: Path) -> None:
    _write(tmp_path / "specs" / "auth" / "spec.md", BASE)
    _write(tmp_path / "delta.md", REMOVE_LOGOUT)

    completed = _run_cli(
        tmp_path, "merge", "specs/auth/spec.md", "delta.md", "--format", "json", "--log-level", "INFO"
    )

    assert completed.returncode == 0, completed.stderr
    json.loads(completed.stdout)
    events = [json.loads(line) for line in completed.stderr.splitlines()]
    messages = [event["message"] for event in events]
    assert "spec_merge_completed" in messages
    assert all(str(event["run_id"]).startswith("merge-") for event in events)


@pytest.mark.integration
def test_missing_subcommand_is_usage_error(tmp_path: Path) -> None:
    completed = _run_cli(tmp_path)

    assert completed.returncode == 2
    assert "usage: spec-delta" in completed.stderr


@pytest.mark.integration
def test_base_without_requirements_section_is_input_error(tmp_path: Path) -> None:
    _write(tmp_path / "specs" / "auth" / "spec.md", "# Auth Specification\n\n## Purpose\nx\n")
    _write(tmp_path / "delta.md", REMOVE_LOGOUT)

    completed = _run_cli(tmp_path, "merge", "specs/auth/spec.md", "delta.md")

    assert completed.returncode == 2
    assert "has no '## Requirements' section" in completed.stderr
    assert "pre-merge validation failed" not in completed.stderr
    assert completed.stdout == ""
