"""
spec-delta — delta and merge validation

File: src/spec_delta/merge/validator.py
Last updated: 2026-10-19

Purpose
- Reject unsafe deltas before any document is touched, and reject merged
  documents that violate structural invariants afterwards.

Functional requirements
- ``check_duplicates_and_conflicts`` is purely about the delta itself and
  fails on the first problem with a structured error.
- ``validate_pre_merge`` checks the delta against the base spec and reports
  every problem at once.
- ``validate_post_merge`` re-parses the merged text; it never trusts the
  merge bookkeeping.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from spec_delta.delta.extractor import (
    normalize_requirement_name,
    parse_requirements_section,
    parse_requirements_text,
    parse_scenarios,
    read_spec_text,
)
from spec_delta.errors import (
    DeltaConflictError,
    DuplicateRequirementError,
    MissingRequirementsSectionError,
    PostMergeValidationError,
    PreMergeValidationError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from spec_delta.delta.models import DeltaPlan, RequirementBlock

ADDED: Final[str] = "ADDED"
MODIFIED: Final[str] = "MODIFIED"
REMOVED: Final[str] = "REMOVED"
RENAMED_FROM: Final[str] = "RENAMED FROM"
RENAMED_TO: Final[str] = "RENAMED TO"

# Section pairs that may never share a normalized name, in reporting order.
_CONFLICTING_SECTIONS: Final[tuple[tuple[str, str], ...]] = (
    (ADDED, MODIFIED),
    (ADDED, REMOVED),
    (ADDED, RENAMED_TO),
    (MODIFIED, REMOVED),
    (MODIFIED, RENAMED_FROM),
    (REMOVED, RENAMED_FROM),
)

DUPLICATE_AFTER_MERGE: Final[str] = "duplicate requirement name in merged spec"
NO_SCENARIOS: Final[str] = "requirement has no scenarios"


@dataclass(frozen=True, slots=True)
class _NameSet:
    """Normalized keys of one delta section, mapped to the first declared spelling."""

    names: dict[str, str]

    @classmethod
    def of(cls, declared: Sequence[str]) -> _NameSet:
        names: dict[str, str] = {}
        for name in declared:
            names.setdefault(normalize_requirement_name(name), name)
        return cls(names=names)


def check_duplicates_and_conflicts(plan: DeltaPlan) -> None:
    """Reject duplicates within ADDED / MODIFIED and collisions across sections.

    Raises:
        DuplicateRequirementError: a name repeats inside ADDED or MODIFIED.
        DeltaConflictError: one name is claimed by two incompatible sections.
    """

    _check_duplicates_in_section(plan.added, ADDED)
    _check_duplicates_in_section(plan.modified, MODIFIED)

    sets = {
        ADDED: _NameSet.of([block.name for block in plan.added]),
        MODIFIED: _NameSet.of([block.name for block in plan.modified]),
        REMOVED: _NameSet.of(plan.removed),
        RENAMED_FROM: _NameSet.of([op.from_name for op in plan.renamed]),
        RENAMED_TO: _NameSet.of([op.to_name for op in plan.renamed]),
    }
    for first, second in _CONFLICTING_SECTIONS:
        other = sets[second].names
        for key, declared in sets[first].names.items():
            if key in other:
                raise DeltaConflictError(section1=first, section2=second, requirement_name=declared)


def _check_duplicates_in_section(blocks: Sequence[RequirementBlock], section: str) -> None:
    seen: set[str] = set()
    for block in blocks:
        key = normalize_requirement_name(block.name)
        if key in seen:
            raise DuplicateRequirementError(section_name=section, requirement_name=block.name)
        seen.add(key)


def validate_pre_merge(
    base_spec_path: Path | str,
    plan: DeltaPlan,
    spec_exists: bool,
) -> None:
    """Check delta targets against the base spec's requirement names.

    Operations are replayed in merge order (RENAMED, REMOVED, MODIFIED, ADDED)
    over the set of base names, so MODIFIED may target a RENAMED-TO name.

    Raises:
        SpecFileError: the existing base spec cannot be read.
        MissingRequirementsSectionError: the existing base spec has no
            requirements section.
        PreMergeValidationError: one or more operations reference missing or
            already-taken names.
    """

    live: set[str] = set()
    if spec_exists:
        blocks = parse_requirements_section(read_spec_text(base_spec_path), path=base_spec_path)
        if blocks is None:
            raise MissingRequirementsSectionError(path=base_spec_path)
        live = {normalize_requirement_name(block.name) for block in blocks}

    issues: list[str] = []
    for op in plan.renamed:
        source = normalize_requirement_name(op.from_name)
        target = normalize_requirement_name(op.to_name)
        if source not in live:
            issues.append(f"{RENAMED_FROM} requirement {op.from_name!r} does not exist in base spec")
            continue
        if target != source and target in live:
            issues.append(f"{RENAMED_TO} requirement {op.to_name!r} already exists in base spec")
            continue
        live.discard(source)
        live.add(target)

    for name in plan.removed:
        key = normalize_requirement_name(name)
        if key not in live:
            issues.append(f"{REMOVED} requirement {name!r} does not exist in base spec")
            continue
        live.discard(key)

    for block in plan.modified:
        if normalize_requirement_name(block.name) not in live:
            issues.append(f"{MODIFIED} requirement {block.name!r} does not exist in base spec")

    for block in plan.added:
        if normalize_requirement_name(block.name) in live:
            issues.append(f"{ADDED} requirement {block.name!r} already exists in base spec")

    if issues:
        raise PreMergeValidationError(path=Path(base_spec_path), issues=issues)


def validate_post_merge(merged_text: str, path: Path | str | None = None) -> None:
    """Reject merged text with duplicate requirement names or scenario-less requirements.

    Raises:
        PostMergeValidationError: the first violation found, in document order.
    """

    blocks = parse_requirements_text(merged_text, path=path)
    seen: set[str] = set()
    for block in blocks:
        key = normalize_requirement_name(block.name)
        if key in seen:
            raise PostMergeValidationError(
                path=path, requirement_name=block.name, reason=DUPLICATE_AFTER_MERGE
            )
        seen.add(key)

    for block in blocks:
        if not parse_scenarios(block.raw):
            raise PostMergeValidationError(
                path=path, requirement_name=block.name, reason=NO_SCENARIOS
            )


__all__ = [
    "ADDED",
    "MODIFIED",
    "REMOVED",
    "RENAMED_FROM",
    "RENAMED_TO",
    "check_duplicates_and_conflicts",
    "validate_post_merge",
    "validate_pre_merge",
]
