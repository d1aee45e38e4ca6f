"""
spec-delta — spec merger

File: src/spec_delta/merge/merger.py
Last updated: 2026-10-19

Purpose
- Apply a ``DeltaPlan`` to a base spec (or to a synthesized skeleton when the
  capability has no spec yet) and return the merged text plus operation counts.

Functional requirements
- Conflicts and duplicates inside the delta are rejected before any mutation.
- ``merge_spec`` is the file-level pipeline used by the CLI and by archive;
  it optionally wraps the merge in pre- and post-merge validation.
- Operations apply in a fixed order: RENAMED, REMOVED, MODIFIED. ADDED blocks
  are appended at output time, in declaration order.
- A RENAMED, REMOVED, or MODIFIED operation whose target is missing is a
  no-op: it is logged as skipped and not counted.
- Everything outside the ``## Requirements`` section is emitted verbatim,
  apart from the final collapse of 3+ consecutive newlines to 2.
- Requirements keep their original relative order; a renamed requirement
  keeps its slot.

Non-functional requirements
- Pure with respect to the filesystem apart from reading the two inputs; the
  caller decides whether and where to persist the result.
- The working index lives for one call only.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import structlog
from jinja2 import Environment, StrictUndefined

from spec_delta.delta.extractor import (
    REQUIREMENTS_SECTION,
    normalize_requirement_name,
    parse_delta_spec,
    read_spec_text,
)
from spec_delta.delta.models import DeltaPlan, OperationCounts, RequirementBlock
from spec_delta.errors import EmptyDeltaError, MissingRequirementsSectionError, NewSpecOperationError
from spec_delta.markdown.parser import parse
from spec_delta.markdown.query import (
    REQUIREMENT_PREFIX,
    get_requirement_names,
    headers,
    split_section,
)
from spec_delta.merge.validator import (
    check_duplicates_and_conflicts,
    validate_post_merge,
    validate_pre_merge,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_CAPABILITY: Final[str] = "Capability"
SKELETON_TEMPLATE: Final[str] = "# {{ capability }} Specification\n\n## " + REQUIREMENTS_SECTION + "\n"

_BLANK_RUN_RE: Final[re.Pattern[str]] = re.compile(r"\n{3,}")

_ENVIRONMENT: Final[Environment] = Environment(
    undefined=StrictUndefined,
    autoescape=False,
    trim_blocks=False,
    lstrip_blocks=False,
    newline_sequence="\n",
    keep_trailing_newline=True,
)


@dataclass(frozen=True, slots=True)
class MergeResult:
    text: str
    counts: OperationCounts


def capability_title(target_path: Path | str) -> str:
    """Title-cased capability name from the directory holding ``target_path``.

    ``specs/user-auth/spec.md`` gives ``User Auth``. Only the first letter of
    each hyphen-delimited word changes.
    """

    words = [word for word in Path(target_path).parent.name.split("-") if word]
    if not words:
        return DEFAULT_CAPABILITY
    return " ".join(word[:1].upper() + word[1:] for word in words)


def render_skeleton(capability: str) -> str:
    return _ENVIRONMENT.from_string(SKELETON_TEMPLATE).render(capability=capability)


class _RequirementIndex:
    """Base requirement slots in document order plus a ``normalized name -> slot`` map.

    Renames and replacements rewrite a slot in place, so a requirement keeps
    its position for as long as it lives. A removed requirement leaves an
    empty slot behind.
    """

    def __init__(self, blocks: Sequence[RequirementBlock]) -> None:
        self._slots: list[RequirementBlock | None] = []
        self._keys: dict[str, int] = {}
        for block in blocks:
            key = normalize_requirement_name(block.name)
            if key in self._keys:
                # Repeated base names collapse into the first slot; the last body wins.
                self._slots[self._keys[key]] = block
                self._slots.append(None)
                continue
            self._keys[key] = len(self._slots)
            self._slots.append(block)

    def rename(self, source: str, target: str, new_name: str) -> bool:
        slot = self._keys.pop(source, None)
        if slot is None:
            return False
        displaced = self._keys.get(target)
        if displaced is not None:
            self._slots[displaced] = None
        block = self._slots[slot]
        assert block is not None
        self._slots[slot] = block.renamed(new_name)
        self._keys[target] = slot
        return True

    def remove(self, key: str) -> bool:
        slot = self._keys.pop(key, None)
        if slot is None:
            return False
        self._slots[slot] = None
        return True

    def replace(self, key: str, block: RequirementBlock) -> bool:
        slot = self._keys.get(key)
        if slot is None:
            return False
        self._slots[slot] = block
        return True

    def slot(self, position: int) -> RequirementBlock | None:
        return self._slots[position]


@dataclass(frozen=True, slots=True)
class _Segment:
    """A slice of the requirements section body; ``name`` is set for requirement blocks."""

    raw: str
    name: str | None = None


def merge_spec(
    base_spec_path: Path | str,
    delta_spec_path: Path | str,
    spec_exists: bool,
    *,
    validate: bool = False,
    logger: Any | None = None,
) -> MergeResult:
    """Merge the delta at ``delta_spec_path`` into the spec at ``base_spec_path``.

    With ``validate`` set, delta targets are checked against the base spec
    before merging and the merged text is checked afterwards; otherwise
    missing targets are skipped.

    Raises:
        SpecFileError: either input cannot be read.
        EmptyDeltaError: the delta declares no operations.
        DeltaValidationError: the delta has duplicates or conflicting sections,
            or (with ``validate``) fails the pre- or post-merge checks.
        NewSpecOperationError: non-ADDED operations target a missing spec.
        MissingRequirementsSectionError: the base spec has no requirements section.
    """

    log = logger if logger is not None else structlog.get_logger(__name__)
    plan = parse_delta_spec(delta_spec_path)
    _check_plan(plan, source=delta_spec_path)
    if validate:
        validate_pre_merge(base_spec_path, plan, spec_exists)
    base_text = read_spec_text(base_spec_path) if spec_exists else None
    result = _apply_plan(base_text, plan, target_path=Path(base_spec_path), log=log)
    if validate:
        validate_post_merge(result.text, base_spec_path)
    return result


def merge_delta_plan(
    base_text: str | None,
    plan: DeltaPlan,
    *,
    target_path: Path | str,
    logger: Any | None = None,
) -> MergeResult:
    """Apply ``plan`` to ``base_text``; ``None`` means the target spec does not exist."""

    log = logger if logger is not None else structlog.get_logger(__name__)
    _check_plan(plan)
    return _apply_plan(base_text, plan, target_path=Path(target_path), log=log)


def _check_plan(plan: DeltaPlan, *, source: Path | str | None = None) -> None:
    if not plan.has_deltas():
        raise EmptyDeltaError(path=source)
    check_duplicates_and_conflicts(plan)


def _apply_plan(base_text: str | None, plan: DeltaPlan, *, target_path: Path, log: Any) -> MergeResult:
    if base_text is None:
        return _merge_new_spec(plan, target_path=target_path, log=log)
    return _merge_existing_spec(base_text, plan, target_path=target_path, log=log)


def _merge_new_spec(plan: DeltaPlan, *, target_path: Path, log: Any) -> MergeResult:
    illegal = [
        section
        for section, entries in (
            ("MODIFIED", plan.modified),
            ("REMOVED", plan.removed),
            ("RENAMED", plan.renamed),
        )
        if entries
    ]
    if illegal:
        raise NewSpecOperationError(path=target_path, sections=illegal)

    capability = capability_title(target_path)
    parts = [render_skeleton(capability)]
    for block in plan.added:
        parts.append(block.raw.rstrip("\n") + "\n")
        _log_applied(log, "added", block.name, target_path)
    log.info(
        "spec_merge_skeleton_created",
        target=str(target_path),
        capability=capability,
        added=len(plan.added),
    )
    return MergeResult(text="\n".join(parts), counts=OperationCounts(added=len(plan.added)))


def _merge_existing_spec(
    base_text: str,
    plan: DeltaPlan,
    *,
    target_path: Path,
    log: Any,
) -> MergeResult:
    doc = parse(base_text, path=target_path)
    split = split_section(base_text, REQUIREMENTS_SECTION, doc=doc)
    if split is None:
        raise MissingRequirementsSectionError(path=target_path)

    segments = _requirements_segments(split.body)
    index = _RequirementIndex(
        [
            RequirementBlock(
                name=segment.name,
                header_line=segment.raw.partition("\n")[0].rstrip(),
                raw=segment.raw,
            )
            for segment in segments
            if segment.name is not None
        ]
    )

    renamed = 0
    for op in plan.renamed:
        source = normalize_requirement_name(op.from_name)
        target = normalize_requirement_name(op.to_name)
        if index.rename(source, target, op.to_name):
            renamed += 1
            _log_applied(log, "renamed", op.from_name, target_path, new_name=op.to_name)
        else:
            _log_skipped(log, "renamed", op.from_name, target_path)

    removed = 0
    for name in plan.removed:
        if index.remove(normalize_requirement_name(name)):
            removed += 1
            _log_applied(log, "removed", name, target_path)
        else:
            _log_skipped(log, "removed", name, target_path)

    modified = 0
    for block in plan.modified:
        if index.replace(normalize_requirement_name(block.name), block):
            modified += 1
            _log_applied(log, "modified", block.name, target_path)
        else:
            _log_skipped(log, "modified", block.name, target_path)

    emitted: list[str] = []
    position = 0
    for segment in segments:
        if segment.name is None:
            emitted.append(segment.raw)
            continue
        current = index.slot(position)
        position += 1
        if current is not None:
            emitted.append(current.raw)

    section = "\n".join(raw.rstrip("\n") + "\n" for raw in emitted)
    for block in plan.added:
        section += "\n" + block.raw.rstrip("\n") + "\n"
        _log_applied(log, "added", block.name, target_path)

    merged = split.preamble + "\n" + section
    if split.epilogue:
        merged += "\n" + split.epilogue
    merged = _BLANK_RUN_RE.sub("\n\n", merged)

    counts = OperationCounts(
        added=len(plan.added),
        modified=modified,
        removed=removed,
        renamed=renamed,
    )
    log.info("spec_merge_completed", target=str(target_path), counts=counts.to_dict())
    return MergeResult(text=merged, counts=counts)


def _requirements_segments(body: str) -> list[_Segment]:
    """Cut the requirements section body at every header of level 3 or higher.

    Requirement segments appear in ``get_requirement_names`` order. Text before
    the first header is kept as passthrough when it holds anything besides
    whitespace.
    """

    doc = parse(body)
    boundaries = [header for header in headers(doc) if header.level <= 3]
    names = iter(get_requirement_names(doc))
    segments: list[_Segment] = []
    lead_in_end = boundaries[0].pos.offset if boundaries else len(body)
    if body[:lead_in_end].strip():
        segments.append(_Segment(raw=body[:lead_in_end]))
    for position, header in enumerate(boundaries):
        end = boundaries[position + 1].pos.offset if position + 1 < len(boundaries) else len(body)
        raw = body[header.pos.offset : end]
        if header.level == 3 and header.text.startswith(REQUIREMENT_PREFIX):
            segments.append(_Segment(raw=raw, name=next(names)))
        else:
            segments.append(_Segment(raw=raw))
    return segments


def _log_applied(log: Any, operation: str, requirement: str, target: Path, **fields: object) -> None:
    log.info(
        "spec_merge_operation_applied",
        operation=operation,
        requirement=requirement,
        target=str(target),
        **fields,
    )


def _log_skipped(log: Any, operation: str, requirement: str, target: Path) -> None:
    log.info(
        "spec_merge_operation_skipped",
        operation=operation,
        requirement=requirement,
        target=str(target),
        reason="target_not_found",
    )


__all__ = [
    "DEFAULT_CAPABILITY",
    "SKELETON_TEMPLATE",
    "MergeResult",
    "capability_title",
    "merge_delta_plan",
    "merge_spec",
    "render_skeleton",
]
