"""
spec-delta — spec authoring rules

File: src/spec_delta/validation/spec_rules.py
Last updated: 2026-10-19

Purpose
- Report authoring problems in canonical specs and delta documents before they
  reach the merger.

Functional requirements
- A canonical spec must have a ``## Requirements`` section (ERROR).
- Each requirement should use normative language, ``SHALL`` or ``MUST``
  (WARNING).
- Each requirement should have at least one ``#### Scenario:`` header
  (WARNING), and scenario markers at the wrong header level or written as
  bold text are an ERROR when no well-formed scenario exists.
- Strict mode promotes every WARNING to an ERROR.
- Delta documents get the same requirement rules for ADDED and MODIFIED
  blocks, plus an ERROR when no operation is declared or when sections
  conflict.

Non-functional requirements
- Every issue carries a 1-based source line.
- Fenced code is never inspected for markers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final

from spec_delta.delta.extractor import (
    ADDED_SECTION,
    MODIFIED_SECTION,
    REQUIREMENTS_SECTION,
    parse_delta_text,
    parse_scenarios,
    read_spec_text,
    section_key,
)
from spec_delta.errors import DeltaValidationError, MarkdownParseError
from spec_delta.markdown.ast import Header, List, Paragraph
from spec_delta.markdown.parser import parse
from spec_delta.markdown.query import REQUIREMENT_PREFIX, SCENARIO_PREFIX, get_section, headers
from spec_delta.merge.validator import check_duplicates_and_conflicts

if TYPE_CHECKING:
    from spec_delta.markdown.ast import Document

MISSING_REQUIREMENTS: Final[str] = "Missing required '## Requirements' section"
MISSING_NORMATIVE: Final[str] = (
    "Requirement should contain SHALL or MUST to indicate normative requirement"
)
MISSING_SCENARIO: Final[str] = "Requirement should have at least one scenario"
MALFORMED_SCENARIO: Final[str] = (
    "Scenarios must use '#### Scenario:' format (4 hashtags followed by 'Scenario:')"
)
EMPTY_DELTA: Final[str] = "Delta spec must declare at least one ADDED, MODIFIED, REMOVED, or RENAMED requirement"

_NORMATIVE_RE: Final[re.Pattern[str]] = re.compile(r"\b(?:shall|must)\b", re.IGNORECASE)
_BOLD_SCENARIO: Final[str] = "**" + SCENARIO_PREFIX


class ValidationLevel(StrEnum):
    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    level: ValidationLevel
    path: str
    line: int
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "level": self.level.value,
            "path": self.path,
            "line": self.line,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"[{self.level.value}] {self.path} (line {self.line}): {self.message}"


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Outcome of validating one document; ``valid`` means no ERROR issues."""

    path: str
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return tuple(issue for issue in self.issues if issue.level is ValidationLevel.ERROR)

    @property
    def warnings(self) -> tuple[ValidationIssue, ...]:
        return tuple(issue for issue in self.issues if issue.level is ValidationLevel.WARNING)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "valid": self.valid,
            "summary": {"errors": len(self.errors), "warnings": len(self.warnings)},
            "issues": [issue.to_dict() for issue in self.issues],
        }


class _IssueCollector:
    __slots__ = ("_items", "_path")

    def __init__(self, path: str) -> None:
        self._path = path
        self._items: list[ValidationIssue] = []

    def add(self, level: ValidationLevel, line: int, message: str, *, requirement: str | None = None) -> None:
        where = self._path if requirement is None else f"{self._path}: Requirement {requirement!r}"
        self._items.append(ValidationIssue(level=level, path=where, line=line, message=message))

    def report(self, *, strict: bool) -> ValidationReport:
        items = self._items
        if strict:
            items = [
                ValidationIssue(
                    level=ValidationLevel.ERROR,
                    path=issue.path,
                    line=issue.line,
                    message=issue.message,
                )
                for issue in items
            ]
        return ValidationReport(path=self._path, issues=tuple(items))


@dataclass(frozen=True, slots=True)
class _LocatedRequirement:
    name: str
    line: int
    raw: str
    start: int
    end: int


def validate_spec_text(text: str, path: Path | str, *, strict: bool = True) -> ValidationReport:
    """Apply the canonical spec rules to ``text``.

    A markdown parse failure is reported as a single ERROR at the offending
    line instead of raising.
    """

    issues = _IssueCollector(str(path))
    try:
        doc = parse(text, path=path)
    except MarkdownParseError as exc:
        issues.add(ValidationLevel.ERROR, exc.line, exc.message)
        return issues.report(strict=strict)

    section = get_section(doc, REQUIREMENTS_SECTION)
    if section is None:
        issues.add(ValidationLevel.ERROR, 1, MISSING_REQUIREMENTS)
        return issues.report(strict=strict)

    for requirement in _locate_requirements(
        text, doc, section.body_start, section.body_end(len(text))
    ):
        _check_requirement(requirement, doc, issues)
    return issues.report(strict=strict)


def validate_spec_file(path: Path | str, *, strict: bool = True) -> ValidationReport:
    """Read and validate a canonical spec.

    Raises:
        SpecFileError: the file cannot be read.
    """

    return validate_spec_text(read_spec_text(path), path, strict=strict)


def validate_delta_text(text: str, path: Path | str, *, strict: bool = True) -> ValidationReport:
    """Apply the delta rules to ``text``; REMOVED and RENAMED entries only need a name."""

    issues = _IssueCollector(str(path))
    try:
        doc = parse(text, path=path)
    except MarkdownParseError as exc:
        issues.add(ValidationLevel.ERROR, exc.line, exc.message)
        return issues.report(strict=strict)

    plan = parse_delta_text(text, path=path)
    if not plan.has_deltas():
        issues.add(ValidationLevel.ERROR, 1, EMPTY_DELTA)
        return issues.report(strict=strict)

    try:
        check_duplicates_and_conflicts(plan)
    except DeltaValidationError as exc:
        issues.add(ValidationLevel.ERROR, 1, str(exc))

    level_two = headers(doc, level=2)
    for index, header in enumerate(level_two):
        if section_key(header.text) not in (ADDED_SECTION, MODIFIED_SECTION):
            continue
        end = level_two[index + 1].pos.offset if index + 1 < len(level_two) else len(text)
        for requirement in _locate_requirements(text, doc, header.end.offset, end):
            _check_requirement(requirement, doc, issues)
    return issues.report(strict=strict)


def validate_delta_file(path: Path | str, *, strict: bool = True) -> ValidationReport:
    return validate_delta_text(read_spec_text(path), path, strict=strict)


def _locate_requirements(text: str, doc: Document, start: int, end: int) -> list[_LocatedRequirement]:
    """Requirement blocks whose header lies in ``[start, end)``.

    A block stops at the next header of level 3 or higher. ``end`` on the
    located record is where the next requirement or level-2 header begins, so
    misplaced ``### Scenario:`` headers still count as part of the requirement.
    """

    boundaries = [header for header in headers(doc) if header.level <= 3]
    located: list[_LocatedRequirement] = []
    for index, header in enumerate(boundaries):
        offset = header.pos.offset
        if offset < start or offset >= end:
            continue
        if header.level != 3 or not header.text.startswith(REQUIREMENT_PREFIX):
            continue
        block_end = boundaries[index + 1].pos.offset if index + 1 < len(boundaries) else len(text)
        scope_end = end
        for following in boundaries[index + 1 :]:
            if following.level < 3 or following.text.startswith(REQUIREMENT_PREFIX):
                scope_end = min(following.pos.offset, end)
                break
        located.append(
            _LocatedRequirement(
                name=header.text[len(REQUIREMENT_PREFIX) :].strip(),
                line=header.pos.line,
                raw=text[offset : min(block_end, end)],
                start=offset,
                end=scope_end,
            )
        )
    return located


def _check_requirement(requirement: _LocatedRequirement, doc: Document, issues: _IssueCollector) -> None:
    if not _NORMATIVE_RE.search(requirement.raw):
        issues.add(
            ValidationLevel.WARNING,
            requirement.line,
            MISSING_NORMATIVE,
            requirement=requirement.name,
        )

    if parse_scenarios(requirement.raw):
        return
    malformed = _malformed_scenario_lines(doc, requirement.start, requirement.end)
    if malformed:
        issues.add(
            ValidationLevel.ERROR,
            malformed[0],
            MALFORMED_SCENARIO,
            requirement=requirement.name,
        )
        return
    issues.add(
        ValidationLevel.WARNING,
        requirement.line,
        MISSING_SCENARIO,
        requirement=requirement.name,
    )


def _malformed_scenario_lines(doc: Document, start: int, end: int) -> list[int]:
    """Lines in ``[start, end)`` that look like scenarios but are not level-4 headers."""

    lines: list[int] = []
    for node in doc.children:
        if node.pos.offset < start or node.pos.offset >= end:
            continue
        if isinstance(node, Header):
            if node.level != 4 and node.text.startswith(SCENARIO_PREFIX):
                lines.append(node.pos.line)
        elif isinstance(node, Paragraph):
            for index, line in enumerate(node.lines):
                if line.strip().startswith(_BOLD_SCENARIO):
                    lines.append(node.pos.line + index)
        elif isinstance(node, List):
            lines.extend(item.pos.line for item in node.items if item.text.startswith(_BOLD_SCENARIO))
    return lines


__all__ = [
    "EMPTY_DELTA",
    "MALFORMED_SCENARIO",
    "MISSING_NORMATIVE",
    "MISSING_REQUIREMENTS",
    "MISSING_SCENARIO",
    "ValidationIssue",
    "ValidationLevel",
    "ValidationReport",
    "validate_delta_file",
    "validate_delta_text",
    "validate_spec_file",
    "validate_spec_text",
]
