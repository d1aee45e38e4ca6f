"""
spec-delta — error taxonomy

File: src/spec_delta/errors.py
Last updated: 2026-10-19

Purpose
- Typed failures shared by the markdown, delta, merge, and archive layers.

Functional requirements
- Every error carries enough structured context (paths, sections, requirement
  names, lines) for callers to render a precise message without parsing text.
- Filesystem failures (``SpecFileError``) are distinct from validation failures
  (``DeltaValidationError``) so orchestrators can route them differently.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class SpecDeltaError(Exception):
    """Base class for all spec-delta failures."""


class SpecFileError(SpecDeltaError):
    """A spec or delta file could not be read or written."""

    path: Path
    reason: str

    def __init__(self, *, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class MarkdownParseError(SpecDeltaError):
    """The lexer produced an error token; parsing stops at the first one."""

    line: int
    message: str
    path: Path | None

    def __init__(self, *, line: int, message: str, path: Path | str | None = None) -> None:
        self.line = line
        self.message = message
        self.path = Path(path) if path is not None else None
        location = f"{self.path}:{line}" if self.path is not None else f"line {line}"
        super().__init__(f"failed to parse markdown at {location}: {message}")


class EmptyDeltaError(SpecDeltaError):
    """A delta document declares no ADDED/MODIFIED/REMOVED/RENAMED operations."""

    path: Path | None

    def __init__(self, *, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        suffix = f": {self.path}" if self.path is not None else ""
        super().__init__(f"delta spec has no operations{suffix}")


class MissingRequirementsSectionError(SpecDeltaError):
    """An existing base spec has no ``## Requirements`` section to merge into."""

    path: Path | None

    def __init__(self, *, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        where = str(self.path) if self.path is not None else "base spec"
        super().__init__(f"{where} has no '## Requirements' section")


class NewSpecOperationError(SpecDeltaError):
    """Non-ADDED operations were declared against a spec that does not exist yet."""

    path: Path | None
    sections: tuple[str, ...]

    def __init__(self, *, path: Path | str | None, sections: Sequence[str]) -> None:
        self.path = Path(path) if path is not None else None
        self.sections = tuple(sections)
        listed = ", ".join(self.sections)
        super().__init__(
            "target spec does not exist; only ADDED requirements are allowed for new specs "
            f"(found {listed})"
        )


class DeltaValidationError(SpecDeltaError):
    """Base class for semantic and integrity failures of a delta or merged spec."""


class DuplicateRequirementError(DeltaValidationError):
    """The same normalized requirement name appears twice within one delta section."""

    section_name: str
    requirement_name: str

    def __init__(self, *, section_name: str, requirement_name: str) -> None:
        self.section_name = section_name
        self.requirement_name = requirement_name
        super().__init__(f"duplicate requirement {requirement_name!r} in {section_name} section")


class DeltaConflictError(DeltaValidationError):
    """One normalized requirement name is claimed by two incompatible delta sections."""

    section1: str
    section2: str
    requirement_name: str

    def __init__(self, *, section1: str, section2: str, requirement_name: str) -> None:
        self.section1 = section1
        self.section2 = section2
        self.requirement_name = requirement_name
        super().__init__(
            f"requirement {requirement_name!r} appears in both {section1} and {section2} sections"
        )


class PreMergeValidationError(DeltaValidationError):
    """Delta operations reference base requirements that are missing or already taken."""

    path: Path | None
    issues: tuple[str, ...]

    def __init__(self, *, path: Path | str | None, issues: Sequence[str]) -> None:
        self.path = Path(path) if path is not None else None
        self.issues = tuple(issues)
        rendered = "\n".join(f"- {issue}" for issue in self.issues) or "- unknown failure"
        where = f" for {self.path}" if self.path is not None else ""
        super().__init__(f"pre-merge validation failed{where}:\n{rendered}")


class PostMergeValidationError(DeltaValidationError):
    """The merged document violates a structural invariant."""

    path: Path | None
    requirement_name: str
    reason: str

    def __init__(self, *, path: Path | str | None, requirement_name: str, reason: str) -> None:
        self.path = Path(path) if path is not None else None
        self.requirement_name = requirement_name
        self.reason = reason
        where = f"{self.path}: " if self.path is not None else ""
        super().__init__(f"{where}{reason}: {requirement_name!r}")


class ArchiveError(SpecDeltaError):
    """Merging one capability failed, so the whole archive was abandoned."""

    capability: str
    path: Path
    cause: SpecDeltaError

    def __init__(self, *, capability: str, path: Path | str, cause: SpecDeltaError) -> None:
        self.capability = capability
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"archive aborted at capability {capability!r} ({self.path}): {cause}")


__all__ = [
    "ArchiveError",
    "DeltaConflictError",
    "DeltaValidationError",
    "DuplicateRequirementError",
    "EmptyDeltaError",
    "MarkdownParseError",
    "MissingRequirementsSectionError",
    "NewSpecOperationError",
    "PostMergeValidationError",
    "PreMergeValidationError",
    "SpecDeltaError",
    "SpecFileError",
]
