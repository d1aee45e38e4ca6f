"""
spec-delta — delta data model

File: src/spec_delta/delta/models.py
Last updated: 2026-10-19

Purpose
- Immutable value types exchanged between delta extraction, merge, and reporting.

Functional requirements
- ``RequirementBlock.raw`` is the verbatim markdown slice of one requirement,
  header line first, so merges can re-emit it without re-rendering.
- ``DeltaPlan`` keeps every operation list in declaration order.
- ``OperationCounts`` is a reporting value only; the merge never reads it back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

REQUIREMENT_HEADER_PREFIX: Final[str] = "### Requirement: "


@dataclass(frozen=True, slots=True)
class RequirementBlock:
    """One ``### Requirement:`` block: header line plus everything up to the next header."""

    name: str
    header_line: str
    raw: str

    def renamed(self, new_name: str) -> RequirementBlock:
        """Return a copy whose header (in ``header_line`` and ``raw``) names ``new_name``."""

        header_line = f"{REQUIREMENT_HEADER_PREFIX}{new_name}"
        _, newline, rest = self.raw.partition("\n")
        return RequirementBlock(name=new_name, header_line=header_line, raw=header_line + newline + rest)


@dataclass(frozen=True, slots=True)
class RenameOp:
    from_name: str
    to_name: str


@dataclass(frozen=True, slots=True)
class DeltaPlan:
    added: tuple[RequirementBlock, ...] = ()
    modified: tuple[RequirementBlock, ...] = ()
    removed: tuple[str, ...] = ()
    renamed: tuple[RenameOp, ...] = ()

    def has_deltas(self) -> bool:
        return bool(self.added or self.modified or self.removed or self.renamed)

    def count_operations(self) -> int:
        return len(self.added) + len(self.modified) + len(self.removed) + len(self.renamed)


@dataclass(frozen=True, slots=True)
class OperationCounts:
    added: int = 0
    modified: int = 0
    removed: int = 0
    renamed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.modified + self.removed + self.renamed

    def __add__(self, other: OperationCounts) -> OperationCounts:
        return OperationCounts(
            added=self.added + other.added,
            modified=self.modified + other.modified,
            removed=self.removed + other.removed,
            renamed=self.renamed + other.renamed,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "added": self.added,
            "modified": self.modified,
            "removed": self.removed,
            "renamed": self.renamed,
        }


__all__ = [
    "REQUIREMENT_HEADER_PREFIX",
    "DeltaPlan",
    "OperationCounts",
    "RenameOp",
    "RequirementBlock",
]
