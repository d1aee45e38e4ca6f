"""
spec-delta — delta and requirement extraction

File: src/spec_delta/delta/extractor.py
Last updated: 2026-10-19

Purpose
- Turn a delta document into a ``DeltaPlan`` and a base document into an
  ordered sequence of ``RequirementBlock`` values.

Functional requirements
- All structure comes from the fence-aware parser: a ``### Requirement:``
  line inside a code fence is never a requirement.
- ``raw`` slices are cut from the source text at header offsets, never
  re-rendered from the AST.
- Requirement identity is ``normalize_requirement_name`` and nothing else.
- Filesystem failures surface as ``SpecFileError`` only.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

from spec_delta.delta.models import DeltaPlan, RenameOp, RequirementBlock
from spec_delta.errors import SpecFileError
from spec_delta.markdown.ast import Document, List, Paragraph
from spec_delta.markdown.parser import parse
from spec_delta.markdown.query import (
    REQUIREMENT_PREFIX,
    SCENARIO_PREFIX,
    h2_headers,
    headers,
    split_section,
)

REQUIREMENTS_SECTION: Final[str] = "Requirements"
ADDED_SECTION: Final[str] = "ADDED Requirements"
MODIFIED_SECTION: Final[str] = "MODIFIED Requirements"
REMOVED_SECTION: Final[str] = "REMOVED Requirements"
RENAMED_SECTION: Final[str] = "RENAMED Requirements"
DELTA_SECTIONS: Final[tuple[str, ...]] = (
    ADDED_SECTION,
    MODIFIED_SECTION,
    REMOVED_SECTION,
    RENAMED_SECTION,
)

_RENAME_FROM_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?:[-*]\s*)?FROM:\s*`###\s+Requirement:\s*(?P<name>.+?)`\s*$"
)
_RENAME_TO_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?:[-*]\s*)?TO:\s*`###\s+Requirement:\s*(?P<name>.+?)`\s*$"
)


def normalize_requirement_name(name: str) -> str:
    """Identity key for requirement names: trimmed, whitespace-collapsed, casefolded."""

    return " ".join(name.split()).casefold()


def read_spec_text(path: Path | str) -> str:
    """Read a markdown file as UTF-8, mapping any failure to ``SpecFileError``."""

    spec_path = Path(path)
    try:
        return spec_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise SpecFileError(path=spec_path, reason=f"not valid UTF-8: {exc.reason}") from exc
    except OSError as exc:
        raise SpecFileError(path=spec_path, reason=exc.strerror or str(exc)) from exc


def parse_requirements_text(
    text: str,
    *,
    doc: Document | None = None,
    path: Path | str | None = None,
) -> tuple[RequirementBlock, ...]:
    """Every level-3 ``Requirement:`` block in ``text``, in document order.

    A block spans from its header line through (not including) the next
    header of level 3 or higher, or to the end of ``text``.
    """

    parsed = doc if doc is not None else parse(text, path=path)
    boundaries = [header for header in headers(parsed) if header.level <= 3]
    blocks: list[RequirementBlock] = []
    for index, header in enumerate(boundaries):
        if header.level != 3 or not header.text.startswith(REQUIREMENT_PREFIX):
            continue
        start = header.pos.offset
        end = boundaries[index + 1].pos.offset if index + 1 < len(boundaries) else len(text)
        raw = text[start:end]
        blocks.append(
            RequirementBlock(
                name=header.text[len(REQUIREMENT_PREFIX) :].strip(),
                header_line=raw.partition("\n")[0].rstrip(),
                raw=raw,
            )
        )
    return tuple(blocks)


def parse_requirements(path: Path | str) -> tuple[RequirementBlock, ...]:
    return parse_requirements_text(read_spec_text(path), path=path)


def parse_requirements_section(
    text: str,
    *,
    path: Path | str | None = None,
) -> tuple[RequirementBlock, ...] | None:
    """Requirement blocks inside the ``## Requirements`` section; ``None`` when it is absent."""

    split = split_section(text, REQUIREMENTS_SECTION, doc=parse(text, path=path))
    if split is None:
        return None
    return parse_requirements_text(split.body)


def parse_scenarios(raw: str) -> tuple[str, ...]:
    """Names of the level-4 ``Scenario:`` headers inside one requirement block."""

    return tuple(
        header.text[len(SCENARIO_PREFIX) :].strip()
        for header in headers(parse(raw), level=4)
        if header.text.startswith(SCENARIO_PREFIX)
    )


def section_key(header_text: str) -> str:
    return " ".join(header_text.split())


def delta_section_bodies(text: str, doc: Document) -> dict[str, list[str]]:
    """Source text of each delta section, keyed by canonical section title.

    A title repeated in one document contributes every occurrence, in order.
    """

    bodies: dict[str, list[str]] = {}
    level_two = h2_headers(doc)
    for index, header in enumerate(level_two):
        key = section_key(header.text)
        if key not in DELTA_SECTIONS:
            continue
        end = level_two[index + 1].pos.offset if index + 1 < len(level_two) else len(text)
        bodies.setdefault(key, []).append(text[header.end.offset : end])
    return bodies


def parse_renames(body: str) -> tuple[RenameOp, ...]:
    """FROM/TO pairs of a RENAMED section; a TO without a pending FROM is ignored."""

    renames: list[RenameOp] = []
    pending_from: str | None = None
    for line in _rename_candidate_lines(parse(body)):
        from_match = _RENAME_FROM_RE.match(line)
        if from_match is not None:
            pending_from = from_match.group("name").strip()
            continue
        to_match = _RENAME_TO_RE.match(line)
        if to_match is None or pending_from is None:
            continue
        renames.append(RenameOp(from_name=pending_from, to_name=to_match.group("name").strip()))
        pending_from = None
    return tuple(renames)


def _rename_candidate_lines(doc: Document) -> list[str]:
    lines: list[str] = []
    for node in doc.children:
        if isinstance(node, List):
            lines.extend(item.text for item in node.items)
        elif isinstance(node, Paragraph):
            # Indented bullets lex as text.
            lines.extend(line.strip() for line in node.lines)
    return lines


def parse_delta_text(text: str, *, path: Path | str | None = None) -> DeltaPlan:
    doc = parse(text, path=path)
    bodies = delta_section_bodies(text, doc)

    def _blocks(section: str) -> tuple[RequirementBlock, ...]:
        return tuple(
            block for body in bodies.get(section, ()) for block in parse_requirements_text(body)
        )

    return DeltaPlan(
        added=_blocks(ADDED_SECTION),
        modified=_blocks(MODIFIED_SECTION),
        removed=tuple(block.name for block in _blocks(REMOVED_SECTION)),
        renamed=tuple(
            rename for body in bodies.get(RENAMED_SECTION, ()) for rename in parse_renames(body)
        ),
    )


def parse_delta_spec(path: Path | str) -> DeltaPlan:
    """Parse the delta document at ``path``.

    Raises:
        SpecFileError: the file cannot be read.
        MarkdownParseError: the file is not markdown.
    """

    return parse_delta_text(read_spec_text(path), path=path)


__all__ = [
    "ADDED_SECTION",
    "DELTA_SECTIONS",
    "MODIFIED_SECTION",
    "REMOVED_SECTION",
    "RENAMED_SECTION",
    "REQUIREMENTS_SECTION",
    "delta_section_bodies",
    "normalize_requirement_name",
    "parse_delta_spec",
    "parse_delta_text",
    "parse_renames",
    "parse_requirements",
    "parse_requirements_section",
    "parse_requirements_text",
    "parse_scenarios",
    "read_spec_text",
    "section_key",
]
