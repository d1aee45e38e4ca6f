"""Read-only queries over a parsed ``Document``: headers, sections, requirement order."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from spec_delta.markdown.ast import Document, Header
from spec_delta.markdown.parser import parse

REQUIREMENT_PREFIX: Final[str] = "Requirement:"
SCENARIO_PREFIX: Final[str] = "Scenario:"


@dataclass(frozen=True, slots=True)
class Section:
    """A level-2 header and the level-2 header that closes it (``None`` at end of document)."""

    header: Header
    next_header: Header | None

    @property
    def body_start(self) -> int:
        return self.header.end.offset

    def body_end(self, text_length: int) -> int:
        if self.next_header is None:
            return text_length
        return self.next_header.pos.offset


@dataclass(frozen=True, slots=True)
class SectionSplit:
    """Source text cut around one level-2 section.

    ``preamble`` runs through the section header line and always ends with a
    newline; ``body`` is everything up to the next level-2 header; ``epilogue``
    starts at that header (empty when the section is last).
    """

    preamble: str
    body: str
    epilogue: str


def headers(doc: Document, level: int | None = None) -> tuple[Header, ...]:
    return tuple(
        node
        for node in doc.children
        if isinstance(node, Header) and (level is None or node.level == level)
    )


def h2_headers(doc: Document) -> tuple[Header, ...]:
    return headers(doc, level=2)


def get_section(doc: Document, name: str) -> Section | None:
    """Locate the level-2 section titled ``name`` (trimmed, exact match)."""

    wanted = name.strip()
    level_two = h2_headers(doc)
    for index, header in enumerate(level_two):
        if header.text.strip() != wanted:
            continue
        following = level_two[index + 1] if index + 1 < len(level_two) else None
        return Section(header=header, next_header=following)
    return None


def get_requirement_names(doc: Document) -> tuple[str, ...]:
    """Names of level-3 ``Requirement:`` headers in document order."""

    names: list[str] = []
    for header in headers(doc, level=3):
        text = header.text.strip()
        if text.startswith(REQUIREMENT_PREFIX):
            names.append(text[len(REQUIREMENT_PREFIX) :].strip())
    return tuple(names)


def split_section(text: str, name: str, *, doc: Document | None = None) -> SectionSplit | None:
    """Cut ``text`` at the node offsets of section ``name``; ``None`` when absent."""

    parsed = doc if doc is not None else parse(text)
    section = get_section(parsed, name)
    if section is None:
        return None
    body_start = section.body_start
    body_end = section.body_end(len(text))
    preamble = text[:body_start]
    if not preamble.endswith("\n"):
        preamble += "\n"
    return SectionSplit(
        preamble=preamble,
        body=text[body_start:body_end],
        epilogue=text[body_end:],
    )


__all__ = [
    "REQUIREMENT_PREFIX",
    "SCENARIO_PREFIX",
    "Section",
    "SectionSplit",
    "get_requirement_names",
    "get_section",
    "h2_headers",
    "headers",
    "split_section",
]
