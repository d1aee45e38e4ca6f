"""Generic markdown AST: a closed set of block nodes with source positions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class Position:
    """Source location: 1-based line/column, 0-based offset into the text."""

    line: int = 1
    column: int = 1
    offset: int = 0


@dataclass(frozen=True, slots=True)
class Header:
    level: int
    text: str
    pos: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


@dataclass(frozen=True, slots=True)
class Paragraph:
    lines: tuple[str, ...]
    pos: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


@dataclass(frozen=True, slots=True)
class CodeBlock:
    """Fenced block; ``lines`` are raw and never reinterpreted as markdown."""

    language: str
    lines: tuple[str, ...]
    pos: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


@dataclass(frozen=True, slots=True)
class ListItem:
    text: str
    marker: str
    children: tuple[Node, ...] = ()
    pos: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


@dataclass(frozen=True, slots=True)
class List:
    ordered: bool
    items: tuple[ListItem, ...]
    pos: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


@dataclass(frozen=True, slots=True)
class BlankLine:
    """One or more consecutive blank source lines collapsed into one node."""

    count: int
    pos: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


Node: TypeAlias = Header | Paragraph | CodeBlock | List | ListItem | BlankLine


@dataclass(frozen=True, slots=True)
class Document:
    children: tuple[Node, ...] = ()
    pos: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


__all__ = [
    "BlankLine",
    "CodeBlock",
    "Document",
    "Header",
    "List",
    "ListItem",
    "Node",
    "Paragraph",
    "Position",
]
