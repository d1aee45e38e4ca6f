"""
spec-delta — markdown package

File: src/spec_delta/markdown/__init__.py
Last updated: 2026-10-19

Purpose
- Fence-aware markdown lexer, block parser, closed AST, and document queries.

Functional requirements
- Text inside code fences is opaque: never a header, list item, or blank line.
- Section splitting cuts at parsed node offsets, so content outside the target
  section is returned byte-for-byte.
"""

from spec_delta.markdown.ast import (
    BlankLine,
    CodeBlock,
    Document,
    Header,
    List,
    ListItem,
    Node,
    Paragraph,
    Position,
)
from spec_delta.markdown.lexer import Lexer, Token, TokenKind, tokenize
from spec_delta.markdown.parser import Parser, parse
from spec_delta.markdown.query import (
    Section,
    SectionSplit,
    get_requirement_names,
    get_section,
    h2_headers,
    headers,
    split_section,
)

__all__ = [
    "BlankLine",
    "CodeBlock",
    "Document",
    "Header",
    "Lexer",
    "List",
    "ListItem",
    "Node",
    "Paragraph",
    "Parser",
    "Position",
    "Section",
    "SectionSplit",
    "Token",
    "TokenKind",
    "get_requirement_names",
    "get_section",
    "h2_headers",
    "headers",
    "parse",
    "split_section",
    "tokenize",
]
