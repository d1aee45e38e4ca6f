"""
spec-delta — markdown parser

File: src/spec_delta/markdown/parser.py
Last updated: 2026-10-19

Purpose
- Build a ``Document`` AST from the lexer's token stream.

Functional requirements
- Two-token lookahead (``current`` / ``peek``); the parser only ever moves forward.
- Never raises on malformed or empty input. The single failure mode is a lexer
  ``ERROR`` token, surfaced immediately as ``MarkdownParseError``.
- Unclosed code fences are tolerated: the block extends to end of input.
"""

from __future__ import annotations

from pathlib import Path

from spec_delta.errors import MarkdownParseError
from spec_delta.markdown.ast import (
    BlankLine,
    CodeBlock,
    Document,
    Header,
    List,
    ListItem,
    Node,
    Paragraph,
)
from spec_delta.markdown.lexer import MAX_HEADER_LEVEL, Lexer, Token, TokenKind, is_ordered_list_marker


class Parser:
    """Single-pass block parser over a ``Lexer``."""

    def __init__(self, text: str, *, path: Path | str | None = None) -> None:
        self._lexer = Lexer(text)
        self._path = path
        self._current: Token = self._lexer.next_token()
        self._peek: Token = self._lexer.next_token()

    def parse(self) -> Document:
        start = self._current.pos
        children: list[Node] = []
        while self._current.kind is not TokenKind.EOF:
            node = self._parse_node()
            if node is not None:
                children.append(node)
        return Document(children=tuple(children), pos=start, end=self._current.pos)

    def _advance(self) -> None:
        self._current = self._peek
        self._peek = self._lexer.next_token()

    def _parse_node(self) -> Node | None:
        kind = self._current.kind
        if kind is TokenKind.ERROR:
            raise MarkdownParseError(
                line=self._current.pos.line,
                message=self._current.value,
                path=self._path,
            )
        if kind is TokenKind.HEADER:
            return self._parse_header()
        if kind is TokenKind.TEXT:
            return self._parse_paragraph()
        if kind is TokenKind.CODE_FENCE:
            return self._parse_code_block()
        if kind is TokenKind.LIST_ITEM:
            return self._parse_list()
        if kind is TokenKind.BLANK_LINE:
            return self._parse_blank_lines()
        # Stray CODE_CONTENT cannot start a node.
        self._advance()
        return None

    def _parse_header(self) -> Header:
        token = self._current
        level = 0
        while level < len(token.value) and token.value[level] == "#":
            level += 1
        level = min(level, MAX_HEADER_LEVEL)
        self._advance()
        return Header(
            level=level,
            text=token.value[level:].strip(),
            pos=token.pos,
            end=self._current.pos,
        )

    def _parse_paragraph(self) -> Paragraph:
        start = self._current.pos
        lines: list[str] = []
        while self._current.kind is TokenKind.TEXT:
            lines.append(self._current.value)
            self._advance()
        return Paragraph(lines=tuple(lines), pos=start, end=self._current.pos)

    def _parse_code_block(self) -> CodeBlock:
        start = self._current.pos
        language = self._current.value.lstrip("`").strip()
        self._advance()
        lines: list[str] = []
        while self._current.kind is TokenKind.CODE_CONTENT:
            lines.append(self._current.value)
            self._advance()
        if self._current.kind is TokenKind.CODE_FENCE:
            self._advance()
        return CodeBlock(language=language, lines=tuple(lines), pos=start, end=self._current.pos)

    def _parse_list(self) -> List:
        start = self._current.pos
        ordered = self._current.value[:1].isdigit()
        items: list[ListItem] = []
        while self._current.kind is TokenKind.LIST_ITEM:
            token = self._current
            marker, text = split_list_marker(token.value)
            self._advance()
            items.append(ListItem(text=text, marker=marker, pos=token.pos, end=self._current.pos))
        return List(ordered=ordered, items=tuple(items), pos=start, end=self._current.pos)

    def _parse_blank_lines(self) -> BlankLine:
        start = self._current.pos
        count = 0
        while self._current.kind is TokenKind.BLANK_LINE:
            count += 1
            self._advance()
        return BlankLine(count=count, pos=start, end=self._current.pos)


def split_list_marker(line: str) -> tuple[str, str]:
    """Split a list item line into ``(marker, text)``; markers are kept verbatim."""

    if line.startswith(("- ", "* ")):
        return line[0], line[2:].strip()
    if is_ordered_list_marker(line):
        dot_index = line.find(". ")
        return line[: dot_index + 1], line[dot_index + 2 :].strip()
    return "", line.strip()


def parse(text: str, *, path: Path | str | None = None) -> Document:
    """Parse ``text`` into a ``Document``.

    Raises:
        MarkdownParseError: the input contains content the lexer rejects.
    """

    return Parser(text, path=path).parse()


__all__ = ["Parser", "parse", "split_list_marker"]
