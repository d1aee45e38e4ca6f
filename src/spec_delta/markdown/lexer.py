"""
spec-delta — markdown lexer

File: src/spec_delta/markdown/lexer.py
Last updated: 2026-10-19

Purpose
- Turn raw markdown text into a flat token stream with source positions.

Design
- Explicit state machine: each state function consumes input and returns the
  next state (``None`` ends lexing). Tokens are produced lazily on demand.
- ``in_code_block`` is the only state carried across lines. While it is set,
  every line is ``CODE_CONTENT`` unless it opens with a closing fence, so text
  inside fences never surfaces as headers, list items, or blank lines.
- Markdown-significant characters only count at column 1.
- Newlines are consumed, never emitted (``BLANK_LINE`` values include theirs).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Final, Protocol

from spec_delta.markdown.ast import Position

MAX_HEADER_LEVEL: Final[int] = 6
FENCE_MARKER: Final[str] = "```"


class TokenKind(Enum):
    EOF = "EOF"
    HEADER = "Header"
    TEXT = "Text"
    CODE_FENCE = "CodeFence"
    CODE_CONTENT = "CodeContent"
    LIST_ITEM = "ListItem"
    BLANK_LINE = "BlankLine"
    ERROR = "Error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Token:
    """Lexical token; ``value`` is the raw source slice for the token."""

    kind: TokenKind
    value: str
    pos: Position


class _StateFn(Protocol):
    def __call__(self, lexer: Lexer, /) -> _StateFn | None: ...


class Lexer:
    """Line-oriented markdown lexer.

    ``next_token`` runs the state machine until at least one token is pending
    and returns EOF indefinitely once input is exhausted.
    """

    def __init__(self, text: str) -> None:
        self._input = text
        self._start = 0
        self._pos = 0
        self._line = 1
        self._col = 1
        self._start_line = 1
        self._start_col = 1
        self._pending: deque[Token] = deque()
        self._state: _StateFn | None = Lexer._lex_start
        self.in_code_block = False

    def next_token(self) -> Token:
        while not self._pending and self._state is not None:
            self._state = self._state(self)
        if self._pending:
            return self._pending.popleft()
        return Token(TokenKind.EOF, "", self._current_pos())

    def tokenize(self) -> list[Token]:
        """Drain the lexer up to and including the first EOF or ERROR token."""

        tokens: list[Token] = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.kind in (TokenKind.EOF, TokenKind.ERROR):
                return tokens

    # -- cursor primitives -------------------------------------------------

    def _peek(self) -> str:
        if self._pos >= len(self._input):
            return ""
        return self._input[self._pos]

    def _next(self) -> str:
        if self._pos >= len(self._input):
            return ""
        char = self._input[self._pos]
        self._pos += 1
        if char == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return char

    def _emit(self, kind: TokenKind, value: str | None = None) -> None:
        self._pending.append(
            Token(
                kind=kind,
                value=self._input[self._start : self._pos] if value is None else value,
                pos=Position(line=self._start_line, column=self._start_col, offset=self._start),
            )
        )
        self._ignore()

    def _ignore(self) -> None:
        self._start = self._pos
        self._start_line = self._line
        self._start_col = self._col

    def _current_pos(self) -> Position:
        return Position(line=self._line, column=self._col, offset=self._pos)

    def _at_start_of_line(self) -> bool:
        return self._pos == 0 or self._input[self._pos - 1] == "\n"

    def _peek_line(self) -> str:
        end = self._input.find("\n", self._pos)
        if end < 0:
            end = len(self._input)
        return self._input[self._pos : end]

    def _skip_to_end_of_line(self) -> None:
        while self._peek() not in ("", "\n"):
            self._next()

    def _consume_newline(self) -> None:
        if self._peek() == "\n":
            self._next()
            self._ignore()

    # -- states ------------------------------------------------------------

    def _lex_start(self) -> _StateFn | None:
        if self._pos >= len(self._input):
            return None
        if self.in_code_block:
            return Lexer._lex_code_content
        if not self._at_start_of_line():
            return Lexer._lex_text

        line = self._peek_line()
        if "\x00" in line:
            return Lexer._lex_error
        if line.startswith(FENCE_MARKER):
            return Lexer._lex_code_fence
        if line.startswith("#"):
            return Lexer._lex_header
        if line.startswith(("- ", "* ")) or is_ordered_list_marker(line):
            return Lexer._lex_list_item
        if not line.strip():
            return Lexer._lex_blank_line
        return Lexer._lex_text

    def _lex_header(self) -> _StateFn | None:
        count = 0
        while count < MAX_HEADER_LEVEL and self._peek() == "#":
            self._next()
            count += 1
        if self._peek() == " ":
            self._next()
        self._skip_to_end_of_line()
        self._emit(TokenKind.HEADER)
        self._consume_newline()
        return Lexer._lex_start

    def _lex_text(self) -> _StateFn | None:
        self._skip_to_end_of_line()
        if self._pos > self._start:
            self._emit(TokenKind.TEXT)
        self._consume_newline()
        return Lexer._lex_start

    def _lex_code_fence(self) -> _StateFn | None:
        while self._peek() == "`":
            self._next()
        self._skip_to_end_of_line()
        self._emit(TokenKind.CODE_FENCE)
        self._consume_newline()
        self.in_code_block = not self.in_code_block
        return Lexer._lex_start

    def _lex_code_content(self) -> _StateFn | None:
        if self._at_start_of_line() and self._peek_line().startswith(FENCE_MARKER):
            return Lexer._lex_code_fence
        self._skip_to_end_of_line()
        # Empty lines are kept so fenced content stays line-for-line.
        self._emit(TokenKind.CODE_CONTENT)
        self._consume_newline()
        return Lexer._lex_start

    def _lex_list_item(self) -> _StateFn | None:
        if self._peek() in ("-", "*"):
            self._next()
        else:
            while self._peek().isdigit() and self._peek().isascii():
                self._next()
            if self._peek() == ".":
                self._next()
        if self._peek() == " ":
            self._next()
        self._skip_to_end_of_line()
        self._emit(TokenKind.LIST_ITEM)
        self._consume_newline()
        return Lexer._lex_start

    def _lex_blank_line(self) -> _StateFn | None:
        self._skip_to_end_of_line()
        if self._peek() == "\n":
            self._next()
        self._emit(TokenKind.BLANK_LINE)
        return Lexer._lex_start

    def _lex_error(self) -> _StateFn | None:
        self._skip_to_end_of_line()
        self._emit(TokenKind.ERROR, "binary content (NUL byte) is not markdown")
        return None


def is_ordered_list_marker(line: str) -> bool:
    """True when ``line`` opens with a digit run followed by ``". "``."""

    if not line or not ("0" <= line[0] <= "9"):
        return False
    dot_index = line.find(". ")
    if dot_index <= 0:
        return False
    return all("0" <= char <= "9" for char in line[:dot_index])


def tokenize(text: str) -> list[Token]:
    """Tokenize ``text`` to completion."""

    return Lexer(text).tokenize()


__all__ = [
    "FENCE_MARKER",
    "MAX_HEADER_LEVEL",
    "Lexer",
    "Token",
    "TokenKind",
    "is_ordered_list_marker",
    "tokenize",
]
