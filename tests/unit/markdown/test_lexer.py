"""
spec-delta — unit tests for the markdown lexer

File: tests/unit/markdown/test_lexer.py
Last updated: 2026-10-19

Purpose
- Pin the token stream for every line class, with emphasis on fenced code.

What this test file should cover
- Exact token sequences for fences, including unclosed fences.
- Column-1 sensitivity for headers and list markers.
- Positions, EOF repetition, and the NUL-byte error token.
- Property: arbitrary text never crashes the lexer and fenced lines never
  surface as structural tokens.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from spec_delta.markdown.lexer import Lexer, TokenKind, is_ordered_list_marker, tokenize


def _kinds(text: str) -> list[TokenKind]:
    return [token.kind for token in tokenize(text)]


@pytest.mark.unit
def test_empty_input_yields_eof_immediately() -> None:
    assert _kinds("") == [TokenKind.EOF]


@pytest.mark.unit
def test_fenced_structural_lines_are_code_content() -> None:
    tokens = tokenize("```\n### Not a header\n- Not a list\n```")

    assert [token.kind for token in tokens] == [
        TokenKind.CODE_FENCE,
        TokenKind.CODE_CONTENT,
        TokenKind.CODE_CONTENT,
        TokenKind.CODE_FENCE,
        TokenKind.EOF,
    ]
    assert tokens[1].value == "### Not a header"
    assert tokens[2].value == "- Not a list"


@pytest.mark.unit
def test_unclosed_fence_runs_to_eof_without_error() -> None:
    assert _kinds("```md\n# inside\n1. inside\n") == [
        TokenKind.CODE_FENCE,
        TokenKind.CODE_CONTENT,
        TokenKind.CODE_CONTENT,
        TokenKind.EOF,
    ]


@pytest.mark.unit
def test_blank_line_inside_fence_is_code_content() -> None:
    assert _kinds("```\na\n\nb\n```\n") == [
        TokenKind.CODE_FENCE,
        TokenKind.CODE_CONTENT,
        TokenKind.CODE_CONTENT,
        TokenKind.CODE_CONTENT,
        TokenKind.CODE_FENCE,
        TokenKind.EOF,
    ]


@pytest.mark.unit
def test_line_classes_at_column_one() -> None:
    text = "## Title\nplain text\n- bullet\n* star\n12. numbered\n\n"
    assert _kinds(text) == [
        TokenKind.HEADER,
        TokenKind.TEXT,
        TokenKind.LIST_ITEM,
        TokenKind.LIST_ITEM,
        TokenKind.LIST_ITEM,
        TokenKind.BLANK_LINE,
        TokenKind.EOF,
    ]


@pytest.mark.unit
@pytest.mark.parametrize(
    "line",
    [
        "  # indented hash",
        "text with # hash",
        "-no space after dash",
        "1.no space after dot",
        "1) paren marker",
    ],
)
def test_markers_not_at_column_one_or_malformed_are_text(line: str) -> None:
    assert _kinds(line + "\n") == [TokenKind.TEXT, TokenKind.EOF]


@pytest.mark.unit
def test_header_value_is_raw_source_line() -> None:
    tokens = tokenize("### Requirement: Login\n")
    assert tokens[0].kind is TokenKind.HEADER
    assert tokens[0].value == "### Requirement: Login"


@pytest.mark.unit
def test_token_positions_track_lines_columns_and_offsets() -> None:
    text = "# A\n\nbody\n"
    tokens = tokenize(text)

    assert [(token.pos.line, token.pos.column) for token in tokens] == [
        (1, 1),
        (2, 1),
        (3, 1),
        (4, 1),
    ]
    assert tokens[2].pos.offset == text.index("body")
    assert tokens[-1].pos.offset == len(text)


@pytest.mark.unit
def test_next_token_repeats_eof() -> None:
    lexer = Lexer("x")
    assert lexer.next_token().kind is TokenKind.TEXT
    assert lexer.next_token().kind is TokenKind.EOF
    assert lexer.next_token().kind is TokenKind.EOF


@pytest.mark.unit
def test_fence_flag_toggles_per_fence() -> None:
    lexer = Lexer("```\ncode\n```\n")
    assert lexer.next_token().kind is TokenKind.CODE_FENCE
    assert lexer.in_code_block is True
    lexer.next_token()
    assert lexer.next_token().kind is TokenKind.CODE_FENCE
    assert lexer.in_code_block is False


@pytest.mark.unit
def test_nul_byte_outside_fence_is_error_token() -> None:
    tokens = tokenize("# ok\nbad\x00line\nmore\n")

    assert [token.kind for token in tokens] == [TokenKind.HEADER, TokenKind.ERROR]
    assert tokens[-1].pos.line == 2
    assert "NUL" in tokens[-1].value


@pytest.mark.unit
@pytest.mark.parametrize(
    ("line", "expected"),
    [("1. a", True), ("10. a", True), ("1.a", False), ("a. b", False), (". a", False), ("", False)],
)
def test_is_ordered_list_marker(line: str, expected: bool) -> None:
    assert is_ordered_list_marker(line) is expected


_markdown_line = st.one_of(
    st.sampled_from(
        [
            "# Title",
            "### Requirement: X",
            "- item",
            "3. item",
            "",
            "   ",
            "```",
            "```python",
            "text",
        ]
    ),
    st.text(alphabet=st.characters(exclude_characters="\x00\n"), max_size=30),
)


@pytest.mark.unit
@settings(max_examples=200, deadline=None)
@given(lines=st.lists(_markdown_line, max_size=30))
def test_lexer_never_crashes_and_respects_fences(lines: list[str]) -> None:
    text = "\n".join(lines)
    tokens = tokenize(text)

    assert tokens[-1].kind is TokenKind.EOF
    assert all(token.kind is not TokenKind.ERROR for token in tokens)

    inside = False
    for token in tokens:
        if token.kind is TokenKind.CODE_FENCE:
            inside = not inside
            continue
        if inside and token.kind is not TokenKind.EOF:
            assert token.kind is TokenKind.CODE_CONTENT


@pytest.mark.unit
@settings(max_examples=100, deadline=None)
@given(text=st.text(max_size=200))
def test_lexer_terminates_on_arbitrary_text(text: str) -> None:
    tokens = tokenize(text)
    assert tokens[-1].kind in (TokenKind.EOF, TokenKind.ERROR)
