"""Unit tests for the markdown parser and document queries."""

from __future__ import annotations

import pytest

from spec_delta.errors import MarkdownParseError
from spec_delta.markdown import (
    BlankLine,
    CodeBlock,
    Header,
    List,
    Paragraph,
    get_requirement_names,
    get_section,
    h2_headers,
    headers,
    parse,
    split_section,
)
from spec_delta.markdown.parser import split_list_marker

SAMPLE = """# Auth Specification

## Purpose
Handles sign-in.
Second line.

## Requirements

### Requirement: Login
The system SHALL log users in.

#### Scenario: Valid credentials
- **WHEN** credentials are valid
- **THEN** a session starts

```text
### Requirement: Fenced Decoy
```

### Requirement:   Logout
The system SHALL end sessions.

## Notes
1. First step
4. Second step
"""


@pytest.mark.unit
def test_empty_document_has_no_children() -> None:
    doc = parse("")
    assert doc.children == ()


@pytest.mark.unit
def test_block_nodes_in_order() -> None:
    doc = parse("# T\n\npara one\npara two\n- a\n- b\n```go\nx := 1\n```\n\n\n")

    kinds = [type(node) for node in doc.children]
    assert kinds == [Header, BlankLine, Paragraph, List, CodeBlock, BlankLine]

    paragraph = doc.children[2]
    assert isinstance(paragraph, Paragraph)
    assert paragraph.lines == ("para one", "para two")

    code = doc.children[4]
    assert isinstance(code, CodeBlock)
    assert code.language == "go"
    assert code.lines == ("x := 1",)

    blanks = doc.children[5]
    assert isinstance(blanks, BlankLine)
    assert blanks.count == 2


@pytest.mark.unit
def test_header_level_and_trimmed_text() -> None:
    doc = parse("####### Deep   \n")
    header = doc.children[0]
    assert isinstance(header, Header)
    assert header.level == 6
    assert header.text == "# Deep"


@pytest.mark.unit
def test_ordered_list_keeps_markers_verbatim() -> None:
    doc = parse("1. First step\n4. Second step\n7. Third step\n")
    node = doc.children[0]
    assert isinstance(node, List)
    assert node.ordered is True
    assert [item.marker for item in node.items] == ["1.", "4.", "7."]
    assert [item.text for item in node.items] == ["First step", "Second step", "Third step"]


@pytest.mark.unit
def test_unordered_list_mixed_markers() -> None:
    node = parse("- dash\n* star\n").children[0]
    assert isinstance(node, List)
    assert node.ordered is False
    assert [item.marker for item in node.items] == ["-", "*"]


@pytest.mark.unit
def test_unclosed_code_fence_is_tolerated() -> None:
    doc = parse("```\n# not a header\n")
    assert len(doc.children) == 1
    block = doc.children[0]
    assert isinstance(block, CodeBlock)
    assert block.lines == ("# not a header",)


@pytest.mark.unit
def test_lexer_error_surfaces_as_parse_error_with_line() -> None:
    with pytest.raises(MarkdownParseError) as excinfo:
        parse("# ok\n\x00\n", path="specs/x/spec.md")
    assert excinfo.value.line == 2
    assert "specs/x/spec.md:2" in str(excinfo.value)


@pytest.mark.unit
def test_node_end_is_next_node_start() -> None:
    doc = parse("# A\nbody\n")
    header, paragraph = doc.children
    assert header.end.offset == paragraph.pos.offset == 4


@pytest.mark.unit
@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("- item", ("-", "item")),
        ("* item", ("*", "item")),
        ("12. item", ("12.", "item")),
        ("plain", ("", "plain")),
    ],
)
def test_split_list_marker(line: str, expected: tuple[str, str]) -> None:
    assert split_list_marker(line) == expected


@pytest.mark.unit
def test_requirement_names_ignore_fenced_decoys_and_trim() -> None:
    assert get_requirement_names(parse(SAMPLE)) == ("Login", "Logout")


@pytest.mark.unit
def test_h2_headers_and_level_filter() -> None:
    doc = parse(SAMPLE)
    assert [header.text for header in h2_headers(doc)] == ["Purpose", "Requirements", "Notes"]
    assert [header.text for header in headers(doc, level=4)] == ["Scenario: Valid credentials"]


@pytest.mark.unit
def test_get_section_bounds_to_next_h2() -> None:
    doc = parse(SAMPLE)
    section = get_section(doc, " Requirements ")
    assert section is not None
    assert section.header.text == "Requirements"
    assert section.next_header is not None
    assert section.next_header.text == "Notes"
    assert SAMPLE[section.body_start :].startswith("\n### Requirement: Login")
    assert SAMPLE[section.body_end(len(SAMPLE)) :].startswith("## Notes")


@pytest.mark.unit
def test_get_section_missing_returns_none() -> None:
    assert get_section(parse(SAMPLE), "Interfaces") is None
    assert split_section(SAMPLE, "Interfaces") is None


@pytest.mark.unit
def test_split_section_reassembles_source() -> None:
    split = split_section(SAMPLE, "Requirements")
    assert split is not None
    assert split.preamble.endswith("## Requirements\n")
    assert split.epilogue.startswith("## Notes\n")
    assert split.preamble + split.body + split.epilogue == SAMPLE


@pytest.mark.unit
def test_split_section_last_section_has_empty_epilogue() -> None:
    text = "# T\n\n## Requirements"
    split = split_section(text, "Requirements")
    assert split is not None
    assert split.preamble == "# T\n\n## Requirements\n"
    assert split.body == ""
    assert split.epilogue == ""
