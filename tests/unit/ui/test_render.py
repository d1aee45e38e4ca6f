"""Unit tests for CLI output rendering."""

from __future__ import annotations

import io
import json

import pytest
import yaml

from spec_delta.ui.render import CLIRenderer, create_renderer, render_json, render_yaml

PAYLOAD = {"command": "merge", "counts": {"removed": 1, "added": 2}, "text": "# Café\n"}


@pytest.mark.unit
def test_render_json_is_compact_sorted_and_newline_terminated() -> None:
    rendered = render_json(PAYLOAD)

    assert rendered.endswith("}\n")
    assert rendered.index('"command"') < rendered.index('"counts"') < rendered.index('"text"')
    assert '"added":2,"removed":1' in rendered
    assert "Café" in rendered
    assert json.loads(rendered) == PAYLOAD


@pytest.mark.unit
def test_render_yaml_keeps_insertion_order_and_round_trips() -> None:
    rendered = render_yaml(PAYLOAD)

    assert rendered.startswith("command: merge\ncounts:\n  removed: 1\n  added: 2\n")
    assert yaml.safe_load(rendered) == PAYLOAD


@pytest.mark.unit
@pytest.mark.parametrize(("output_format", "loader"), [("json", json.loads), ("yaml", yaml.safe_load)])
def test_payload_uses_configured_format(output_format: str, loader: object) -> None:
    stream = io.StringIO()
    renderer = create_renderer(output_format=output_format, stream=stream)

    renderer.payload({"valid": True})

    assert renderer.structured
    assert callable(loader)
    assert loader(stream.getvalue()) == {"valid": True}


@pytest.mark.unit
def test_text_helpers_write_to_stream() -> None:
    stream = io.StringIO()
    renderer = CLIRenderer(stream=stream)

    renderer.heading("specs/auth/spec.md: invalid (1 errors, 0 warnings)")
    renderer.items(["[ERROR] specs/auth/spec.md (line 1): missing"])
    renderer.section("Totals")
    renderer.kv("operations", "added 1")

    assert not renderer.structured
    assert stream.getvalue() == (
        "specs/auth/spec.md: invalid (1 errors, 0 warnings)\n"
        "  - [ERROR] specs/auth/spec.md (line 1): missing\n"
        "\nTotals\n"
        "operations: added 1\n"
    )


@pytest.mark.unit
def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ValueError, match="unsupported output format"):
        CLIRenderer(output_format="xml")
