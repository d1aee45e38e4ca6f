"""Output rendering for the spec-delta CLI.

File: src/spec_delta/ui/render.py
Last updated: 2026-10-19

Purpose
- Thin rendering layer: plain-text reports for humans, JSON or YAML payloads
  for scripts.

Functional requirements
- Structured payloads render deterministically (sorted JSON keys, YAML in
  insertion order).
- The renderer writes to an injectable stream so merged spec text can own
  stdout while reports go to stderr.
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Final, TextIO

import yaml

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

OUTPUT_FORMATS: Final[tuple[str, ...]] = ("text", "json", "yaml")


def render_json(payload: Mapping[str, object]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False) + "\n"


def render_yaml(payload: Mapping[str, object]) -> str:
    rendered = yaml.safe_dump(
        dict(payload),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=False,
        width=120,
    )
    if not rendered.endswith("\n"):
        rendered += "\n"
    return rendered


class CLIRenderer:
    """Plain-text CLI output with optional structured payload emission."""

    def __init__(self, *, output_format: str = "text", stream: TextIO | None = None) -> None:
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"unsupported output format {output_format!r}")
        self.output_format = output_format
        self._stream = stream

    @property
    def structured(self) -> bool:
        return self.output_format != "text"

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def payload(self, data: Mapping[str, object]) -> None:
        """Emit ``data`` as JSON or YAML; text mode callers render fields themselves."""

        if self.output_format == "yaml":
            self.stream.write(render_yaml(data))
        else:
            self.stream.write(render_json(data))

    def heading(self, text: str) -> None:
        print(text, file=self.stream)

    def kv(self, key: str, value: object) -> None:
        print(f"{key}: {value}", file=self.stream)

    def text(self, line: str) -> None:
        print(line, file=self.stream)

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        print(f"\n{title}", file=self.stream)

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            print(f"  {prefix}{entry}", file=self.stream)


def create_renderer(*, output_format: str = "text", stream: TextIO | None = None) -> CLIRenderer:
    return CLIRenderer(output_format=output_format, stream=stream)


__all__ = ["OUTPUT_FORMATS", "CLIRenderer", "create_renderer", "render_json", "render_yaml"]
