"""UI package exports for the CLI router and output rendering."""

from spec_delta.ui.cli import CLIError, build_parser, main, run_cli
from spec_delta.ui.render import CLIRenderer, create_renderer

__all__ = [
    "CLIError",
    "CLIRenderer",
    "build_parser",
    "create_renderer",
    "main",
    "run_cli",
]
