"""Command-line interface router for spec-delta."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from spec_delta.config import (
    OUTPUT_FORMATS,
    ConfigLoadError,
    ConfigValidationError,
    load_config,
)
from spec_delta.delta.extractor import read_spec_text
from spec_delta.errors import (
    ArchiveError,
    DeltaValidationError,
    EmptyDeltaError,
    MarkdownParseError,
    MissingRequirementsSectionError,
    NewSpecOperationError,
    SpecDeltaError,
    SpecFileError,
)
from spec_delta.markdown.lexer import tokenize
from spec_delta.merge.archive import archive_change
from spec_delta.merge.merger import merge_spec
from spec_delta.observability.logging import (
    LoggingConfig,
    StructuredLoggingHandle,
    configure_structlog,
    setup_structured_logging,
    shutdown_logging,
)
from spec_delta.ui.render import CLIRenderer, create_renderer
from spec_delta.utils.fs import atomic_write, ensure_directory
from spec_delta.validation.spec_rules import (
    ValidationReport,
    validate_delta_file,
    validate_spec_file,
)

if TYPE_CHECKING:
    from spec_delta.delta.models import OperationCounts

# Failures that mean "the input was understood and rejected".
_REJECTED_ERRORS: tuple[type[SpecDeltaError], ...] = (
    DeltaValidationError,
    NewSpecOperationError,
)

# Failures that mean "the input could not be used as given".
_INPUT_ERRORS: tuple[type[SpecDeltaError], ...] = (
    EmptyDeltaError,
    MarkdownParseError,
    MissingRequirementsSectionError,
    SpecFileError,
)


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="spec-delta",
        description=(
            "spec-delta: merge delta specs into canonical markdown specs.\n\n"
            "Common workflows:\n"
            "  spec-delta merge specs/auth/spec.md changes/x/specs/auth/spec.md\n"
            "  spec-delta validate specs/auth/spec.md\n"
            "  spec-delta archive changes/add-2fa\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to spec-delta TOML config (default: ./spec-delta.toml if present).",
    )
    common.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Report format (default: from config, else text).",
    )
    common.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default=None,
        help="Log level for the JSON-lines log stream on stderr.",
    )
    common.add_argument(
        "--log-dir",
        default=None,
        help="Directory for JSON-lines log files (default: no file sink).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # merge ---------------------------------------------------------------
    merge_parser = subparsers.add_parser(
        "merge",
        parents=[common],
        help="Merge one delta spec into a base spec",
        description=(
            "Apply the ADDED/MODIFIED/REMOVED/RENAMED operations of DELTA to BASE.\n\n"
            "Examples:\n"
            "  spec-delta merge specs/auth/spec.md delta.md\n"
            "  spec-delta merge specs/new-cap/spec.md delta.md --new --output specs/new-cap/spec.md\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    merge_parser.add_argument("base", help="Base spec path (its directory names the capability)")
    merge_parser.add_argument("delta", help="Delta spec path")
    merge_parser.add_argument(
        "--new",
        action="store_true",
        default=False,
        help="BASE does not exist yet; only ADDED requirements are allowed",
    )
    merge_parser.add_argument(
        "--output",
        default=None,
        help="Write the merged spec here instead of printing it",
    )
    merge_parser.add_argument(
        "--no-validate",
        dest="validate",
        action="store_false",
        default=None,
        help="Skip pre-merge and post-merge validation",
    )
    merge_parser.set_defaults(handler=_cmd_merge)

    # validate ------------------------------------------------------------
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[common],
        help="Check a spec or delta spec against the authoring rules",
    )
    validate_parser.add_argument("path", help="Spec or delta spec path")
    validate_parser.add_argument(
        "--delta", action="store_true", default=False, help="Treat PATH as a delta spec"
    )
    validate_parser.add_argument(
        "--no-strict",
        dest="strict",
        action="store_false",
        default=None,
        help="Keep warnings as warnings instead of failing on them",
    )
    validate_parser.set_defaults(handler=_cmd_validate)

    # archive -------------------------------------------------------------
    archive_parser = subparsers.add_parser(
        "archive",
        parents=[common],
        help="Merge every capability delta of a change into the specs tree",
    )
    archive_parser.add_argument(
        "change_dir", help="Change directory (or a change name under paths.changes_dir)"
    )
    archive_parser.add_argument(
        "--specs-dir", default=None, help="Canonical specs root (default: paths.specs_dir)"
    )
    archive_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Merge and validate in memory without writing",
    )
    archive_parser.add_argument(
        "--no-validate",
        dest="validate",
        action="store_false",
        default=None,
        help="Skip pre-merge and post-merge validation",
    )
    archive_parser.set_defaults(handler=_cmd_archive)

    # tokens --------------------------------------------------------------
    tokens_parser = subparsers.add_parser(
        "tokens",
        parents=[common],
        help="Dump the lexer token stream of a markdown file (debugging aid)",
    )
    tokens_parser.add_argument("path", help="Markdown file path")
    tokens_parser.set_defaults(handler=_cmd_tokens)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        config = _load_effective_config(namespace)
        handle = _start_logging(namespace, config)
        try:
            result = handler(namespace, config)
        finally:
            shutdown_logging(handle)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_merge(args: argparse.Namespace, config: dict[str, object]) -> int:
    renderer = _get_renderer(args, config)
    base_path = Path(args.base).expanduser()
    delta_path = Path(args.delta).expanduser()
    spec_exists = not args.new
    if spec_exists and not base_path.is_file():
        raise CLIError(f"base spec not found: {base_path} (use --new to create it)", exit_code=2)
    validate = _config_flag(config, ("merge", "validate"))

    log = structlog.get_logger(__name__)
    try:
        result = merge_spec(base_path, delta_path, spec_exists, validate=validate, logger=log)
    except SpecDeltaError as exc:
        raise CLIError(str(exc), exit_code=_exit_code_for(exc)) from exc

    output_path = Path(args.output).expanduser() if args.output else None
    if output_path is not None:
        try:
            ensure_directory(output_path.parent)
            atomic_write(output_path, result.text)
        except OSError as exc:
            raise CLIError(f"{output_path}: {exc.strerror or exc}", exit_code=2) from exc

    if renderer.structured:
        payload: dict[str, object] = {
            "command": "merge",
            "base": str(base_path),
            "delta": str(delta_path),
            "counts": result.counts.to_dict(),
        }
        if output_path is not None:
            payload["output"] = str(output_path)
        else:
            payload["text"] = result.text
        renderer.payload(payload)
        return 0

    if output_path is None:
        sys.stdout.write(result.text)
        _render_counts(create_renderer(stream=sys.stderr), result.counts)
    else:
        renderer.kv("written", output_path)
        _render_counts(renderer, result.counts)
    return 0


def _cmd_validate(args: argparse.Namespace, config: dict[str, object]) -> int:
    renderer = _get_renderer(args, config)
    strict = args.strict if args.strict is not None else _config_flag(config, ("merge", "strict"))
    try:
        if args.delta:
            report = validate_delta_file(args.path, strict=strict)
        else:
            report = validate_spec_file(args.path, strict=strict)
    except SpecFileError as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    if renderer.structured:
        renderer.payload({"command": "validate", "strict": strict, **report.to_dict()})
    else:
        _render_report(renderer, report)
    return 0 if report.valid else 1


def _cmd_archive(args: argparse.Namespace, config: dict[str, object]) -> int:
    renderer = _get_renderer(args, config)
    change_dir = _resolve_change_dir(args.change_dir, config)
    specs_dir = (
        Path(args.specs_dir).expanduser()
        if args.specs_dir
        else Path(_config_str(config, ("paths", "specs_dir")))
    )
    if not change_dir.is_dir():
        raise CLIError(f"change directory not found: {change_dir}", exit_code=2)

    try:
        result = archive_change(
            change_dir,
            specs_dir,
            dry_run=_config_flag(config, ("merge", "dry_run")),
            validate=_config_flag(config, ("merge", "validate")),
        )
    except ArchiveError as exc:
        raise CLIError(str(exc), exit_code=_exit_code_for(exc.cause)) from exc

    if renderer.structured:
        renderer.payload({"command": "archive", "change": str(change_dir), **result.to_dict()})
        return 0

    renderer.heading(f"Archived {change_dir.name}" + (" (dry run)" if result.dry_run else ""))
    if not result.updates:
        renderer.text("no capability deltas found")
        return 0
    for update in result.updates:
        counts = result.per_capability[update.capability]
        action = "update" if update.exists else "create"
        renderer.kv(f"  {update.capability}", f"{action} {update.target} ({_format_counts(counts)})")
    _render_counts(renderer, result.counts)
    return 0


def _cmd_tokens(args: argparse.Namespace, config: dict[str, object]) -> int:
    renderer = _get_renderer(args, config)
    try:
        tokens = tokenize(read_spec_text(args.path))
    except SpecFileError as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    if renderer.structured:
        renderer.payload(
            {
                "command": "tokens",
                "path": str(args.path),
                "tokens": [
                    {
                        "kind": token.kind.value,
                        "value": token.value,
                        "line": token.pos.line,
                        "column": token.pos.column,
                        "offset": token.pos.offset,
                    }
                    for token in tokens
                ],
            }
        )
        return 0

    for token in tokens:
        renderer.text(f"{token.pos.line}:{token.pos.column}\t{token.kind.value}\t{token.value!r}")
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_effective_config(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {
        "output.format": getattr(args, "output_format", None),
        "observability.log_level": getattr(args, "log_level", None),
        "observability.log_dir": getattr(args, "log_dir", None),
        "merge.validate": getattr(args, "validate", None),
        "merge.strict": getattr(args, "strict", None),
        "merge.dry_run": getattr(args, "dry_run", None),
    }
    try:
        loaded = load_config(getattr(args, "config_path", None), cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc
    return {key: value for key, value in loaded.items()}


def _start_logging(args: argparse.Namespace, config: dict[str, object]) -> StructuredLoggingHandle:
    observability = config.get("observability")
    settings = observability if isinstance(observability, dict) else {}
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    try:
        handle = setup_structured_logging(
            LoggingConfig(
                run_id=f"{args.command}-{stamp}-{os.getpid()}",
                base_log_dir=settings.get("log_dir"),
                level=settings.get("log_level", "WARNING"),
                log_to_stderr=bool(settings.get("log_to_stderr", True)),
            )
        )
    except (OSError, ValueError) as exc:
        raise CLIError(f"unable to set up logging: {exc}", exit_code=2) from exc
    configure_structlog()
    return handle


def _get_renderer(args: argparse.Namespace, config: dict[str, object]) -> CLIRenderer:
    output = config.get("output")
    fmt = output.get("format", "text") if isinstance(output, dict) else "text"
    return create_renderer(output_format=str(fmt))


def _resolve_change_dir(raw: str, config: dict[str, object]) -> Path:
    candidate = Path(raw).expanduser()
    if candidate.is_dir() or candidate.is_absolute():
        return candidate
    under_changes = Path(_config_str(config, ("paths", "changes_dir"))) / raw
    return under_changes if under_changes.is_dir() else candidate


def _config_flag(config: dict[str, object], path: tuple[str, str]) -> bool:
    section = config.get(path[0])
    return bool(section.get(path[1])) if isinstance(section, dict) else False


def _config_str(config: dict[str, object], path: tuple[str, str]) -> str:
    section = config.get(path[0])
    value = section.get(path[1]) if isinstance(section, dict) else None
    if not isinstance(value, str):
        raise CLIError(f"config field {'.'.join(path)} is not set", exit_code=2)
    return value


def _exit_code_for(exc: SpecDeltaError) -> int:
    if isinstance(exc, _REJECTED_ERRORS):
        return 1
    if isinstance(exc, _INPUT_ERRORS):
        return 2
    return 4


def _format_counts(counts: OperationCounts) -> str:
    return ", ".join(f"{key} {value}" for key, value in counts.to_dict().items())


def _render_counts(renderer: CLIRenderer, counts: OperationCounts) -> None:
    renderer.kv("operations", _format_counts(counts))


def _render_report(renderer: CLIRenderer, report: ValidationReport) -> None:
    if report.valid and not report.issues:
        renderer.text(f"{report.path}: valid")
        return
    status = "valid" if report.valid else "invalid"
    renderer.heading(
        f"{report.path}: {status} ({len(report.errors)} errors, {len(report.warnings)} warnings)"
    )
    renderer.items([str(issue) for issue in report.issues])


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
