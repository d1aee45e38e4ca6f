"""
spec-delta — change archiving

File: src/spec_delta/merge/archive.py
Last updated: 2026-10-19

Purpose
- Merge every capability delta of one change into the canonical specs tree.

Functional requirements
- A change directory holds deltas at ``<change>/specs/<capability>/spec.md``;
  each maps onto ``<specs_root>/<capability>/spec.md``.
- All-or-nothing: every capability is parsed, validated, and merged in memory
  before the first write. If a write fails, files already written are restored
  (or deleted, for new specs) before the error propagates.
- Writes are atomic per file.

Non-functional requirements
- Capabilities are processed in sorted directory order so results and logs are
  deterministic.
- Moving the change directory and any VCS work belong to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import structlog

from spec_delta.delta.extractor import read_spec_text
from spec_delta.delta.models import OperationCounts
from spec_delta.errors import ArchiveError, SpecDeltaError, SpecFileError
from spec_delta.merge.merger import MergeResult, merge_spec
from spec_delta.observability.logging import correlation_scope
from spec_delta.utils.fs import atomic_write, ensure_directory, remove_empty_directories

if TYPE_CHECKING:
    from collections.abc import Sequence

SPECS_DIRNAME: Final[str] = "specs"
SPEC_FILENAME: Final[str] = "spec.md"


@dataclass(frozen=True, slots=True)
class SpecUpdate:
    """One delta file and the canonical spec it merges into."""

    capability: str
    source: Path
    target: Path
    exists: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "capability": self.capability,
            "source": str(self.source),
            "target": str(self.target),
            "exists": self.exists,
        }


@dataclass(frozen=True, slots=True)
class ArchiveResult:
    counts: OperationCounts
    capabilities: tuple[str, ...]
    updates: tuple[SpecUpdate, ...]
    dry_run: bool = False
    per_capability: dict[str, OperationCounts] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "dry_run": self.dry_run,
            "capabilities": list(self.capabilities),
            "counts": self.counts.to_dict(),
            "per_capability": {
                name: counts.to_dict() for name, counts in self.per_capability.items()
            },
            "updates": [update.to_dict() for update in self.updates],
        }


@dataclass(frozen=True, slots=True)
class _StagedMerge:
    update: SpecUpdate
    result: MergeResult
    previous_text: str | None


@dataclass(slots=True)
class _AppliedWrite:
    staged: _StagedMerge
    created_directories: list[Path]


def discover_spec_updates(change_dir: Path | str, specs_root: Path | str) -> tuple[SpecUpdate, ...]:
    """List the capability deltas of a change, sorted by capability name."""

    deltas_dir = Path(change_dir) / SPECS_DIRNAME
    if not deltas_dir.is_dir():
        return ()

    updates: list[SpecUpdate] = []
    for capability_dir in sorted(path for path in deltas_dir.iterdir() if path.is_dir()):
        source = capability_dir / SPEC_FILENAME
        if not source.is_file():
            continue
        target = Path(specs_root) / capability_dir.name / SPEC_FILENAME
        updates.append(
            SpecUpdate(
                capability=capability_dir.name,
                source=source,
                target=target,
                exists=target.is_file(),
            )
        )
    return tuple(updates)


def archive_change(
    change_dir: Path | str,
    specs_root: Path | str,
    *,
    dry_run: bool = False,
    validate: bool = True,
    logger: Any | None = None,
) -> ArchiveResult:
    """Merge all capability deltas of ``change_dir`` into ``specs_root``.

    Raises:
        ArchiveError: any capability failed to parse, validate, merge, or
            write; ``cause`` carries the underlying ``SpecDeltaError``. No spec
            file is left modified when this is raised.
    """

    log = logger if logger is not None else structlog.get_logger(__name__)
    change_path = Path(change_dir)
    updates = discover_spec_updates(change_path, specs_root)

    with correlation_scope(change_id=change_path.name):
        staged = [_stage(update, validate=validate, log=log) for update in updates]

        total = OperationCounts()
        per_capability: dict[str, OperationCounts] = {}
        for item in staged:
            total = total + item.result.counts
            per_capability[item.update.capability] = item.result.counts

        if not dry_run:
            _write_all(staged, log=log)

        log.info(
            "spec_archive_completed",
            change=str(change_path),
            dry_run=dry_run,
            capabilities=[update.capability for update in updates],
            counts=total.to_dict(),
        )

    return ArchiveResult(
        counts=total,
        capabilities=tuple(update.capability for update in updates),
        updates=updates,
        dry_run=dry_run,
        per_capability=per_capability,
    )


def _stage(update: SpecUpdate, *, validate: bool, log: Any) -> _StagedMerge:
    with correlation_scope(capability=update.capability):
        try:
            previous_text = read_spec_text(update.target) if update.exists else None
            result = merge_spec(
                update.target, update.source, update.exists, validate=validate, logger=log
            )
        except SpecDeltaError as exc:
            log.error(
                "spec_archive_capability_failed",
                capability=update.capability,
                source=str(update.source),
                error=str(exc),
            )
            raise ArchiveError(capability=update.capability, path=update.source, cause=exc) from exc
    return _StagedMerge(update=update, result=result, previous_text=previous_text)


def _write_all(staged: Sequence[_StagedMerge], *, log: Any) -> None:
    applied: list[_AppliedWrite] = []
    for item in staged:
        target = item.update.target
        created: list[Path] = []
        try:
            created = ensure_directory(target.parent)
            atomic_write(target, item.result.text)
        except OSError as exc:
            remove_empty_directories(created)
            _rollback(applied, log=log)
            cause = SpecFileError(path=target, reason=exc.strerror or str(exc))
            cause.__cause__ = exc
            raise ArchiveError(
                capability=item.update.capability, path=target, cause=cause
            ) from exc
        applied.append(_AppliedWrite(staged=item, created_directories=created))
        log.info(
            "spec_archive_written",
            capability=item.update.capability,
            target=str(target),
            new_spec=item.previous_text is None,
        )


def _rollback(applied: Sequence[_AppliedWrite], *, log: Any) -> None:
    for write in reversed(applied):
        target = write.staged.update.target
        try:
            if write.staged.previous_text is None:
                target.unlink(missing_ok=True)
                remove_empty_directories(write.created_directories)
            else:
                atomic_write(target, write.staged.previous_text)
        except OSError as exc:
            log.error("spec_archive_rollback_failed", target=str(target), error=str(exc))
            continue
        log.warning("spec_archive_rolled_back", target=str(target))


__all__ = [
    "SPECS_DIRNAME",
    "SPEC_FILENAME",
    "ArchiveResult",
    "SpecUpdate",
    "archive_change",
    "discover_spec_updates",
]
