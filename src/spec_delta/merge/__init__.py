"""
spec-delta — merge package

File: src/spec_delta/merge/__init__.py
Last updated: 2026-10-19

Purpose
- Merge engine, delta validation, and multi-capability archiving.

Functional requirements
- Conflict detection always runs before any document mutation.
- Archive writes are all-or-nothing across capabilities.
"""

from spec_delta.merge.archive import ArchiveResult, SpecUpdate, archive_change, discover_spec_updates
from spec_delta.merge.merger import (
    MergeResult,
    capability_title,
    merge_delta_plan,
    merge_spec,
    render_skeleton,
)
from spec_delta.merge.validator import (
    check_duplicates_and_conflicts,
    validate_post_merge,
    validate_pre_merge,
)

__all__ = [
    "ArchiveResult",
    "MergeResult",
    "SpecUpdate",
    "archive_change",
    "capability_title",
    "check_duplicates_and_conflicts",
    "discover_spec_updates",
    "merge_delta_plan",
    "merge_spec",
    "render_skeleton",
    "validate_post_merge",
    "validate_pre_merge",
]
