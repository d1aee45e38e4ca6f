"""Delta documents: ADDED / MODIFIED / REMOVED / RENAMED requirement operations."""

from spec_delta.delta.extractor import (
    ADDED_SECTION,
    DELTA_SECTIONS,
    MODIFIED_SECTION,
    REMOVED_SECTION,
    RENAMED_SECTION,
    REQUIREMENTS_SECTION,
    normalize_requirement_name,
    parse_delta_spec,
    parse_delta_text,
    parse_requirements,
    parse_requirements_section,
    parse_requirements_text,
    parse_scenarios,
    read_spec_text,
)
from spec_delta.delta.models import DeltaPlan, OperationCounts, RenameOp, RequirementBlock

__all__ = [
    "ADDED_SECTION",
    "DELTA_SECTIONS",
    "MODIFIED_SECTION",
    "REMOVED_SECTION",
    "RENAMED_SECTION",
    "REQUIREMENTS_SECTION",
    "DeltaPlan",
    "OperationCounts",
    "RenameOp",
    "RequirementBlock",
    "normalize_requirement_name",
    "parse_delta_spec",
    "parse_delta_text",
    "parse_requirements",
    "parse_requirements_section",
    "parse_requirements_text",
    "parse_scenarios",
    "read_spec_text",
]
