"""Authoring rules for canonical specs and delta documents."""

from spec_delta.validation.spec_rules import (
    ValidationIssue,
    ValidationLevel,
    ValidationReport,
    validate_delta_file,
    validate_delta_text,
    validate_spec_file,
    validate_spec_text,
)

__all__ = [
    "ValidationIssue",
    "ValidationLevel",
    "ValidationReport",
    "validate_delta_file",
    "validate_delta_text",
    "validate_spec_file",
    "validate_spec_text",
]
