"""
spec-delta — integration test package

File: tests/integration/__init__.py
Last updated: 2026-10-19

Purpose
- Test package marker file.

Functional requirements
- Must not import the package under test at import time; subprocess tests set
  their own ``PYTHONPATH``.
"""
