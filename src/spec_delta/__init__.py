"""
spec-delta — package root

File: src/spec_delta/__init__.py
Last updated: 2026-10-19

Purpose
- Versioned requirement specs in markdown: a fence-aware lexer and parser,
  delta extraction (ADDED / MODIFIED / REMOVED / RENAMED), a position-preserving
  spec merger, and authoring-rule validation.

Functional requirements
- No side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
