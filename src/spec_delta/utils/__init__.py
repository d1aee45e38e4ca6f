"""Utility exports for filesystem helpers."""

from spec_delta.utils.fs import atomic_write, ensure_directory, remove_empty_directories

__all__ = [
    "atomic_write",
    "ensure_directory",
    "remove_empty_directories",
]
