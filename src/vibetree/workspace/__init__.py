"""Filesystem helpers for project selection."""

from .directories import DirectoryEntry, PathValidation, list_directories, validate_path

__all__ = ["DirectoryEntry", "PathValidation", "list_directories", "validate_path"]
