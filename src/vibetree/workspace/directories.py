"""Filesystem helpers for picking a project directory."""

import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class PathValidation:
    """What is known about a candidate project path."""
    valid: bool
    exists: bool = False
    is_directory: bool = False
    readable: bool = False
    is_git_repository: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class DirectoryEntry:
    name: str
    path: str
    is_git_repository: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


def _resolve(path: str) -> Path:
    return Path(path).expanduser().resolve()


def _has_git_dir(path: Path) -> bool:
    # .git is a directory in a main checkout and a file in a linked worktree
    return (path / ".git").exists()


def validate_path(path: str) -> PathValidation:
    """Check that ``path`` is an existing, readable directory."""
    target = _resolve(path)

    if not target.exists():
        return PathValidation(valid=False, error=f"Path does not exist: {target}")

    if not target.is_dir():
        return PathValidation(
            valid=False, exists=True, error=f"Path is not a directory: {target}"
        )

    if not os.access(target, os.R_OK | os.X_OK):
        return PathValidation(
            valid=False,
            exists=True,
            is_directory=True,
            error=f"Path is not readable: {target}",
        )

    return PathValidation(
        valid=True,
        exists=True,
        is_directory=True,
        readable=True,
        is_git_repository=_has_git_dir(target),
    )


def list_directories(path: str) -> List[DirectoryEntry]:
    """
    List the immediate subdirectories of ``path``.

    Hidden directories are left out and unreadable children skipped.
    Entries are sorted by name, ignoring case.

    Raises:
        OSError: If ``path`` itself cannot be read
    """
    target = _resolve(path)
    entries: List[DirectoryEntry] = []

    for child in target.iterdir():
        if child.name.startswith("."):
            continue
        try:
            if not child.is_dir():
                continue
            entries.append(
                DirectoryEntry(
                    name=child.name,
                    path=str(child),
                    is_git_repository=_has_git_dir(child),
                )
            )
        except PermissionError as e:
            logger.debug(f"Skipping unreadable directory {child}: {e}")

    entries.sort(key=lambda entry: entry.name.lower())
    return entries
