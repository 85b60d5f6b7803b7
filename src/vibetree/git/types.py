"""Structured results of git commands."""

from dataclasses import dataclass, asdict
from typing import Dict, Optional

# Branch value reported for a worktree checked out at a bare commit
DETACHED_BRANCH = "detached"


@dataclass
class Worktree:
    """One entry of `git worktree list --porcelain`."""
    path: str
    branch: str = ""
    head: str = ""
    is_main: bool = False
    is_locked: bool = False
    is_bare: bool = False
    is_detached: bool = False

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class GitStatusEntry:
    """One changed file from `git status --porcelain=v1`.

    ``status`` holds the raw two-character code; ``index_state`` and
    ``worktree_state`` are its staged and unstaged halves. Renames and copies
    keep the source path in ``original_path``.
    """
    path: str
    status: str
    original_path: Optional[str] = None

    @property
    def index_state(self) -> str:
        return self.status[0]

    @property
    def worktree_state(self) -> str:
        return self.status[1]

    @property
    def is_untracked(self) -> bool:
        return self.status == "??"

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["index_state"] = self.index_state
        data["worktree_state"] = self.worktree_state
        return data


@dataclass
class WorktreeAddResult:
    path: str
    branch: str

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class WorktreeRemoveResult:
    """Outcome of removing a worktree and its branch.

    Success is reported once the worktree is gone, even if the branch could
    not be deleted; the branch error is then carried in ``warning``.
    """
    success: bool
    warning: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)
