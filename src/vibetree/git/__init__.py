"""Git command layer: porcelain parsers and worktree operations."""

from .operations import (
    GitOperationError,
    add_worktree,
    get_current_branch,
    get_git_diff,
    get_git_diff_staged,
    get_git_status,
    get_git_version,
    get_worktree_path,
    is_git_available,
    is_git_repository,
    list_worktrees,
    remove_worktree,
)
from .parser import parse_git_status, parse_worktrees
from .types import (
    DETACHED_BRANCH,
    GitStatusEntry,
    Worktree,
    WorktreeAddResult,
    WorktreeRemoveResult,
)

__all__ = [
    # Operations
    "GitOperationError",
    "add_worktree",
    "get_current_branch",
    "get_git_diff",
    "get_git_diff_staged",
    "get_git_status",
    "get_git_version",
    "get_worktree_path",
    "is_git_available",
    "is_git_repository",
    "list_worktrees",
    "remove_worktree",
    # Parsers
    "parse_git_status",
    "parse_worktrees",
    # Types
    "DETACHED_BRANCH",
    "GitStatusEntry",
    "Worktree",
    "WorktreeAddResult",
    "WorktreeRemoveResult",
]
