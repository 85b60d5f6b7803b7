"""Validation of user-supplied branch names and path parameters."""

import re

# Longest path accepted from a query string
MAX_PATH_LENGTH = 1000

# Whitespace and control characters
_FORBIDDEN_BRANCH_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


def validate_branch_name(branch_name: str) -> str:
    """
    Check a branch name before it is put on a git command line.

    Only what would change the meaning of the command is rejected here. Git
    itself reports every other malformed ref when the worktree is added.

    Raises:
        ValueError: describing the first rule the name breaks
    """
    if not branch_name:
        raise ValueError("Branch name cannot be empty")
    if _FORBIDDEN_BRANCH_CHARS.search(branch_name):
        raise ValueError(f"Invalid branch name: {branch_name!r}")
    if branch_name.startswith("-"):
        raise ValueError("Branch name cannot start with -")
    if ".." in branch_name:
        raise ValueError("Branch name contains invalid sequence")
    return branch_name


def validate_path_param(path: object) -> str:
    """Return ``path`` if it is a non-empty string of acceptable length."""
    if isinstance(path, str) and 0 < len(path) <= MAX_PATH_LENGTH:
        return path
    raise ValueError("Invalid path parameter")
