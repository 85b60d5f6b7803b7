"""Git operations on a project and its worktrees.

Each operation builds an argument list, runs git in the right directory and,
where git prints porcelain output, hands the text to a parser. Nothing is
cached: every call re-reads the repository.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from ..utils.subprocess_utils import (
    DEFAULT_GIT_TIMEOUT,
    CommandErrorKind,
    SubprocessError,
    run_git_command,
)
from ..utils.validators import validate_branch_name
from .parser import parse_git_status, parse_worktrees
from .types import GitStatusEntry, Worktree, WorktreeAddResult, WorktreeRemoveResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class GitOperationError(Exception):
    """A git operation failed; the underlying error is chained as __cause__."""


async def list_worktrees(
    project_path: PathLike, *, timeout: Optional[float] = DEFAULT_GIT_TIMEOUT
) -> List[Worktree]:
    """List all worktrees of the repository at ``project_path``."""
    output = await run_git_command(
        ["worktree", "list", "--porcelain"], cwd=project_path, timeout=timeout
    )
    return parse_worktrees(output)


async def get_git_status(
    worktree_path: PathLike, *, timeout: Optional[float] = DEFAULT_GIT_TIMEOUT
) -> List[GitStatusEntry]:
    """Changed files in a worktree, in the order git reports them."""
    output = await run_git_command(
        ["status", "--porcelain=v1"], cwd=worktree_path, timeout=timeout
    )
    return parse_git_status(output)


def _diff_args(staged: bool, file_path: Optional[str]) -> List[str]:
    args = ["diff"]
    if staged:
        args.append("--staged")
    if file_path:
        args.extend(["--", file_path])
    return args


async def get_git_diff(
    worktree_path: PathLike,
    file_path: Optional[str] = None,
    *,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> str:
    """Unstaged diff of a worktree (or of one file in it), returned verbatim."""
    return await run_git_command(
        _diff_args(False, file_path), cwd=worktree_path, timeout=timeout
    )


async def get_git_diff_staged(
    worktree_path: PathLike,
    file_path: Optional[str] = None,
    *,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> str:
    """Staged diff of a worktree (or of one file in it), returned verbatim."""
    return await run_git_command(
        _diff_args(True, file_path), cwd=worktree_path, timeout=timeout
    )


def get_worktree_path(project_path: PathLike, branch_name: str) -> str:
    """Directory a new worktree for ``branch_name`` is created in.

    It sits next to the project and is named ``<project>-<branch>``.
    """
    project = os.path.normpath(str(project_path))
    return os.path.join(
        os.path.dirname(project), f"{os.path.basename(project)}-{branch_name}"
    )


async def add_worktree(
    project_path: PathLike,
    branch_name: str,
    *,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> WorktreeAddResult:
    """
    Create a new branch and check it out in a sibling worktree.

    Args:
        project_path: Path to the main git repository
        branch_name: Name for the new branch

    Returns:
        The computed worktree path and the branch name

    Raises:
        ValueError: If branch name is invalid
        SubprocessError: If git refuses (branch exists, directory occupied, ...)
    """
    branch_name = validate_branch_name(branch_name)
    worktree_path = get_worktree_path(project_path, branch_name)

    await run_git_command(
        ["worktree", "add", "-b", branch_name, worktree_path],
        cwd=project_path,
        timeout=timeout,
    )
    logger.info(f"Created worktree {worktree_path} on branch {branch_name}")

    return WorktreeAddResult(path=worktree_path, branch=branch_name)


async def remove_worktree(
    project_path: PathLike,
    worktree_path: PathLike,
    branch_name: str,
    *,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> WorktreeRemoveResult:
    """
    Remove a worktree, then delete its branch.

    A branch that cannot be deleted does not fail the call: the worktree is
    already gone, so the result reports success with a warning.

    Raises:
        GitOperationError: If the worktree itself could not be removed
    """
    try:
        await run_git_command(
            ["worktree", "remove", str(worktree_path), "--force"],
            cwd=project_path,
            timeout=timeout,
        )
    except SubprocessError as e:
        raise GitOperationError(f"Failed to remove worktree: {e}") from e

    try:
        await run_git_command(
            ["branch", "-D", branch_name], cwd=project_path, timeout=timeout
        )
    except SubprocessError as e:
        logger.warning(f"Failed to delete branch {branch_name} but worktree was removed: {e}")
        return WorktreeRemoveResult(
            success=True,
            warning=f"Worktree removed but failed to delete branch: {e}",
        )

    logger.info(f"Removed worktree {worktree_path} and branch {branch_name}")
    return WorktreeRemoveResult(success=True)


async def is_git_repository(
    path: PathLike, *, timeout: Optional[float] = DEFAULT_GIT_TIMEOUT
) -> bool:
    """True if ``path`` is inside a git repository.

    Every failure, including git itself being missing, reads as False.
    """
    try:
        await run_git_command(
            ["rev-parse", "--git-dir"], cwd=path, timeout=timeout, log_failures=False
        )
    except SubprocessError as e:
        logger.debug(f"{path} is not a git repository ({e.kind.value})")
        return False
    return True


async def get_current_branch(
    worktree_path: PathLike, *, timeout: Optional[float] = DEFAULT_GIT_TIMEOUT
) -> str:
    output = await run_git_command(
        ["rev-parse", "--abbrev-ref", "HEAD"], cwd=worktree_path, timeout=timeout
    )
    return output.strip()


async def get_git_version(*, timeout: Optional[float] = DEFAULT_GIT_TIMEOUT) -> str:
    """Version string printed by `git --version`."""
    output = await run_git_command(
        ["--version"], cwd=os.getcwd(), timeout=timeout, log_failures=False
    )
    return output.strip()


async def is_git_available(*, timeout: Optional[float] = DEFAULT_GIT_TIMEOUT) -> bool:
    """False only when the git executable cannot be found.

    Any other failure means git exists but something else went wrong.
    """
    try:
        await get_git_version(timeout=timeout)
    except SubprocessError as e:
        if e.kind == CommandErrorKind.EXECUTABLE_NOT_FOUND:
            return False
        logger.warning(f"git --version failed but git is installed: {e}")
    return True
