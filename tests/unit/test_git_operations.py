"""Tests for git operations with the executor mocked out."""

from unittest.mock import AsyncMock, call, patch

import pytest

from vibetree.git.operations import (
    GitOperationError,
    add_worktree,
    get_current_branch,
    get_git_diff,
    get_git_diff_staged,
    get_git_status,
    get_worktree_path,
    is_git_available,
    is_git_repository,
    list_worktrees,
    remove_worktree,
)
from vibetree.utils.subprocess_utils import CommandErrorKind, SubprocessError


def _error(message: str, kind: CommandErrorKind = CommandErrorKind.COMMAND_ERROR) -> SubprocessError:
    return SubprocessError(message, kind=kind, cmd="git", returncode=1)


@pytest.fixture
def mock_git():
    with patch("vibetree.git.operations.run_git_command", new_callable=AsyncMock) as mock:
        yield mock


class TestQueries:
    """Tests for read-only operations."""

    @pytest.mark.asyncio
    async def test_list_worktrees(self, mock_git):
        mock_git.return_value = "worktree /repo\nHEAD abc\nbranch refs/heads/main\n\n"

        worktrees = await list_worktrees("/repo")

        assert len(worktrees) == 1
        assert worktrees[0].branch == "main"
        assert mock_git.await_args.args[0] == ["worktree", "list", "--porcelain"]
        assert mock_git.await_args.kwargs["cwd"] == "/repo"

    @pytest.mark.asyncio
    async def test_get_git_status(self, mock_git):
        mock_git.return_value = " M a.txt\n?? b.txt\n"

        entries = await get_git_status("/repo-wt")

        assert [e.status for e in entries] == [" M", "??"]
        assert mock_git.await_args.args[0] == ["status", "--porcelain=v1"]
        assert mock_git.await_args.kwargs["cwd"] == "/repo-wt"

    @pytest.mark.asyncio
    async def test_diff_returned_verbatim(self, mock_git):
        mock_git.return_value = "diff --git a/x b/x\n+line\n"

        diff = await get_git_diff("/repo")

        assert diff == "diff --git a/x b/x\n+line\n"
        assert mock_git.await_args.args[0] == ["diff"]

    @pytest.mark.asyncio
    async def test_diff_single_file(self, mock_git):
        mock_git.return_value = ""
        await get_git_diff("/repo", "src/x.py")
        assert mock_git.await_args.args[0] == ["diff", "--", "src/x.py"]

    @pytest.mark.asyncio
    async def test_diff_staged(self, mock_git):
        mock_git.return_value = ""
        await get_git_diff_staged("/repo")
        assert mock_git.await_args.args[0] == ["diff", "--staged"]

        await get_git_diff_staged("/repo", "x.py")
        assert mock_git.await_args.args[0] == ["diff", "--staged", "--", "x.py"]

    @pytest.mark.asyncio
    async def test_get_current_branch_is_trimmed(self, mock_git):
        mock_git.return_value = "feature/x\n"
        assert await get_current_branch("/repo") == "feature/x"
        assert mock_git.await_args.args[0] == ["rev-parse", "--abbrev-ref", "HEAD"]


class TestAddWorktree:
    """Tests for add_worktree."""

    def test_worktree_path_is_sibling(self):
        assert get_worktree_path("/a/proj", "feat") == "/a/proj-feat"
        assert get_worktree_path("/a/proj/", "feat") == "/a/proj-feat"

    @pytest.mark.asyncio
    async def test_returns_computed_path(self, mock_git):
        mock_git.return_value = "Preparing worktree (new branch 'feat')\n"

        result = await add_worktree("/a/proj", "feat")

        assert result.path == "/a/proj-feat"
        assert result.branch == "feat"
        mock_git.assert_awaited_once()
        assert mock_git.await_args.args[0] == ["worktree", "add", "-b", "feat", "/a/proj-feat"]
        assert mock_git.await_args.kwargs["cwd"] == "/a/proj"

    @pytest.mark.asyncio
    async def test_git_failure_propagates(self, mock_git):
        mock_git.side_effect = _error("fatal: a branch named 'feat' already exists")

        with pytest.raises(SubprocessError) as exc_info:
            await add_worktree("/a/proj", "feat")

        assert exc_info.value.kind == CommandErrorKind.COMMAND_ERROR
        assert "already exists" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_branch_never_reaches_git(self, mock_git):
        with pytest.raises(ValueError):
            await add_worktree("/a/proj", "--force")
        mock_git.assert_not_awaited()


class TestRemoveWorktree:
    """Tests for remove_worktree's partial-success policy."""

    @pytest.mark.asyncio
    async def test_removes_worktree_then_branch(self, mock_git):
        mock_git.return_value = ""

        result = await remove_worktree("/a/proj", "/a/proj-feat", "feat")

        assert result.success is True
        assert result.warning is None
        assert [c.args[0] for c in mock_git.await_args_list] == [
            ["worktree", "remove", "/a/proj-feat", "--force"],
            ["branch", "-D", "feat"],
        ]

    @pytest.mark.asyncio
    async def test_branch_delete_failure_is_a_warning(self, mock_git):
        mock_git.side_effect = ["", _error("error: branch 'feat' not found.")]

        result = await remove_worktree("/a/proj", "/a/proj-feat", "feat")

        assert result.success is True
        assert result.warning
        assert "failed to delete branch" in result.warning
        assert "branch 'feat' not found" in result.warning

    @pytest.mark.asyncio
    async def test_worktree_failure_raises_wrapped(self, mock_git):
        cause = _error("fatal: '/a/proj-feat' is not a working tree")
        mock_git.side_effect = cause

        with pytest.raises(GitOperationError) as exc_info:
            await remove_worktree("/a/proj", "/a/proj-feat", "feat")

        assert str(exc_info.value).startswith("Failed to remove worktree: ")
        assert "is not a working tree" in str(exc_info.value)
        assert exc_info.value.__cause__ is cause
        # Branch is left alone when the worktree could not be removed
        mock_git.assert_awaited_once()


class TestProbes:
    """Tests for is_git_repository and is_git_available."""

    @pytest.mark.asyncio
    async def test_is_git_repository_true(self, mock_git):
        mock_git.return_value = ".git\n"
        assert await is_git_repository("/repo") is True
        assert mock_git.await_args.args[0] == ["rev-parse", "--git-dir"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", list(CommandErrorKind))
    async def test_is_git_repository_false_on_any_failure(self, mock_git, kind):
        mock_git.side_effect = _error("nope", kind)
        assert await is_git_repository("/not-a-repo") is False

    @pytest.mark.asyncio
    async def test_git_available(self, mock_git):
        mock_git.return_value = "git version 2.43.0\n"
        assert await is_git_available() is True
        assert mock_git.await_args.args[0] == ["--version"]

    @pytest.mark.asyncio
    async def test_git_unavailable_only_when_not_found(self, mock_git):
        mock_git.side_effect = _error("not found", CommandErrorKind.EXECUTABLE_NOT_FOUND)
        assert await is_git_available() is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", [
        CommandErrorKind.COMMAND_ERROR,
        CommandErrorKind.SPAWN_ERROR,
        CommandErrorKind.TIMEOUT,
    ])
    async def test_other_failures_count_as_available(self, mock_git, kind):
        mock_git.side_effect = _error("something else", kind)
        assert await is_git_available() is True
