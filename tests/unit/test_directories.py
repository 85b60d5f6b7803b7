"""Tests for directory listing and path validation."""

import os

import pytest

from vibetree.workspace.directories import list_directories, validate_path


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "beta").mkdir()
    (tmp_path / "Alpha").mkdir()
    (tmp_path / ".hidden").mkdir()
    (tmp_path / "repo").mkdir()
    (tmp_path / "repo" / ".git").mkdir()
    (tmp_path / "file.txt").write_text("x")
    return tmp_path


class TestValidatePath:

    def test_valid_directory(self, tree):
        result = validate_path(str(tree))
        assert result.valid is True
        assert result.exists is True
        assert result.is_directory is True
        assert result.readable is True
        assert result.error is None

    def test_detects_git_repository(self, tree):
        assert validate_path(str(tree / "repo")).is_git_repository is True
        assert validate_path(str(tree / "beta")).is_git_repository is False

    def test_linked_worktree_git_file(self, tmp_path):
        (tmp_path / ".git").write_text("gitdir: /elsewhere\n")
        assert validate_path(str(tmp_path)).is_git_repository is True

    def test_missing_path(self, tmp_path):
        result = validate_path(str(tmp_path / "nope"))
        assert result.valid is False
        assert result.exists is False
        assert "does not exist" in result.error

    def test_file_is_not_a_directory(self, tree):
        result = validate_path(str(tree / "file.txt"))
        assert result.valid is False
        assert result.exists is True
        assert "not a directory" in result.error

    def test_home_is_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert validate_path("~").valid is True

    @pytest.mark.skipif(os.geteuid() == 0, reason="root can read anything")
    def test_unreadable_directory(self, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0)
        try:
            result = validate_path(str(locked))
            assert result.valid is False
            assert result.is_directory is True
            assert "not readable" in result.error
        finally:
            locked.chmod(0o755)


class TestListDirectories:

    def test_lists_visible_subdirectories_sorted(self, tree):
        entries = list_directories(str(tree))
        assert [e.name for e in entries] == ["Alpha", "beta", "repo"]

    def test_entries_have_absolute_paths(self, tree):
        entries = list_directories(str(tree))
        assert all(os.path.isabs(e.path) for e in entries)

    def test_marks_git_repositories(self, tree):
        entries = {e.name: e for e in list_directories(str(tree))}
        assert entries["repo"].is_git_repository is True
        assert entries["beta"].is_git_repository is False

    def test_empty_directory(self, tmp_path):
        assert list_directories(str(tmp_path)) == []

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            list_directories(str(tmp_path / "nope"))
