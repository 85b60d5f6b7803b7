"""Shared fixtures: throwaway git repositories."""

import shutil
import subprocess
from pathlib import Path

import pytest


def _git(*args: str, cwd: Path) -> str:
    """Run git synchronously for test setup."""
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def git():
    """Synchronous git runner for arranging repository state."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    return _git


@pytest.fixture
def git_repo(tmp_path, git):
    """A repository at tmp_path/proj with one committed file on branch main."""
    repo = tmp_path / "proj"
    repo.mkdir()
    git("-c", "init.defaultBranch=main", "init", cwd=repo)
    git("config", "user.email", "test@example.com", cwd=repo)
    git("config", "user.name", "Test User", cwd=repo)
    (repo / "README.md").write_text("hello\n")
    git("add", "README.md", cwd=repo)
    git("commit", "-m", "initial", cwd=repo)
    return repo
