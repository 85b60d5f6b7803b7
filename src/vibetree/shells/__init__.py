"""Shell sessions attached to worktrees."""

from .manager import ShellManager, ShellSession, ShellSessionError

__all__ = ["ShellManager", "ShellSession", "ShellSessionError"]
