"""VibeTree: manage the git worktrees of a project, each with its own shell."""

__version__ = "0.1.0"
