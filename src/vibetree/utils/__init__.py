"""Shared utility functions."""

from .subprocess_utils import (
    DEFAULT_GIT_TIMEOUT,
    CommandErrorKind,
    SubprocessError,
    run_command,
    run_git_command,
)
from .rich_logging import ServerLogFormatter, setup_logging
from .validators import MAX_PATH_LENGTH, validate_branch_name, validate_path_param

__all__ = [
    # Subprocess utilities
    "DEFAULT_GIT_TIMEOUT",
    "CommandErrorKind",
    "SubprocessError",
    "run_command",
    "run_git_command",
    # Logging
    "ServerLogFormatter",
    "setup_logging",
    # Validators
    "MAX_PATH_LENGTH",
    "validate_branch_name",
    "validate_path_param",
]
