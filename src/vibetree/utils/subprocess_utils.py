"""Standardized subprocess utilities for command execution."""

import asyncio
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Applied to every git call unless the caller overrides it
DEFAULT_GIT_TIMEOUT = 30


class CommandErrorKind(str, Enum):
    """Why a command did not produce output."""
    COMMAND_ERROR = "command_error"
    EXECUTABLE_NOT_FOUND = "executable_not_found"
    SPAWN_ERROR = "spawn_error"
    TIMEOUT = "timeout"


class SubprocessError(Exception):
    """Exception raised when a subprocess command fails."""

    def __init__(
        self,
        message: str,
        *,
        kind: CommandErrorKind,
        cmd: str,
        returncode: Optional[int] = None,
        stderr: str = "",
        stdout: str = "",
        cwd: Optional[Path] = None,
    ):
        self.kind = kind
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        self.cwd = cwd
        super().__init__(message)

    @property
    def timed_out(self) -> bool:
        return self.kind == CommandErrorKind.TIMEOUT


def _format_cmd(cmd: List[str]) -> str:
    return " ".join(cmd)


async def run_command(
    cmd: List[str],
    *,
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
    env: Optional[Dict[str, str]] = None,
) -> str:
    """
    Run a command and return its stdout.

    The child inherits the parent environment unless ``env`` is given.
    stdout and stderr are captured as text.

    Args:
        cmd: Executable followed by its arguments
        cwd: Working directory
        timeout: Timeout in seconds (None waits forever)
        env: Environment variables

    Returns:
        Command stdout

    Raises:
        SubprocessError: With ``kind`` set to the failure mode
    """
    cmd_str = _format_cmd(cmd)
    cwd_path = Path(cwd) if cwd is not None else None

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd_path,
            env=env if env is not None else os.environ.copy(),
        )
    except FileNotFoundError as e:
        # The OS reports a missing cwd the same way as a missing executable
        if cwd_path is not None and not cwd_path.is_dir():
            raise SubprocessError(
                f"Working directory does not exist: {cwd_path}",
                kind=CommandErrorKind.SPAWN_ERROR,
                cmd=cmd_str,
                cwd=cwd_path,
            ) from e
        raise SubprocessError(
            f"{cmd[0]} executable not found. Please ensure {cmd[0]} is installed "
            f"and available in your PATH.\n"
            f"Command attempted: {cmd_str}\n"
            f"Current PATH: {os.environ.get('PATH', '')}",
            kind=CommandErrorKind.EXECUTABLE_NOT_FOUND,
            cmd=cmd_str,
            cwd=cwd_path,
        ) from e
    except (OSError, ValueError) as e:
        # ValueError: arguments or cwd the OS cannot accept (embedded NUL)
        raise SubprocessError(
            str(e),
            kind=CommandErrorKind.SPAWN_ERROR,
            cmd=cmd_str,
            cwd=cwd_path,
        ) from e

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.error(f"Command timed out after {timeout}s: {cmd_str}")
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
        raise SubprocessError(
            f"Command timed out after {timeout}s: {cmd_str}",
            kind=CommandErrorKind.TIMEOUT,
            cmd=cmd_str,
            cwd=cwd_path,
        )

    stdout = stdout_bytes.decode(errors="replace")
    stderr = stderr_bytes.decode(errors="replace")

    if process.returncode != 0:
        raise SubprocessError(
            stderr or f"Command failed: {cmd_str}",
            kind=CommandErrorKind.COMMAND_ERROR,
            cmd=cmd_str,
            returncode=process.returncode,
            stderr=stderr,
            stdout=stdout,
            cwd=cwd_path,
        )

    return stdout


async def run_git_command(
    args: List[str],
    *,
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
    log_failures: bool = True,
) -> str:
    """
    Run a git command and return its stdout.

    Args:
        args: Git command arguments (without 'git' prefix)
        cwd: Working directory (git repo)
        timeout: Timeout in seconds (default: 30)
        log_failures: Log failures at error level (probes turn this off)

    Raises:
        SubprocessError: If the command fails
    """
    try:
        return await run_command(["git"] + args, cwd=cwd, timeout=timeout)
    except SubprocessError as e:
        if log_failures:
            logger.error(f"Git command failed in {cwd}: {' '.join(args)} ({e.kind.value})")
        raise
