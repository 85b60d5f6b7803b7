"""Shell sessions attached to worktrees.

A session is a shell process whose working directory is a worktree. Input is
written to its stdin and output (stdout with stderr merged in) is read back in
chunks. No terminal is emulated: bytes are relayed as text.
"""

import asyncio
import logging
import os
import signal
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "/bin/sh"
READ_CHUNK_SIZE = 4096

# Grace period between SIGTERM and SIGKILL when terminating a shell
TERMINATE_GRACE_SECONDS = 2.0


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _signal_shell(process: asyncio.subprocess.Process, sig: int) -> None:
    """Signal the shell's process group so commands it started go down too."""
    try:
        os.killpg(process.pid, sig)
    except ProcessLookupError:
        pass
    except OSError:
        # Not a group leader
        try:
            process.send_signal(sig)
        except ProcessLookupError:
            pass


@dataclass
class ShellSession:
    """A running shell process bound to a worktree."""
    id: str
    worktree_path: str
    process: asyncio.subprocess.Process
    created_at: datetime = field(default_factory=_now)
    last_activity: datetime = field(default_factory=_now)

    def touch(self) -> None:
        self.last_activity = _now()

    @property
    def is_running(self) -> bool:
        return self.process.returncode is None


class ShellSessionError(Exception):
    """Raised when a session cannot be started or used."""


class ShellManager:
    """Starts, tracks and terminates shell sessions."""

    def __init__(self, shell: Optional[str] = None):
        """
        Initialize shell manager.

        Args:
            shell: Shell executable (defaults to $SHELL, then /bin/sh)
        """
        self.shell = shell or os.environ.get("SHELL") or DEFAULT_SHELL
        self._sessions: Dict[str, ShellSession] = {}

    async def create_session(
        self, worktree_path: str, shell: Optional[str] = None
    ) -> ShellSession:
        """
        Start a shell in ``worktree_path``.

        Raises:
            ShellSessionError: If the directory is missing or the shell cannot start
        """
        cwd = Path(worktree_path).expanduser()
        if not cwd.is_dir():
            raise ShellSessionError(f"Worktree path is not a directory: {worktree_path}")

        executable = shell or self.shell
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=cwd,
                env=os.environ.copy(),
                start_new_session=True,
            )
        except OSError as e:
            raise ShellSessionError(f"Failed to start shell {executable}: {e}") from e

        session = ShellSession(
            id=uuid.uuid4().hex,
            worktree_path=str(worktree_path),
            process=process,
        )
        self._sessions[session.id] = session
        logger.info(f"Started shell session {session.id} (pid {process.pid}) in {worktree_path}")
        return session

    def get_session(self, session_id: str) -> Optional[ShellSession]:
        return self._sessions.get(session_id)

    def get_all_sessions(self) -> List[ShellSession]:
        return list(self._sessions.values())

    async def write(self, session_id: str, data: str) -> None:
        """Send input to a session's shell."""
        session = self._require(session_id)
        if not session.is_running or session.process.stdin is None:
            raise ShellSessionError(f"Shell session {session_id} has exited")

        session.process.stdin.write(data.encode())
        await session.process.stdin.drain()
        session.touch()

    async def read(self, session_id: str) -> AsyncIterator[str]:
        """Yield output chunks until the shell closes its output."""
        session = self._require(session_id)
        stream = session.process.stdout
        if stream is None:
            return

        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            session.touch()
            yield chunk.decode(errors="replace")

    async def terminate_session(self, session_id: str) -> bool:
        """Kill a session's shell and forget it. False if the id is unknown."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        if session.is_running:
            _signal_shell(session.process, signal.SIGTERM)
            try:
                await asyncio.wait_for(session.process.wait(), timeout=TERMINATE_GRACE_SECONDS)
            except asyncio.TimeoutError:
                logger.warning(f"Shell session {session_id} ignored SIGTERM, killing")
                _signal_shell(session.process, signal.SIGKILL)
                await session.process.wait()

        logger.info(f"Terminated shell session {session_id}")
        return True

    async def terminate_all(self) -> None:
        for session_id in list(self._sessions):
            await self.terminate_session(session_id)

    def _require(self, session_id: str) -> ShellSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise ShellSessionError(f"Shell session {session_id} not found")
        return session
