"""Parsers for git porcelain output.

Both parsers are pure: they take the text a git command printed and return
structured entries. Neither raises on input it does not recognize.
"""

from typing import Dict, List, Optional

from .types import DETACHED_BRANCH, GitStatusEntry, Worktree

BRANCH_REF_PREFIX = "refs/heads/"
RENAME_SEPARATOR = " -> "

# Minimum status line: two code characters, a space and one path character
_MIN_STATUS_LINE = 4

_C_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    '"': '"',
    "\\": "\\",
}


def _record_to_worktree(record: Dict[str, Optional[str]], is_main: bool) -> Worktree:
    branch = record.get("branch")
    if branch:
        if branch.startswith(BRANCH_REF_PREFIX):
            branch = branch[len(BRANCH_REF_PREFIX):]
        is_detached = False
    else:
        # Bare repositories list no branch either, but are not detached
        is_detached = "bare" not in record
        branch = DETACHED_BRANCH if is_detached else ""

    return Worktree(
        path=record.get("worktree") or "",
        branch=branch,
        head=record.get("HEAD") or "",
        is_main=is_main,
        is_locked="locked" in record,
        is_bare="bare" in record,
        is_detached=is_detached,
    )


def parse_worktrees(output: str) -> List[Worktree]:
    """Parse `git worktree list --porcelain` output.

    Records are separated by blank lines and each starts with a
    ``worktree <path>`` line. Other lines are ``key value`` or a bare ``key``
    flag. The first record is the main worktree.

    A worktree without a ``branch`` line has a detached HEAD; its branch is
    reported as ``DETACHED_BRANCH`` and ``is_detached`` is set.
    """
    records: List[Dict[str, Optional[str]]] = []
    current: Dict[str, Optional[str]] = {}

    for raw_line in output.splitlines():
        line = raw_line.rstrip("\r")
        if not line.strip():
            if current:
                records.append(current)
                current = {}
            continue

        key, _, value = line.partition(" ")
        if key == "worktree" and current:
            # Tolerate a missing blank line between records
            records.append(current)
            current = {}
        current[key] = value if value else None

    if current:
        records.append(current)

    return [
        _record_to_worktree(record, is_main=(index == 0))
        for index, record in enumerate(records)
    ]


def _unquote_path(path: str) -> str:
    """Undo git's C-style quoting of paths with special characters."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    body = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\" or i + 1 >= len(body):
            out.extend(char.encode("utf-8"))
            i += 1
            continue

        nxt = body[i + 1]
        octal = body[i + 1:i + 4]
        if len(octal) == 3 and all(c in "01234567" for c in octal):
            out.append(int(octal, 8))
            i += 4
        elif nxt in _C_ESCAPES:
            out.extend(_C_ESCAPES[nxt].encode("utf-8"))
            i += 2
        else:
            out.extend(char.encode("utf-8"))
            i += 1

    return out.decode("utf-8", errors="replace")


def _split_rename(path_part: str) -> Optional[tuple]:
    """Split ``old -> new``, honouring quotes around either side."""
    if path_part.startswith('"'):
        # Find the closing quote of the first path
        i = 1
        while i < len(path_part):
            if path_part[i] == "\\":
                i += 2
                continue
            if path_part[i] == '"':
                break
            i += 1
        rest = path_part[i + 1:]
        if rest.startswith(RENAME_SEPARATOR):
            return path_part[:i + 1], rest[len(RENAME_SEPARATOR):]
        return None

    if RENAME_SEPARATOR in path_part:
        old, new = path_part.split(RENAME_SEPARATOR, 1)
        return old, new
    return None


def parse_git_status(output: str) -> List[GitStatusEntry]:
    """Parse `git status --porcelain=v1` output.

    Each line is ``XY path`` where X is the index state and Y the worktree
    state. Renames and copies read ``XY old -> new``. Status pairs git may add
    in the future are kept verbatim.
    """
    entries: List[GitStatusEntry] = []

    for raw_line in output.splitlines():
        line = raw_line.rstrip("\r")
        if len(line) < _MIN_STATUS_LINE:
            continue

        status = line[:2]
        path_part = line[3:]
        original_path = None

        if status[0] in "RC" or status[1] in "RC":
            pair = _split_rename(path_part)
            if pair is not None:
                original_path, path_part = pair
                original_path = _unquote_path(original_path)

        entries.append(
            GitStatusEntry(
                path=_unquote_path(path_part),
                status=status,
                original_path=original_path,
            )
        )

    return entries
