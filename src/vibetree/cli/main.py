"""Main CLI for VibeTree."""

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..core.config import DEFAULT_CONFIG_PATH, load_config
from ..git import (
    GitOperationError,
    add_worktree,
    get_git_status,
    get_git_version,
    is_git_available,
    is_git_repository,
    list_worktrees,
    remove_worktree,
)
from ..utils.rich_logging import setup_logging
from ..utils.subprocess_utils import SubprocessError


console = Console()

# Colors for the staged/unstaged halves of a status code
STATUS_STYLES = {
    "M": "yellow",
    "A": "green",
    "D": "red",
    "R": "cyan",
    "C": "cyan",
    "U": "bold red",
    "?": "magenta",
    "!": "dim",
}


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/]")
    sys.exit(1)


@click.group()
@click.option("--config", "-c", "config_path", default=str(DEFAULT_CONFIG_PATH),
              help="Config file (YAML)")
@click.option("--project", "-p", default=None, help="Project directory (default: PROJECT_PATH or cwd)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.version_option(__version__, prog_name="vibetree")
@click.pass_context
def cli(ctx, config_path, project, verbose):
    """VibeTree - manage git worktrees, each with its own shell."""
    ctx.ensure_object(dict)
    config = load_config(Path(config_path))
    if project:
        config.project_path = Path(project).expanduser().resolve()
    if verbose:
        config.log_level = "DEBUG"
    setup_logging(config.log_level, config.log_file)
    ctx.obj["config"] = config


@cli.command()
@click.option("--port", type=int, default=None, help="Server port")
@click.option("--host", default=None, help="Bind address")
@click.option("--open", "open_browser", is_flag=True, help="Open API docs in a browser")
@click.pass_context
def serve(ctx, port, host, open_browser):
    """Run the REST/WebSocket server."""
    from ..web.server import run_server

    config = ctx.obj["config"]
    if port is not None:
        config.port = port
    if host is not None:
        config.host = host

    run_server(config, open_browser=open_browser)


@cli.command()
@click.pass_context
def worktrees(ctx):
    """List the project's worktrees."""
    config = ctx.obj["config"]
    try:
        entries = asyncio.run(list_worktrees(config.project_path, timeout=config.git_timeout))
    except SubprocessError as e:
        _fail(str(e).strip())

    table = Table(title=f"Worktrees of {config.project_path}")
    table.add_column("Path", style="cyan")
    table.add_column("Branch", style="green")
    table.add_column("HEAD")
    table.add_column("Flags")

    for wt in entries:
        flags = []
        if wt.is_main:
            flags.append("main")
        if wt.is_locked:
            flags.append("locked")
        if wt.is_bare:
            flags.append("bare")
        table.add_row(wt.path, wt.branch, wt.head[:8], ", ".join(flags))

    console.print(table)


@cli.command()
@click.argument("worktree_path", required=False)
@click.pass_context
def status(ctx, worktree_path):
    """Show changed files in a worktree (default: the project)."""
    config = ctx.obj["config"]
    path = worktree_path or str(config.project_path)
    try:
        entries = asyncio.run(get_git_status(path, timeout=config.git_timeout))
    except SubprocessError as e:
        _fail(str(e).strip())

    if not entries:
        console.print("[green]✓ Working tree clean[/]")
        return

    table = Table(title=f"Status of {path}")
    table.add_column("Staged", justify="center")
    table.add_column("Unstaged", justify="center")
    table.add_column("Path")

    for entry in entries:
        index_style = STATUS_STYLES.get(entry.index_state, "")
        worktree_style = STATUS_STYLES.get(entry.worktree_state, "")
        name = entry.path
        if entry.original_path:
            name = f"{entry.original_path} → {entry.path}"
        table.add_row(
            f"[{index_style}]{entry.index_state}[/]" if index_style else entry.index_state,
            f"[{worktree_style}]{entry.worktree_state}[/]" if worktree_style else entry.worktree_state,
            name,
        )

    console.print(table)


@cli.command()
@click.argument("branch_name")
@click.pass_context
def add(ctx, branch_name):
    """Create BRANCH_NAME and a worktree for it next to the project."""
    config = ctx.obj["config"]
    try:
        result = asyncio.run(
            add_worktree(config.project_path, branch_name, timeout=config.git_timeout)
        )
    except ValueError as e:
        _fail(str(e))
    except SubprocessError as e:
        _fail(str(e).strip())

    console.print(f"[green]✓ Created worktree[/] {result.path} [dim]({result.branch})[/]")


@cli.command()
@click.argument("worktree_path")
@click.argument("branch_name")
@click.pass_context
def remove(ctx, worktree_path, branch_name):
    """Remove WORKTREE_PATH and delete BRANCH_NAME."""
    config = ctx.obj["config"]
    try:
        result = asyncio.run(
            remove_worktree(
                config.project_path, worktree_path, branch_name, timeout=config.git_timeout
            )
        )
    except GitOperationError as e:
        _fail(str(e).strip())

    console.print(f"[green]✓ Removed worktree[/] {worktree_path}")
    if result.warning:
        console.print(f"[yellow]⚠ {result.warning.strip()}[/]")


@cli.command()
@click.pass_context
def doctor(ctx):
    """Check that git is installed and the project is a repository."""
    config = ctx.obj["config"]

    async def _check():
        available = await is_git_available(timeout=config.git_timeout)
        version = None
        if available:
            try:
                version = await get_git_version(timeout=config.git_timeout)
            except SubprocessError:
                pass
        is_repo = await is_git_repository(config.project_path, timeout=config.git_timeout)
        return available, version, is_repo

    available, version, is_repo = asyncio.run(_check())

    if available:
        console.print(f"[green]✓ git available[/] {version or ''}")
    else:
        console.print("[red]✗ git executable not found in PATH[/]")

    if is_repo:
        console.print(f"[green]✓ {config.project_path} is a git repository[/]")
    else:
        console.print(f"[red]✗ {config.project_path} is not a git repository[/]")

    if not (available and is_repo):
        sys.exit(1)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
