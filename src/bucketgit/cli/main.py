"""Main CLI entry point."""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..core.repository import Repository
from ..storage.state import find_root
from ..utils.logger import Logger
from ..utils.config import Config, StorageConfig
from ..utils.errors import BucketGitError
from .commands import (
    Command, dispatch, InitCommand, AddCommand, CommitCommand, PushCommand,
    PullCommand, RevertCommand, LogCommand, StatusCommand,
)

console = Console()


def _open_repository(ctx, for_init: bool = False) -> Repository:
    start = Path(ctx.obj['repo'])
    root = start
    if not for_init:
        root = find_root(start, ctx.obj['repo_dir']) or start
    return Repository(root, ctx.obj['config'])


def run(ctx, command: Command):
    """Execute a command record, turning library errors into exit codes."""
    try:
        repo = _open_repository(ctx, for_init=isinstance(command, InitCommand))
        return dispatch(repo, command)
    except BucketGitError as e:
        Logger.error(str(e))
        sys.exit(e.exit_code)


@click.group()
@click.option('--repo', '-r', default='.', help='Path inside the working copy')
@click.option('--config', '-c', help='Path to config file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also write debug logs to this file')
@click.version_option(__version__)
@click.pass_context
def cli(ctx, repo, config, verbose, debug, log_file):
    """bucketgit - git-like version control synced to an object store.

    Stage files, commit snapshots, and push or pull history to a bucket.
    """
    ctx.ensure_object(dict)

    Logger.configure(debug=debug or verbose, log_file=Path(log_file) if log_file else None)

    config_obj = None
    try:
        if config:
            config_path = Path(config)
            if not config_path.exists():
                Logger.error(f"Config file not found: {config}")
                sys.exit(1)
            config_obj = Config.load(config_path)
            config_obj.verbose = verbose
            config_obj.debug = debug
    except BucketGitError as e:
        Logger.error(str(e))
        sys.exit(e.exit_code)

    ctx.obj['repo'] = repo
    ctx.obj['config'] = config_obj
    ctx.obj['repo_dir'] = (
        config_obj.storage.repo_dir if config_obj else StorageConfig.from_env().repo_dir
    )


@cli.command()
@click.pass_context
def init(ctx):
    """Initialise a new repository."""
    run(ctx, InitCommand())


@cli.command()
@click.argument('file')
@click.pass_context
def add(ctx, file):
    """Add a file to the staging index."""
    run(ctx, AddCommand(file=file))


@cli.command()
@click.argument('message')
@click.pass_context
def commit(ctx, message):
    """Commit staged files."""
    run(ctx, CommitCommand(message=message))


@cli.command()
@click.option('--force', '-f', is_flag=True, help='Overwrite a remote HEAD missing from local history')
@click.pass_context
def push(ctx, force):
    """Push commits to the remote."""
    run(ctx, PushCommand(force=force))


@cli.command()
@click.pass_context
def pull(ctx):
    """Pull commits from the remote."""
    run(ctx, PullCommand())


@cli.command()
@click.argument('commit_id', metavar='COMMITID')
@click.pass_context
def revert(ctx, commit_id):
    """Restore the working copy to a commit."""
    run(ctx, RevertCommand(commit_id=commit_id))


@cli.command()
@click.option('--limit', '-n', default=10, help='Number of commits to show')
@click.option('--format', '-f', 'fmt', type=click.Choice(['pretty', 'json', 'oneline']), default='pretty')
@click.pass_context
def log(ctx, limit, fmt):
    """Show commit history."""
    commits = run(ctx, LogCommand(limit=limit))

    if not commits:
        console.print("No commits yet")
        return

    if fmt == 'json':
        click.echo(json.dumps([c.to_dict() for c in commits], indent=2))
    elif fmt == 'oneline':
        for c in commits:
            time_str = c.timestamp.strftime("%Y-%m-%d %H:%M")
            console.print(f"[cyan]{c.short_id()}[/cyan] {time_str} - {c.message}")
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Commit", style="cyan")
        table.add_column("Date")
        table.add_column("Message")
        table.add_column("Files")

        for c in commits:
            table.add_row(
                c.short_id(),
                c.timestamp.strftime("%Y-%m-%d %H:%M"),
                c.message,
                str(len(c.snapshot))
            )

        console.print(table)


@cli.command()
@click.pass_context
def status(ctx):
    """Show current status."""
    info = run(ctx, StatusCommand())

    if info.head:
        console.print(f"\n[bold]HEAD:[/bold] [cyan]{info.head[:8]}[/cyan] - {info.head_message}")
        console.print(f"Commits: {info.commits}")
    else:
        console.print("\n[bold]HEAD:[/bold] no commits yet")

    if info.staged:
        console.print("\n[bold]Staged:[/bold]")
        for path in sorted(info.staged):
            console.print(f"  [green]{path}[/green]")

    if info.modified:
        console.print("\n[bold]Modified:[/bold]")
        for path in info.modified:
            console.print(f"  [yellow]{path}[/yellow]")

    if info.missing:
        console.print("\n[bold]Missing:[/bold]")
        for path in info.missing:
            console.print(f"  [red]{path}[/red]")

    if not (info.staged or info.modified or info.missing):
        console.print("Working copy clean")


def main():
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception as e:
        Logger.error(f"Unexpected error: {e}")
        if Logger._debug_mode:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
