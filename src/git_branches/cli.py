"""Command line interface for git-branches."""

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown

from git_branches import __version__
from git_branches.branches import RenderPolicy, build_table, render_report
from git_branches.git import GitError, GitRepo, find_repo_root

app = typer.Typer(help="Show how far branches have diverged from the base branch and from their upstreams")
log = logging.getLogger("git_branches")


def setup_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    handler = RichHandler(console=Console(stderr=True), show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    log.handlers = [handler]
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    log.propagate = False


def get_repo(path: Path) -> GitRepo:
    """Get the git repository holding path."""
    try:
        return GitRepo(find_repo_root(path))
    except GitError as err:
        log.error("%s", err)
        raise typer.Exit(code=1) from err


def print_markdown(text: str, terminal: bool, console: Optional[Console] = None) -> None:
    """Print Markdown, styled only when writing to a terminal.

    Args:
        text: Markdown document
        terminal: Whether stdout is an interactive terminal
        console: Console to render to when styling, a new one by default
    """
    if terminal:
        (console or Console()).print(Markdown(text))
    else:
        sys.stdout.write(text)


def version_callback(value: bool) -> None:
    """Print the version and exit."""
    if value:
        print(f"git-branches {__version__}")
        raise typer.Exit()


@app.command()
def main(
    base: Annotated[
        str, typer.Option("--base", "-b", envvar="GIT_BRANCHES_BASE", help="Base branch to compare local branches against")
    ] = "master",
    show_all: Annotated[bool, typer.Option("--all", "-a", help="Show stale and trashed branches too")] = False,
    path: Annotated[Path, typer.Option(help="Directory inside the git repository")] = Path("."),
    no_update: Annotated[bool, typer.Option("--no-update", help="Skip 'git remote update --prune'")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug messages")] = False,
    version: Annotated[
        Optional[bool], typer.Option("--version", callback=version_callback, is_eager=True, help="Show the version and exit")
    ] = None,
) -> None:
    """Print behind/ahead counts of local branches against the base branch and their upstreams."""
    setup_logging(verbose)
    repo = get_repo(path)
    log.debug("Using repository at %s", repo.path)

    if not no_update:
        try:
            repo.update_remotes()
        except GitError as err:
            log.warning("%s", err)

    policy = RenderPolicy(base=base, show_all=show_all)
    try:
        current = repo.get_current_branch_name()
        local = build_table(repo, policy, current)
        remote = build_table(repo, policy, current, remote=True)
    except GitError as err:
        log.error("%s", err)
        raise typer.Exit(code=1) from err

    print_markdown(render_report(local, remote), terminal=sys.stdout.isatty())


if __name__ == "__main__":
    app()
