"""Git repository operations."""

from pathlib import Path
from typing import Sequence

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo


class GitError(Exception):
    """Git operation error."""


def find_repo_root(start: Path) -> Path:
    """Find the repository root for a directory.

    Walks from ``start`` up through its parents and returns the first one
    that holds a ``.git`` directory.

    Raises:
        GitError: If no directory up to the filesystem root holds one
    """
    start = start.resolve()
    for directory in [start, *start.parents]:
        if (directory / ".git").is_dir():
            return directory
    raise GitError(f"Directory {start} is not a git repository")


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path)
            if self.repo.bare:
                raise GitError("Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Failed to open repository: {err}") from err

    @property
    def path(self) -> Path:
        """Working tree root."""
        return Path(self.repo.working_tree_dir)

    def update_remotes(self) -> None:
        """Update remote-tracking branches and prune the deleted ones."""
        try:
            self.repo.git.remote("update", "--prune")
        except GitCommandError as err:
            raise GitError(f"git remote update failed: {err}") from err

    def get_current_branch_name(self) -> str:
        """Get current branch name."""
        try:
            try:
                return self.repo.active_branch.name
            except TypeError:
                # Detached HEAD, no branch is current
                return ""
        except (GitCommandError, ValueError) as err:
            raise GitError(f"Failed to get current branch: {err}") from err

    def list_branches(self, fields: Sequence[str], sort: str = "-committerdate") -> list[str]:
        """List local branches, one tab-separated line per branch.

        Args:
            fields: for-each-ref field names, e.g. ``refname:short``
            sort: for-each-ref sort key; most recently committed first by default

        Returns:
            The output lines, in listing order
        """
        fmt = "\t".join(f"%({field})" for field in fields)
        try:
            output = self.repo.git.for_each_ref(f"--sort={sort}", f"--format={fmt}", "refs/heads")
        except GitCommandError as err:
            raise GitError(f"Failed to list branches: {err}") from err
        return [line for line in output.splitlines() if line]

    def count_behind_ahead(self, reference: str, branch: str) -> tuple[int, int]:
        """Count commits of ``reference`` missing from ``branch`` and the reverse.

        Returns:
            A tuple of (behind, ahead)

        Raises:
            GitError: If either ref does not resolve
        """
        try:
            output = self.repo.git.rev_list("--count", "--left-right", f"{reference}...{branch}")
        except GitCommandError as err:
            raise GitError(f"Failed to compare {branch} with {reference}: {err}") from err
        try:
            behind, ahead = output.strip().split("\t")
            return int(behind), int(ahead)
        except ValueError as err:
            raise GitError(f"Unexpected rev-list output {output!r}") from err
