"""Test configuration and fixtures."""

import time
from pathlib import Path
from typing import Generator

import pytest
from git import Actor, Repo

DAY = 24 * 60 * 60


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    Branches in the local repository, relative to master:
    - feature-x: 10 ahead, 2 behind, pushed and tracking origin/feature-x
    - trash/old: 30 days old, no upstream
    - stale-feature: 20 days old, no upstream
    - feature/gone: tracking a remote branch that was deleted
    - local-only: recent, no upstream

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    Repo.init(remote_path, bare=True)
    local_repo = Repo.init(local_path)
    # Independent of the init.defaultBranch setting
    local_repo.git.symbolic_ref("HEAD", "refs/heads/master")

    author = Actor("Test User", "test@example.com")
    local_repo.config_writer().set_value("user", "name", author.name).release()
    local_repo.config_writer().set_value("user", "email", author.email).release()

    counter = 0

    def commit(days_ago: int = 0) -> None:
        """Commit a new file, dated days_ago days back."""
        nonlocal counter
        counter += 1
        name = f"file{counter}.txt"
        (local_path / name).write_text(f"content {counter}")
        local_repo.index.add([name])
        date = f"{int(time.time()) - days_ago * DAY} +0000"
        local_repo.index.commit(f"Commit {counter}", author=author, committer=author, author_date=date, commit_date=date)

    def create_branch(name: str) -> None:
        """Create a branch off master and check it out."""
        local_repo.create_head(name, "master").checkout()

    commit()
    master = local_repo.heads.master
    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("master")
    master.set_tracking_branch(origin.refs.master)

    create_branch("feature-x")
    for _ in range(10):
        commit()
    origin.push("feature-x")
    local_repo.heads["feature-x"].set_tracking_branch(origin.refs["feature-x"])

    master.checkout()
    commit()
    commit()
    origin.push("master")

    create_branch("trash/old")
    commit(days_ago=30)

    create_branch("stale-feature")
    commit(days_ago=20)

    create_branch("feature/gone")
    commit()
    origin.push("feature/gone")
    local_repo.heads["feature/gone"].set_tracking_branch(origin.refs["feature/gone"])
    origin.push(":feature/gone")  # Delete in remote

    create_branch("local-only")
    commit()

    master.checkout()

    yield local_path, remote_path
