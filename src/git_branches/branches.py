"""Branch parsing, filtering and Markdown tables."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from git_branches.git import GitError, GitRepo

log = logging.getLogger(__name__)

STALE_AFTER = timedelta(weeks=2)
TRASH_PREFIX = "trash/"

LOCAL_FIELDS = ("refname:short", "committerdate:iso8601-strict")
REMOTE_FIELDS = ("refname:short", "upstream:short", "committerdate:iso8601-strict")

LOCAL_HEADER = "Branch | Behind | Ahead\n-------|-------:|:-----"
REMOTE_HEADER = "Branch | Remote | Behind | Ahead\n-------|--------|-------:|:-----"


class MalformedLineError(ValueError):
    """A for-each-ref line that cannot be turned into a branch."""


@dataclass(frozen=True)
class Branch:
    """A local branch as listed by for-each-ref."""

    name: str
    committed_at: datetime
    upstream: Optional[str] = None


@dataclass(frozen=True)
class Comparison:
    """Behind/ahead counts of a branch against a reference.

    Counts are None when the reference is missing or could not be compared.
    """

    branch: Branch
    reference: Optional[str]
    behind: Optional[int] = None
    ahead: Optional[int] = None

    @property
    def resolved(self) -> bool:
        """Whether both counts are known."""
        return self.behind is not None and self.ahead is not None


@dataclass(frozen=True)
class RenderPolicy:
    """Settings shared by every stage of one run."""

    base: str = "master"
    show_all: bool = False
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class BranchTable:
    """A rendered Markdown table and the number of branches left out of it."""

    markdown: str
    hidden: int = 0


def parse_committer_date(text: str) -> datetime:
    """Parse an ``iso8601-strict`` committer date."""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    date = datetime.fromisoformat(text)
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date


def parse_branch_line(line: str, remote: bool = False) -> Branch:
    """Parse one line listed with LOCAL_FIELDS or REMOTE_FIELDS.

    Raises:
        MalformedLineError: With the inline error text to show instead of the row
    """
    fields = line.rstrip("\n").split("\t")
    expected = len(REMOTE_FIELDS) if remote else len(LOCAL_FIELDS)
    if len(fields) < expected:
        raise MalformedLineError(f"error: expected {expected} tab-separated fields, got {len(fields)}")

    name = fields[0]
    upstream = (fields[1] or None) if remote else None
    try:
        committed_at = parse_committer_date(fields[expected - 1])
    except ValueError as err:
        raise MalformedLineError(f"error: invalid committer date for {name}: {fields[expected - 1]!r}") from err
    return Branch(name=name, committed_at=committed_at, upstream=upstream)


def is_stale(branch: Branch, now: datetime) -> bool:
    """Whether the last commit is at least STALE_AFTER old."""
    return now - branch.committed_at >= STALE_AFTER


def is_trashed(branch: Branch) -> bool:
    """Whether the branch name marks it for deletion."""
    return branch.name.startswith(TRASH_PREFIX)


def is_hidden(branch: Branch, policy: RenderPolicy, current: str) -> bool:
    """Whether a branch is left out of the tables.

    The current and base branches are always shown, and so is everything
    else when the policy asks for all branches.
    """
    if policy.show_all or branch.name in (current, policy.base):
        return False
    return is_trashed(branch) or is_stale(branch, policy.now)


def compare(repo: GitRepo, branch: Branch, reference: Optional[str]) -> Comparison:
    """Compare a branch with a reference, or with nothing when it is None."""
    if not reference:
        return Comparison(branch=branch, reference=None)
    try:
        behind, ahead = repo.count_behind_ahead(reference, branch.name)
    except GitError as err:
        # Usually the reference (e.g. a pruned upstream) is gone
        log.debug("%s", err)
        return Comparison(branch=branch, reference=reference)
    return Comparison(branch=branch, reference=reference, behind=behind, ahead=ahead)


def display_name(name: str, current: str) -> str:
    """Emphasise the checked-out branch."""
    return f"**{name}**" if name == current else name


def format_local_row(comparison: Comparison, current: str) -> str:
    """Format a row of the base branch table, with ? for unknown counts."""
    name = display_name(comparison.branch.name, current)
    if not comparison.resolved:
        return f"{name} | ? | ?"
    return f"{name} | {comparison.behind} | {comparison.ahead}"


def format_remote_row(comparison: Comparison, current: str) -> str:
    """Format a row of the upstream table.

    Branches without an upstream get blank cells; an upstream that could not
    be compared is struck through.
    """
    name = display_name(comparison.branch.name, current)
    if comparison.reference is None:
        return f"{name} | | |"
    if not comparison.resolved:
        return f"{name} | ~~{comparison.reference}~~ | |"
    return f"{name} | {comparison.reference} | {comparison.behind} | {comparison.ahead}"


def build_table(repo: GitRepo, policy: RenderPolicy, current: str, remote: bool = False) -> BranchTable:
    """Build the table of local branches against the base or against their upstreams.

    Args:
        repo: Repository to list and compare branches in
        policy: Base branch, show-all flag and reference time
        current: Checked-out branch name, empty when detached
        remote: Compare against upstreams instead of the base branch

    Returns:
        The table and how many branches were hidden

    Raises:
        GitError: If the branches cannot be listed
    """
    lines = repo.list_branches(REMOTE_FIELDS if remote else LOCAL_FIELDS)
    rows = [REMOTE_HEADER if remote else LOCAL_HEADER]
    hidden = 0
    for line in lines:
        try:
            branch = parse_branch_line(line, remote=remote)
        except MalformedLineError as err:
            log.debug("Malformed branch line %r", line)
            rows.append(str(err))
            continue

        if is_hidden(branch, policy, current):
            hidden += 1
            continue

        if remote:
            rows.append(format_remote_row(compare(repo, branch, branch.upstream), current))
        else:
            rows.append(format_local_row(compare(repo, branch, policy.base), current))

    return BranchTable(markdown="\n".join(rows) + "\n", hidden=hidden)


def stale_summary(local_hidden: int, remote_hidden: int) -> str:
    """Describe how many branches were hidden, empty when none were."""
    if not local_hidden and not remote_hidden:
        return ""
    if local_hidden == remote_hidden:
        return f"({local_hidden} stale branches not shown.)"
    return f"({local_hidden} stale local branches and {remote_hidden} stale remote branches not shown.)"


def render_report(local: BranchTable, remote: BranchTable) -> str:
    """Join both tables and the stale summary into one Markdown document."""
    report = f"{local.markdown}\n{remote.markdown}"
    summary = stale_summary(local.hidden, remote.hidden)
    if summary:
        report += f"\n{summary}\n"
    return report
