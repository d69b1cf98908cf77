"""Finding work that dropped out of branch history.

A commit stays in the HEAD reflog after a reset, rebase or branch deletion even
when no branch points at it any more. find_lost_commits walks the reflog and
reports the commits that no local branch contains, newest first.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from wtt.core.git.abc import Git, StashEntry
from wtt.core.snapshots import STASH_MESSAGE_PREFIX

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DAYS = 30
RESTORE_BRANCH_PREFIX = "restore-"


@dataclass(frozen=True)
class LostCommit:
    """A commit found in the reflog.

    reachable is True when some local branch still contains the commit.
    """

    commit: str
    authored_at: datetime
    author: str
    subject: str
    action: str
    reachable: bool

    @property
    def short_commit(self) -> str:
        return self.commit[:7]


def find_lost_commits(
    git: Git, repo_root: Path, *, since: datetime, include_reachable: bool = False
) -> list[LostCommit]:
    """Collect reflog commits authored at or after since.

    Each commit is reported once, described by its most recent reflog entry.
    Commits still on a local branch are left out unless include_reachable.
    """
    seen: set[str] = set()
    found: list[LostCommit] = []
    for entry in git.list_reflog(repo_root):
        if entry.commit in seen:
            continue
        seen.add(entry.commit)
        if entry.authored_at < since:
            continue

        reachable = bool(git.branches_containing(repo_root, entry.commit))
        if reachable and not include_reachable:
            continue

        found.append(
            LostCommit(
                commit=entry.commit,
                authored_at=entry.authored_at,
                author=entry.author,
                subject=entry.subject,
                action=entry.action,
                reachable=reachable,
            )
        )

    logger.debug("Scanned %d reflog commit(s), reporting %d", len(seen), len(found))
    return sorted(found, key=lambda c: c.authored_at, reverse=True)


def default_restore_branch(commit: str) -> str:
    return f"{RESTORE_BRANCH_PREFIX}{commit[:7]}"


def snapshot_id_for_stash(stash: StashEntry) -> str | None:
    """Return the id of the snapshot that recorded this stash, if any."""
    if stash.message.startswith(STASH_MESSAGE_PREFIX):
        return stash.message.removeprefix(STASH_MESSAGE_PREFIX)
    return None
