"""Worktree lookup by user-supplied name.

A name may be the directory name under the worktrees dir, the same name with
or without the legacy `wt-` prefix, or a branch name. Each strategy is a
standalone matcher; `locate` tries them in order and the first hit wins.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from wtt.core.errors import WorktreeNotFound
from wtt.core.git.abc import Git, WorktreeInfo
from wtt.core.repo_discovery import RepoContext
from wtt.core.topology import is_within, normalize_path, same_path

logger = logging.getLogger(__name__)

LEGACY_PREFIX = "wt-"

Matcher = Callable[[list[WorktreeInfo], str, RepoContext], WorktreeInfo | None]


def match_exact_path(
    worktrees: list[WorktreeInfo], name: str, repo: RepoContext
) -> WorktreeInfo | None:
    """Match the worktree registered at `<worktrees_dir>/<name>`."""
    expected = repo.worktrees_dir / name
    for wt in worktrees:
        if same_path(wt.path, expected):
            return wt
    return None


def match_basename(
    worktrees: list[WorktreeInfo], name: str, repo: RepoContext
) -> WorktreeInfo | None:
    """Match a worktree whose last path segment equals name."""
    key = normalize_path(Path(name))
    for wt in worktrees:
        if normalize_path(Path(wt.path.name)) == key:
            return wt
    return None


def legacy_name_variant(name: str) -> str:
    """Toggle the legacy `wt-` prefix on a name."""
    if name.startswith(LEGACY_PREFIX):
        return name[len(LEGACY_PREFIX) :]
    return LEGACY_PREFIX + name


def match_legacy_prefix(
    worktrees: list[WorktreeInfo], name: str, repo: RepoContext
) -> WorktreeInfo | None:
    """Match `wt-<name>` for a bare name, or the bare name for `wt-<name>`."""
    variant = legacy_name_variant(name)
    if not variant:
        return None
    return match_exact_path(worktrees, variant, repo) or match_basename(worktrees, variant, repo)


def match_branch(
    worktrees: list[WorktreeInfo], name: str, repo: RepoContext
) -> WorktreeInfo | None:
    """Match a worktree that has branch `name` checked out."""
    for wt in worktrees:
        if wt.branch == name:
            return wt
    return None


MATCHERS: tuple[Matcher, ...] = (
    match_exact_path,
    match_basename,
    match_legacy_prefix,
    match_branch,
)


def synthesize_from_cwd(git: Git, repo: RepoContext, name: str, cwd: Path) -> WorktreeInfo | None:
    """Build a record for an existing but unregistered worktree directory containing cwd.

    Covers the case where git's worktree registry lags behind the filesystem,
    e.g. metadata pruned while the directory is still in use.
    """
    candidate = repo.worktrees_dir / name
    if not git.is_dir(candidate):
        return None
    if not is_within(cwd, candidate):
        return None

    logger.debug("Synthesizing worktree record for unregistered directory %s", candidate)
    return WorktreeInfo(
        path=candidate,
        branch=git.get_current_branch(candidate),
        head_commit=git.get_head_commit(candidate),
    )


def managed_worktrees(git: Git, repo: RepoContext) -> list[WorktreeInfo]:
    """List registered worktrees excluding the main checkout."""
    return [wt for wt in git.list_worktrees(repo.root) if not same_path(wt.path, repo.root)]


def locate(git: Git, repo: RepoContext, name: str, *, cwd: Path) -> WorktreeInfo:
    """Find the worktree a user means by name.

    Args:
        git: Git operations interface
        repo: Repository the worktree belongs to
        name: Directory name, legacy-prefixed name or branch name
        cwd: Invocation directory, used for the unregistered-directory fallback

    Returns:
        The matching worktree record

    Raises:
        WorktreeNotFound: If no strategy matches
    """
    worktrees = managed_worktrees(git, repo)

    for matcher in MATCHERS:
        found = matcher(worktrees, name, repo)
        if found is not None:
            logger.debug("Located worktree %r via %s: %s", name, matcher.__name__, found.path)
            return found

    found = synthesize_from_cwd(git, repo, name, cwd)
    if found is not None:
        return found

    raise WorktreeNotFound(name)


def detect_current_worktree(repo: RepoContext, cwd: Path) -> str | None:
    """Return the worktree name when cwd is inside the managed worktrees directory.

    The name is the first path component below the worktrees directory.
    """
    if not is_within(cwd, repo.worktrees_dir):
        return None

    relative = Path(normalize_path(cwd.resolve())).relative_to(
        Path(normalize_path(repo.worktrees_dir.resolve()))
    )
    if not relative.parts:
        return None

    name = relative.parts[0]
    if name in (".", "..") or name.startswith("."):
        return None
    return name
