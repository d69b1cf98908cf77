"""Tests for worktree lookup by name."""

from pathlib import Path

import pytest

from tests.test_utils.paths import make_repo_context, sentinel_path
from wtt.core.errors import WorktreeNotFound
from wtt.core.git.abc import WorktreeInfo
from wtt.core.git.fake import FakeGit
from wtt.core.locator import (
    detect_current_worktree,
    legacy_name_variant,
    locate,
    managed_worktrees,
)

REPO = make_repo_context(sentinel_path())
ROOT_WT = WorktreeInfo(path=REPO.root, branch="main", is_root=True)


def _git(*worktrees: WorktreeInfo) -> FakeGit:
    return FakeGit(worktrees={REPO.root: [ROOT_WT, *worktrees]})


def test_locate_by_directory_name() -> None:
    wt = WorktreeInfo(path=REPO.worktrees_dir / "feature-x", branch="feature/x")

    assert locate(_git(wt), REPO, "feature-x", cwd=REPO.root) == wt


def test_locate_by_basename_outside_worktrees_dir() -> None:
    wt = WorktreeInfo(path=Path("/elsewhere/feature-x"), branch="feature/x")

    assert locate(_git(wt), REPO, "feature-x", cwd=REPO.root) == wt


def test_locate_bare_name_finds_legacy_prefixed_directory() -> None:
    wt = WorktreeInfo(path=REPO.worktrees_dir / "wt-feature", branch="feature")

    assert locate(_git(wt), REPO, "feature", cwd=REPO.root) == wt


def test_locate_prefixed_name_finds_bare_directory() -> None:
    wt = WorktreeInfo(path=REPO.worktrees_dir / "feature", branch="topic")

    assert locate(_git(wt), REPO, "wt-feature", cwd=REPO.root) == wt


def test_locate_is_stable_across_calls() -> None:
    legacy = WorktreeInfo(path=REPO.worktrees_dir / "wt-feature", branch="feature")
    other = WorktreeInfo(path=REPO.worktrees_dir / "other", branch="other")
    git = _git(legacy, other)

    first = locate(git, REPO, "feature", cwd=REPO.root)
    second = locate(git, REPO, "feature", cwd=REPO.root)

    assert first == second == legacy
    assert git.list_worktrees(REPO.root) == [ROOT_WT, legacy, other]


def test_locate_by_branch_name() -> None:
    wt = WorktreeInfo(path=REPO.worktrees_dir / "login", branch="feature/login")

    assert locate(_git(wt), REPO, "feature/login", cwd=REPO.root) == wt


def test_exact_directory_wins_over_branch_match() -> None:
    by_branch = WorktreeInfo(path=REPO.worktrees_dir / "other", branch="target")
    by_dir = WorktreeInfo(path=REPO.worktrees_dir / "target", branch="something-else")

    assert locate(_git(by_branch, by_dir), REPO, "target", cwd=REPO.root) == by_dir


def test_main_checkout_is_never_located() -> None:
    with pytest.raises(WorktreeNotFound):
        locate(_git(), REPO, "main", cwd=REPO.root)


def test_unregistered_directory_containing_cwd_is_synthesized() -> None:
    path = REPO.worktrees_dir / "orphan"
    git = FakeGit(
        worktrees={REPO.root: [ROOT_WT]},
        existing_paths={path},
        current_branches={path: "orphan-branch"},
        head_commits={path: "abc123"},
    )

    found = locate(git, REPO, "orphan", cwd=path / "src")

    assert found.path == path
    assert found.branch == "orphan-branch"
    assert found.head_commit == "abc123"


def test_unregistered_directory_not_containing_cwd_is_not_found() -> None:
    path = REPO.worktrees_dir / "orphan"
    git = FakeGit(worktrees={REPO.root: [ROOT_WT]}, existing_paths={path})

    with pytest.raises(WorktreeNotFound, match="orphan"):
        locate(git, REPO, "orphan", cwd=REPO.root)


def test_managed_worktrees_excludes_root() -> None:
    wt = WorktreeInfo(path=REPO.worktrees_dir / "a", branch="a")

    assert managed_worktrees(_git(wt), REPO) == [wt]


def test_legacy_name_variant_toggles_prefix() -> None:
    assert legacy_name_variant("feature") == "wt-feature"
    assert legacy_name_variant("wt-feature") == "feature"


def test_detect_current_worktree() -> None:
    assert detect_current_worktree(REPO, REPO.worktrees_dir / "feature" / "src") == "feature"
    assert detect_current_worktree(REPO, REPO.worktrees_dir / "feature") == "feature"


def test_detect_current_worktree_outside_worktrees_dir() -> None:
    assert detect_current_worktree(REPO, REPO.root) is None
    assert detect_current_worktree(REPO, REPO.worktrees_dir) is None
    assert detect_current_worktree(REPO, REPO.worktrees_dir / ".backups" / "x") is None
