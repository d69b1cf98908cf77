"""High-level git operations interface.

This module provides a clean abstraction over git subprocess calls, making the
merge pipeline testable without a real repository.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess (wtt.core.git.real)
- FakeGit: In-memory implementation for tests (wtt.core.git.fake)

Every method takes an explicit repository root or worktree path. Nothing relies
on the process's current directory.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal


@dataclass(frozen=True)
class WorktreeInfo:
    """Information about a single git worktree.

    branch is None when the worktree's HEAD is detached.
    """

    path: Path
    branch: str | None
    head_commit: str | None = None
    is_root: bool = False


@dataclass(frozen=True)
class StatusInfo:
    """Parsed `git status --porcelain` output for one checkout."""

    changed_paths: list[str] = field(default_factory=list)
    untracked_paths: list[str] = field(default_factory=list)
    conflicted_paths: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.changed_paths and not self.untracked_paths and not self.conflicted_paths

    @property
    def all_paths(self) -> list[str]:
        return [*self.conflicted_paths, *self.changed_paths, *self.untracked_paths]


@dataclass(frozen=True)
class FileChange:
    """One entry of `git diff --name-status`.

    status is the single-letter change type (A, M, D, R, C, T).
    """

    path: str
    status: str


@dataclass(frozen=True)
class LineRange:
    """Inclusive line range in merge-base coordinates."""

    start: int
    end: int

    def touches(self, other: "LineRange") -> bool:
        """True when the ranges intersect or are directly adjacent."""
        return self.start <= other.end + 1 and other.start <= self.end + 1


@dataclass(frozen=True)
class MergeResult:
    """Structured outcome of `git merge`.

    conflicted is True only for content conflicts git left in the working tree;
    any other failure has success=False and conflicted=False.
    """

    success: bool
    conflicted: bool
    conflicted_paths: list[str] = field(default_factory=list)
    output: str = ""


@dataclass(frozen=True)
class CommitInfo:
    """Identity and headline of a single commit."""

    commit: str
    authored_at: datetime
    author: str
    subject: str


@dataclass(frozen=True)
class ReflogEntry:
    """One entry of the HEAD reflog.

    selector is git's name for the entry (HEAD@{3}); action is the reflog
    subject, e.g. "commit: add parser" or "reset: moving to HEAD~1".
    """

    commit: str
    selector: str
    action: str
    authored_at: datetime
    author: str
    subject: str


@dataclass(frozen=True)
class StashEntry:
    """One entry of `git stash list`."""

    commit: str
    ref: str
    created_at: datetime
    message: str


ResetMode = Literal["hard", "soft", "mixed"]


# ============================================================================
# Abstract Interface
# ============================================================================


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        """List all worktrees in the repository. The main checkout comes first."""
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch, or None when detached."""
        ...

    @abstractmethod
    def get_head_commit(self, cwd: Path) -> str | None:
        """Get the commit SHA of HEAD, or None for an unborn branch."""
        ...

    @abstractmethod
    def get_status(self, cwd: Path) -> StatusInfo:
        """Get changed, untracked and conflicted paths of a checkout."""
        ...

    @abstractmethod
    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        """Check whether a local branch exists."""
        ...

    @abstractmethod
    def has_unpushed_commits(self, cwd: Path) -> bool:
        """Check for commits not on the upstream branch.

        Returns False when the branch has no upstream configured.
        """
        ...

    @abstractmethod
    def push_branch(self, cwd: Path, branch: str) -> None:
        """Push a branch to its upstream."""
        ...

    @abstractmethod
    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Checkout a branch in the given directory."""
        ...

    @abstractmethod
    def checkout_detached(self, cwd: Path, ref: str) -> None:
        """Checkout a detached HEAD at the given ref."""
        ...

    @abstractmethod
    def merge_branch(self, cwd: Path, branch: str) -> MergeResult:
        """Merge a branch into the branch checked out in cwd.

        Conflicts are reported through the returned MergeResult, never raised.
        """
        ...

    @abstractmethod
    def abort_merge(self, cwd: Path) -> None:
        """Abort the merge in progress in cwd."""
        ...

    @abstractmethod
    def is_merge_in_progress(self, cwd: Path) -> bool:
        """Check whether MERGE_HEAD exists for the checkout in cwd."""
        ...

    @abstractmethod
    def delete_branch(self, cwd: Path, branch_name: str, *, force: bool) -> None:
        """Delete a local branch.

        Args:
            cwd: Working directory to run command in
            branch_name: Name of the branch to delete
            force: Use -D (force delete) instead of -d
        """
        ...

    @abstractmethod
    def add_worktree(
        self,
        repo_root: Path,
        path: Path,
        *,
        branch: str,
        ref: str | None,
        create_branch: bool,
    ) -> None:
        """Add a new git worktree.

        Args:
            repo_root: Path to the git repository root
            path: Path where the worktree should be created
            branch: Branch to check out in the worktree
            ref: Start point when creating the branch (defaults to HEAD)
            create_branch: True to create new branch, False to checkout existing
        """
        ...

    @abstractmethod
    def remove_worktree(self, repo_root: Path, path: Path, *, force: bool) -> None:
        """Remove a worktree and prune its metadata."""
        ...

    @abstractmethod
    def get_merge_base(self, repo_root: Path, ref_a: str, ref_b: str) -> str | None:
        """Get the best common ancestor of two refs, or None if unrelated."""
        ...

    @abstractmethod
    def diff_name_status(self, repo_root: Path, base: str, tip: str) -> list[FileChange]:
        """List files changed between two commits."""
        ...

    @abstractmethod
    def diff_line_ranges(self, repo_root: Path, base: str, tip: str, path: str) -> list[LineRange]:
        """Get the base-side line ranges touched by each hunk of a file's diff."""
        ...

    @abstractmethod
    def diff_binary_paths(self, repo_root: Path, base: str, tip: str) -> set[str]:
        """Get the paths whose diff between two commits is binary."""
        ...

    @abstractmethod
    def create_stash(self, cwd: Path, message: str) -> str | None:
        """Record uncommitted changes as a stash commit without touching the tree.

        The commit is also stored in the stash reflog so it stays reachable.

        Returns:
            The stash commit SHA, or None when there is nothing to stash.
        """
        ...

    @abstractmethod
    def apply_stash(self, cwd: Path, stash_commit: str) -> None:
        """Apply a stash commit to the working tree, restoring the index too."""
        ...

    @abstractmethod
    def reset(self, cwd: Path, commit: str, *, mode: ResetMode) -> None:
        """Move the current branch to commit."""
        ...

    @abstractmethod
    def get_commit_info(self, repo_root: Path, ref: str) -> CommitInfo | None:
        """Resolve ref to a commit, or None when it names no commit."""
        ...

    @abstractmethod
    def list_reflog(self, repo_root: Path) -> list[ReflogEntry]:
        """List the HEAD reflog of the main checkout, newest first."""
        ...

    @abstractmethod
    def branches_containing(self, repo_root: Path, commit: str) -> list[str]:
        """List local branches whose history includes commit."""
        ...

    @abstractmethod
    def create_branch(self, repo_root: Path, branch: str, start_point: str) -> None:
        """Create a local branch at start_point without checking it out."""
        ...

    @abstractmethod
    def cherry_pick(self, cwd: Path, commit: str) -> MergeResult:
        """Apply commit on top of the branch checked out in cwd.

        Conflicts are reported through the returned MergeResult, never raised.
        """
        ...

    @abstractmethod
    def list_stashes(self, repo_root: Path) -> list[StashEntry]:
        """List stash entries, newest first."""
        ...

    @abstractmethod
    def path_exists(self, path: Path) -> bool:
        """Check if a path exists on the filesystem.

        In production (RealGit), this delegates to Path.exists(). In tests
        (FakeGit), this checks an in-memory set of existing paths.
        """
        ...

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory."""
        ...
