"""Fake git operations for testing.

FakeGit is an in-memory implementation that accepts pre-configured state
in its constructor. Construct instances directly with keyword arguments.
"""

from pathlib import Path

from wtt.core.git.abc import (
    CommitInfo,
    FileChange,
    Git,
    LineRange,
    MergeResult,
    ReflogEntry,
    ResetMode,
    StashEntry,
    StatusInfo,
    WorktreeInfo,
)


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults (empty dicts).

    Mutating operations update the in-memory state where later reads depend on
    it (checkout, worktree add/remove, merge) and are recorded for assertions
    through read-only properties.
    """

    def __init__(
        self,
        *,
        worktrees: dict[Path, list[WorktreeInfo]] | None = None,
        current_branches: dict[Path, str | None] | None = None,
        head_commits: dict[Path, str] | None = None,
        statuses: dict[Path, StatusInfo] | None = None,
        local_branches: dict[Path, set[str]] | None = None,
        unpushed: set[Path] | None = None,
        merge_results: dict[str, MergeResult] | None = None,
        merge_bases: dict[tuple[str, str], str] | None = None,
        name_status: dict[tuple[str, str], list[FileChange]] | None = None,
        line_ranges: dict[tuple[str, str, str], list[LineRange]] | None = None,
        binary_paths: dict[tuple[str, str], set[str]] | None = None,
        stash_commits: dict[Path, str] | None = None,
        merges_in_progress: set[Path] | None = None,
        existing_paths: set[Path] | None = None,
        commits: dict[str, CommitInfo] | None = None,
        reflog: list[ReflogEntry] | None = None,
        branches_containing: dict[str, list[str]] | None = None,
        cherry_pick_results: dict[str, MergeResult] | None = None,
        stashes: list[StashEntry] | None = None,
        push_raises: Exception | None = None,
        checkout_raises: Exception | None = None,
        delete_branch_raises: Exception | None = None,
        remove_worktree_raises: Exception | None = None,
        create_stash_raises: Exception | None = None,
        diff_raises: Exception | None = None,
    ) -> None:
        """Create FakeGit with pre-configured state.

        Args:
            worktrees: Mapping of repo root -> registered worktrees (main checkout first)
            current_branches: Mapping of checkout path -> branch (None when detached).
                Falls back to the branch of a registered worktree at that path.
            head_commits: Mapping of checkout path -> HEAD commit
            statuses: Mapping of checkout path -> StatusInfo (clean when absent)
            local_branches: Mapping of repo root -> local branch names
            unpushed: Checkout paths whose branch has unpushed commits
            merge_results: Mapping of merged branch -> MergeResult (success when absent)
            merge_bases: Mapping of (ref_a, ref_b) -> merge base, in either order
            name_status: Mapping of (base, tip) -> changed files
            line_ranges: Mapping of (base, tip, path) -> hunk ranges
            binary_paths: Mapping of (base, tip) -> binary paths
            stash_commits: Mapping of checkout path -> commit returned by create_stash
            merges_in_progress: Checkout paths with MERGE_HEAD present
            existing_paths: Paths that path_exists()/is_dir() report as existing.
                Registered worktree paths always exist.
            commits: Mapping of ref -> CommitInfo that get_commit_info() resolves
            reflog: HEAD reflog entries, newest first
            branches_containing: Mapping of commit -> local branches containing it
            cherry_pick_results: Mapping of commit -> MergeResult (success when absent)
            stashes: Stash entries, newest first
            push_raises: Exception to raise when push_branch() is called
            checkout_raises: Exception to raise when checkout_branch() is called
            delete_branch_raises: Exception to raise when delete_branch() is called
            remove_worktree_raises: Exception to raise when remove_worktree() is called
            create_stash_raises: Exception to raise when create_stash() is called
            diff_raises: Exception to raise from the diff_* queries
        """
        self._worktrees = {root: list(wts) for root, wts in (worktrees or {}).items()}
        self._current_branches = dict(current_branches or {})
        self._head_commits = dict(head_commits or {})
        self._statuses = dict(statuses or {})
        self._local_branches = {root: set(b) for root, b in (local_branches or {}).items()}
        self._unpushed = set(unpushed or set())
        self._merge_results = dict(merge_results or {})
        self._merge_bases = dict(merge_bases or {})
        self._name_status = dict(name_status or {})
        self._line_ranges = dict(line_ranges or {})
        self._binary_paths = dict(binary_paths or {})
        self._stash_commits = dict(stash_commits or {})
        self._merges_in_progress = set(merges_in_progress or set())
        self._existing_paths = set(existing_paths or set())
        self._commits = dict(commits or {})
        self._reflog = list(reflog or [])
        self._branches_containing = {c: list(b) for c, b in (branches_containing or {}).items()}
        self._cherry_pick_results = dict(cherry_pick_results or {})
        self._stashes = list(stashes or [])
        self._push_raises = push_raises
        self._checkout_raises = checkout_raises
        self._delete_branch_raises = delete_branch_raises
        self._remove_worktree_raises = remove_worktree_raises
        self._create_stash_raises = create_stash_raises
        self._diff_raises = diff_raises

        self._checked_out: list[tuple[Path, str]] = []
        self._merged: list[tuple[Path, str]] = []
        self._pushed: list[str] = []
        self._deleted_branches: list[str] = []
        self._added_worktrees: list[tuple[Path, str]] = []
        self._removed_worktrees: list[Path] = []
        self._resets: list[tuple[Path, str, ResetMode]] = []
        self._applied_stashes: list[tuple[Path, str]] = []
        self._created_stashes: list[tuple[Path, str]] = []
        self._aborted_merges: list[Path] = []
        self._created_branches: list[tuple[str, str]] = []
        self._cherry_picks: list[tuple[Path, str]] = []
        self._merge_base_queries = 0

    def _all_worktrees(self) -> list[WorktreeInfo]:
        return [wt for wts in self._worktrees.values() for wt in wts]

    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        return list(self._worktrees.get(repo_root, []))

    def get_current_branch(self, cwd: Path) -> str | None:
        if cwd in self._current_branches:
            return self._current_branches[cwd]
        for wt in self._all_worktrees():
            if wt.path == cwd:
                return wt.branch
        return None

    def get_head_commit(self, cwd: Path) -> str | None:
        if cwd in self._head_commits:
            return self._head_commits[cwd]
        for wt in self._all_worktrees():
            if wt.path == cwd:
                return wt.head_commit
        return None

    def get_status(self, cwd: Path) -> StatusInfo:
        return self._statuses.get(cwd, StatusInfo())

    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        if branch in self._local_branches.get(repo_root, set()):
            return True
        return any(wt.branch == branch for wt in self._worktrees.get(repo_root, []))

    def has_unpushed_commits(self, cwd: Path) -> bool:
        return cwd in self._unpushed

    def push_branch(self, cwd: Path, branch: str) -> None:
        if self._push_raises is not None:
            raise self._push_raises
        self._pushed.append(branch)
        self._unpushed.discard(cwd)

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        if self._checkout_raises is not None:
            raise self._checkout_raises
        self._checked_out.append((cwd, branch))
        self._current_branches[cwd] = branch

    def checkout_detached(self, cwd: Path, ref: str) -> None:
        self._checked_out.append((cwd, ref))
        self._current_branches[cwd] = None
        self._head_commits[cwd] = ref

    def merge_branch(self, cwd: Path, branch: str) -> MergeResult:
        self._merged.append((cwd, branch))
        result = self._merge_results.get(branch, MergeResult(success=True, conflicted=False))
        if result.conflicted:
            self._merges_in_progress.add(cwd)
            self._statuses[cwd] = StatusInfo(conflicted_paths=list(result.conflicted_paths))
        return result

    def abort_merge(self, cwd: Path) -> None:
        self._aborted_merges.append(cwd)
        self._merges_in_progress.discard(cwd)
        self._statuses.pop(cwd, None)

    def is_merge_in_progress(self, cwd: Path) -> bool:
        return cwd in self._merges_in_progress

    def delete_branch(self, cwd: Path, branch_name: str, *, force: bool) -> None:
        if self._delete_branch_raises is not None:
            raise self._delete_branch_raises
        self._deleted_branches.append(branch_name)
        for branches in self._local_branches.values():
            branches.discard(branch_name)

    def add_worktree(
        self,
        repo_root: Path,
        path: Path,
        *,
        branch: str,
        ref: str | None,
        create_branch: bool,
    ) -> None:
        self._worktrees.setdefault(repo_root, []).append(WorktreeInfo(path=path, branch=branch))
        self._existing_paths.add(path)
        if create_branch:
            self._local_branches.setdefault(repo_root, set()).add(branch)
        self._added_worktrees.append((path, branch))

    def remove_worktree(self, repo_root: Path, path: Path, *, force: bool) -> None:
        if self._remove_worktree_raises is not None:
            raise self._remove_worktree_raises
        self._worktrees[repo_root] = [
            wt for wt in self._worktrees.get(repo_root, []) if wt.path != path
        ]
        self._existing_paths.discard(path)
        self._removed_worktrees.append(path)

    def get_merge_base(self, repo_root: Path, ref_a: str, ref_b: str) -> str | None:
        self._merge_base_queries += 1
        if (ref_a, ref_b) in self._merge_bases:
            return self._merge_bases[(ref_a, ref_b)]
        return self._merge_bases.get((ref_b, ref_a))

    def diff_name_status(self, repo_root: Path, base: str, tip: str) -> list[FileChange]:
        if self._diff_raises is not None:
            raise self._diff_raises
        return list(self._name_status.get((base, tip), []))

    def diff_line_ranges(self, repo_root: Path, base: str, tip: str, path: str) -> list[LineRange]:
        if self._diff_raises is not None:
            raise self._diff_raises
        return list(self._line_ranges.get((base, tip, path), []))

    def diff_binary_paths(self, repo_root: Path, base: str, tip: str) -> set[str]:
        if self._diff_raises is not None:
            raise self._diff_raises
        return set(self._binary_paths.get((base, tip), set()))

    def create_stash(self, cwd: Path, message: str) -> str | None:
        if self._create_stash_raises is not None:
            raise self._create_stash_raises
        commit = self._stash_commits.get(cwd)
        if commit is not None:
            self._created_stashes.append((cwd, message))
        return commit

    def apply_stash(self, cwd: Path, stash_commit: str) -> None:
        self._applied_stashes.append((cwd, stash_commit))

    def reset(self, cwd: Path, commit: str, *, mode: ResetMode) -> None:
        self._resets.append((cwd, commit, mode))
        if mode == "hard":
            self._merges_in_progress.discard(cwd)
        if commit != "HEAD":
            self._head_commits[cwd] = commit

    def get_commit_info(self, repo_root: Path, ref: str) -> CommitInfo | None:
        return self._commits.get(ref)

    def list_reflog(self, repo_root: Path) -> list[ReflogEntry]:
        return list(self._reflog)

    def branches_containing(self, repo_root: Path, commit: str) -> list[str]:
        return list(self._branches_containing.get(commit, []))

    def create_branch(self, repo_root: Path, branch: str, start_point: str) -> None:
        self._local_branches.setdefault(repo_root, set()).add(branch)
        self._created_branches.append((branch, start_point))

    def cherry_pick(self, cwd: Path, commit: str) -> MergeResult:
        self._cherry_picks.append((cwd, commit))
        return self._cherry_pick_results.get(commit, MergeResult(success=True, conflicted=False))

    def list_stashes(self, repo_root: Path) -> list[StashEntry]:
        return list(self._stashes)

    def path_exists(self, path: Path) -> bool:
        if path in self._existing_paths:
            return True
        return any(wt.path == path for wt in self._all_worktrees())

    def is_dir(self, path: Path) -> bool:
        return self.path_exists(path)

    @property
    def checked_out_branches(self) -> list[tuple[Path, str]]:
        """Read-only access to (cwd, branch) checkouts for test assertions."""
        return self._checked_out

    @property
    def merged_branches(self) -> list[tuple[Path, str]]:
        """Read-only access to (cwd, branch) merges for test assertions."""
        return self._merged

    @property
    def pushed_branches(self) -> list[str]:
        return self._pushed

    @property
    def deleted_branches(self) -> list[str]:
        """Read-only access to deleted branches for test assertions."""
        return self._deleted_branches

    @property
    def added_worktrees(self) -> list[tuple[Path, str]]:
        return self._added_worktrees

    @property
    def removed_worktrees(self) -> list[Path]:
        """Read-only access to removed worktrees for test assertions."""
        return self._removed_worktrees

    @property
    def resets(self) -> list[tuple[Path, str, ResetMode]]:
        return self._resets

    @property
    def applied_stashes(self) -> list[tuple[Path, str]]:
        return self._applied_stashes

    @property
    def created_stashes(self) -> list[tuple[Path, str]]:
        return self._created_stashes

    @property
    def aborted_merges(self) -> list[Path]:
        return self._aborted_merges

    @property
    def created_branches(self) -> list[tuple[str, str]]:
        """Read-only access to (branch, start point) pairs for test assertions."""
        return self._created_branches

    @property
    def cherry_picks(self) -> list[tuple[Path, str]]:
        return self._cherry_picks

    @property
    def merge_base_queries(self) -> int:
        """Number of get_merge_base() calls, i.e. how often prediction started."""
        return self._merge_base_queries
