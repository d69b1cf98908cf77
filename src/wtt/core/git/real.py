"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess. Commands are always run with an explicit cwd.
"""

import logging
import subprocess
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
from wtt.core.git.parsing import (
    COMMIT_INFO_FORMAT,
    REFLOG_FORMAT,
    STASH_FORMAT,
    classify_merge_output,
    parse_commit_info,
    parse_hunk_ranges,
    parse_name_status,
    parse_numstat_binary_paths,
    parse_porcelain_status,
    parse_reflog,
    parse_stash_list,
    parse_worktree_list,
)
from wtt.core.subprocess import run_subprocess_with_context

logger = logging.getLogger(__name__)

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        """List all worktrees in the repository."""
        result = run_subprocess_with_context(
            ["git", "worktree", "list", "--porcelain"],
            operation_context="list worktrees",
            cwd=repo_root,
        )
        return parse_worktree_list(result.stdout)

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch."""
        result = subprocess.run(
            ["git", "symbolic-ref", "--quiet", "--short", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        branch = result.stdout.strip()
        return branch or None

    def get_head_commit(self, cwd: Path) -> str | None:
        """Get the commit SHA of HEAD."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def get_status(self, cwd: Path) -> StatusInfo:
        """Get changed, untracked and conflicted paths of a checkout."""
        result = run_subprocess_with_context(
            ["git", "status", "--porcelain", "--untracked-files=all"],
            operation_context=f"get status of {cwd}",
            cwd=cwd,
        )
        return parse_porcelain_status(result.stdout)

    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        """Check whether a local branch exists."""
        result = subprocess.run(
            ["git", "show-ref", "--verify", "--quiet", f"refs/heads/{branch}"],
            cwd=repo_root,
            capture_output=True,
            check=False,
        )
        return result.returncode == 0

    def has_unpushed_commits(self, cwd: Path) -> bool:
        """Check for commits not on the upstream branch."""
        upstream = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if upstream.returncode != 0:
            # No upstream branch
            return False

        result = run_subprocess_with_context(
            ["git", "rev-list", "--count", "@{upstream}..HEAD"],
            operation_context="count unpushed commits",
            cwd=cwd,
        )
        return int(result.stdout.strip() or "0") > 0

    def push_branch(self, cwd: Path, branch: str) -> None:
        """Push a branch to its upstream."""
        run_subprocess_with_context(
            ["git", "push"],
            operation_context=f"push branch '{branch}'",
            cwd=cwd,
        )

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Checkout a branch in the given directory."""
        run_subprocess_with_context(
            ["git", "checkout", branch],
            operation_context=f"checkout branch '{branch}'",
            cwd=cwd,
        )

    def checkout_detached(self, cwd: Path, ref: str) -> None:
        """Checkout a detached HEAD at the given ref."""
        run_subprocess_with_context(
            ["git", "checkout", "--detach", ref],
            operation_context=f"checkout detached HEAD at '{ref}'",
            cwd=cwd,
        )

    def merge_branch(self, cwd: Path, branch: str) -> MergeResult:
        """Merge a branch into the branch checked out in cwd."""
        result = subprocess.run(
            ["git", "merge", "--no-edit", branch],
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
        )
        merge_result = classify_merge_output(result.returncode, result.stdout, result.stderr)
        if not merge_result.conflicted:
            return merge_result
        logger.debug("Merge of %s conflicted", branch)
        return self._with_index_conflicts(cwd, merge_result)

    def _with_index_conflicts(self, cwd: Path, merge_result: MergeResult) -> MergeResult:
        # The text scan is best effort; the index is authoritative
        unmerged = run_subprocess_with_context(
            ["git", "diff", "--name-only", "--diff-filter=U"],
            operation_context="list conflicted files",
            cwd=cwd,
        )
        paths = [line for line in unmerged.stdout.splitlines() if line.strip()]
        return MergeResult(
            success=False,
            conflicted=True,
            conflicted_paths=paths or merge_result.conflicted_paths,
            output=merge_result.output,
        )

    def abort_merge(self, cwd: Path) -> None:
        """Abort the merge in progress in cwd."""
        run_subprocess_with_context(
            ["git", "merge", "--abort"],
            operation_context="abort merge",
            cwd=cwd,
        )

    def is_merge_in_progress(self, cwd: Path) -> bool:
        """Check whether MERGE_HEAD exists for the checkout in cwd."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", "MERGE_HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        return result.returncode == 0

    def delete_branch(self, cwd: Path, branch_name: str, *, force: bool) -> None:
        """Delete a local branch."""
        flag = "-D" if force else "-d"
        run_subprocess_with_context(
            ["git", "branch", flag, branch_name],
            operation_context=f"delete branch '{branch_name}'",
            cwd=cwd,
        )

    def add_worktree(
        self,
        repo_root: Path,
        path: Path,
        *,
        branch: str,
        ref: str | None,
        create_branch: bool,
    ) -> None:
        """Add a new git worktree."""
        if create_branch:
            base_ref = ref or "HEAD"
            cmd = ["git", "worktree", "add", "-b", branch, str(path), base_ref]
            context = f"add worktree with new branch '{branch}' at {path}"
        else:
            cmd = ["git", "worktree", "add", str(path), branch]
            context = f"add worktree for branch '{branch}' at {path}"

        run_subprocess_with_context(cmd, operation_context=context, cwd=repo_root)

    def remove_worktree(self, repo_root: Path, path: Path, *, force: bool) -> None:
        """Remove a worktree."""
        cmd = ["git", "worktree", "remove"]
        if force:
            cmd.append("--force")
        cmd.append(str(path))
        run_subprocess_with_context(
            cmd,
            operation_context=f"remove worktree at {path}",
            cwd=repo_root,
        )

        run_subprocess_with_context(
            ["git", "worktree", "prune"],
            operation_context="prune worktree metadata",
            cwd=repo_root,
        )

    def get_merge_base(self, repo_root: Path, ref_a: str, ref_b: str) -> str | None:
        """Get the best common ancestor of two refs."""
        result = subprocess.run(
            ["git", "merge-base", ref_a, ref_b],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def diff_name_status(self, repo_root: Path, base: str, tip: str) -> list[FileChange]:
        """List files changed between two commits."""
        result = run_subprocess_with_context(
            ["git", "diff", "--name-status", "--no-renames", base, tip],
            operation_context=f"list files changed between {base[:12]} and {tip}",
            cwd=repo_root,
        )
        return parse_name_status(result.stdout)

    def diff_line_ranges(self, repo_root: Path, base: str, tip: str, path: str) -> list[LineRange]:
        """Get the base-side line ranges touched by each hunk of a file's diff."""
        result = run_subprocess_with_context(
            ["git", "diff", "--unified=0", "--no-color", base, tip, "--", path],
            operation_context=f"diff '{path}' between {base[:12]} and {tip}",
            cwd=repo_root,
        )
        return parse_hunk_ranges(result.stdout)

    def diff_binary_paths(self, repo_root: Path, base: str, tip: str) -> set[str]:
        """Get the paths whose diff between two commits is binary."""
        result = run_subprocess_with_context(
            ["git", "diff", "--numstat", "--no-renames", base, tip],
            operation_context=f"find binary changes between {base[:12]} and {tip}",
            cwd=repo_root,
        )
        return parse_numstat_binary_paths(result.stdout)

    def create_stash(self, cwd: Path, message: str) -> str | None:
        """Record uncommitted changes as a stash commit without touching the tree."""
        result = run_subprocess_with_context(
            ["git", "stash", "create", message],
            operation_context="create stash commit",
            cwd=cwd,
        )
        stash_commit = result.stdout.strip()
        if not stash_commit:
            return None

        run_subprocess_with_context(
            ["git", "stash", "store", "-m", message, stash_commit],
            operation_context=f"store stash commit {stash_commit[:12]}",
            cwd=cwd,
        )
        return stash_commit

    def apply_stash(self, cwd: Path, stash_commit: str) -> None:
        """Apply a stash commit to the working tree, restoring the index too."""
        run_subprocess_with_context(
            ["git", "stash", "apply", "--index", stash_commit],
            operation_context=f"apply stash {stash_commit[:12]}",
            cwd=cwd,
        )

    def reset(self, cwd: Path, commit: str, *, mode: ResetMode) -> None:
        """Move the current branch to commit."""
        run_subprocess_with_context(
            ["git", "reset", f"--{mode}", commit],
            operation_context=f"reset ({mode}) to {commit[:12]}",
            cwd=cwd,
        )

    def get_commit_info(self, repo_root: Path, ref: str) -> CommitInfo | None:
        """Resolve ref to a commit."""
        result = subprocess.run(
            ["git", "show", "-s", f"--format={COMMIT_INFO_FORMAT}", f"{ref}^{{commit}}", "--"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
        )
        if result.returncode != 0:
            return None
        return parse_commit_info(result.stdout)

    def list_reflog(self, repo_root: Path) -> list[ReflogEntry]:
        """List the HEAD reflog, newest first."""
        result = run_subprocess_with_context(
            ["git", "log", "-g", f"--format={REFLOG_FORMAT}", "HEAD", "--"],
            operation_context="read HEAD reflog",
            cwd=repo_root,
        )
        return parse_reflog(result.stdout)

    def branches_containing(self, repo_root: Path, commit: str) -> list[str]:
        """List local branches whose history includes commit."""
        result = run_subprocess_with_context(
            ["git", "branch", "--contains", commit, "--format=%(refname:short)"],
            operation_context=f"find branches containing {commit[:12]}",
            cwd=repo_root,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def create_branch(self, repo_root: Path, branch: str, start_point: str) -> None:
        """Create a local branch without checking it out."""
        run_subprocess_with_context(
            ["git", "branch", branch, start_point],
            operation_context=f"create branch '{branch}' at {start_point[:12]}",
            cwd=repo_root,
        )

    def cherry_pick(self, cwd: Path, commit: str) -> MergeResult:
        """Apply commit on top of the branch checked out in cwd."""
        result = subprocess.run(
            ["git", "cherry-pick", commit],
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
        )
        pick_result = classify_merge_output(result.returncode, result.stdout, result.stderr)
        if not pick_result.conflicted:
            return pick_result
        logger.debug("Cherry-pick of %s conflicted", commit[:12])
        return self._with_index_conflicts(cwd, pick_result)

    def list_stashes(self, repo_root: Path) -> list[StashEntry]:
        """List stash entries, newest first."""
        result = run_subprocess_with_context(
            ["git", "stash", "list", f"--format={STASH_FORMAT}"],
            operation_context="list stashes",
            cwd=repo_root,
        )
        return parse_stash_list(result.stdout)

    def path_exists(self, path: Path) -> bool:
        """Check if a path exists on the filesystem."""
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory."""
        return path.is_dir()
