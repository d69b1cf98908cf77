"""Pre-merge validation.

Collects every reason a merge could lose work or fail before anything is
touched. Expected conditions become ValidationIssue values; only unexpected git
failures (EngineError) propagate.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from wtt.cli.config import CONFIG_FILE_NAME
from wtt.core.errors import DetachedHead, UncommittedChanges, WorktreeNotFound
from wtt.core.git.abc import Git, WorktreeInfo
from wtt.core.locator import locate
from wtt.core.repo_discovery import RepoContext

logger = logging.getLogger(__name__)

IssueKind = Literal[
    "WORKTREE_NOT_FOUND",
    "UNCOMMITTED_CHANGES_MAIN",
    "CONFIG_ARTIFACTS_UNCOMMITTED",
    "UNCOMMITTED_CHANGES_WORKTREE",
    "DETACHED_HEAD",
    "UNPUSHED_COMMITS",
]
Severity = Literal["blocking", "warning"]

# Issues a forced merge may proceed past
FORCE_OVERRIDABLE_KINDS: frozenset[IssueKind] = frozenset(
    {"UNCOMMITTED_CHANGES_MAIN", "UNCOMMITTED_CHANGES_WORKTREE", "CONFIG_ARTIFACTS_UNCOMMITTED"}
)

MAX_LISTED_PATHS = 5


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found while validating a merge."""

    kind: IssueKind
    severity: Severity
    message: str
    detail: str | None = None
    worktree_path: Path | None = None

    @property
    def blocking(self) -> bool:
        return self.severity == "blocking"


@dataclass(frozen=True)
class ValidationReport:
    """All issues for one merge attempt, plus the located worktree if any."""

    issues: list[ValidationIssue]
    worktree: WorktreeInfo | None

    @property
    def blocking_issues(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.blocking]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if not issue.blocking]

    @property
    def safe(self) -> bool:
        return not self.blocking_issues

    def has(self, kind: IssueKind) -> bool:
        return any(issue.kind == kind for issue in self.issues)


def _summarize_paths(paths: list[str]) -> str:
    listed = ", ".join(paths[:MAX_LISTED_PATHS])
    remaining = len(paths) - MAX_LISTED_PATHS
    if remaining > 0:
        listed += f" (+{remaining} more)"
    return listed


def is_tool_artifact(path: str, repo: RepoContext) -> bool:
    """Check whether a repo-relative path belongs to the tool itself.

    Tool artifacts are the config file and anything under the worktrees dir.
    """
    normalized = path.rstrip("/")
    if normalized == CONFIG_FILE_NAME:
        return True

    try:
        base_dir = repo.worktrees_dir.relative_to(repo.root).as_posix()
    except ValueError:
        return False
    return normalized == base_dir or normalized.startswith(base_dir + "/")


def check_main_checkout(git: Git, repo: RepoContext) -> ValidationIssue | None:
    status = git.get_status(repo.root)
    if status.clean:
        return None

    changed = status.all_paths
    error = UncommittedChanges("main", repo.root, changed)

    if all(is_tool_artifact(path, repo) for path in changed):
        return ValidationIssue(
            kind="CONFIG_ARTIFACTS_UNCOMMITTED",
            severity="blocking",
            message="Worktree tool files are not ignored or committed in the main checkout",
            detail=(
                f"Uncommitted: {_summarize_paths(changed)}. "
                "Run 'wt init' to add them to .gitignore, then commit the result."
            ),
            worktree_path=repo.root,
        )

    return ValidationIssue(
        kind="UNCOMMITTED_CHANGES_MAIN",
        severity="blocking",
        message=str(error),
        detail=(
            f"Changed: {_summarize_paths(changed)}. "
            "Commit or stash these changes in the main checkout before merging."
        ),
        worktree_path=repo.root,
    )


def check_worktree_clean(git: Git, worktree: WorktreeInfo) -> ValidationIssue | None:
    status = git.get_status(worktree.path)
    if status.clean:
        return None

    changed = status.all_paths
    error = UncommittedChanges("worktree", worktree.path, changed)
    return ValidationIssue(
        kind="UNCOMMITTED_CHANGES_WORKTREE",
        severity="blocking",
        message=str(error),
        detail=(
            f"Changed: {_summarize_paths(changed)}. "
            "Commit them in the worktree, or pass --force to merge only what is committed."
        ),
        worktree_path=worktree.path,
    )


def check_detached_head(worktree: WorktreeInfo) -> ValidationIssue | None:
    if worktree.branch is not None:
        return None

    error = DetachedHead(worktree.path)
    return ValidationIssue(
        kind="DETACHED_HEAD",
        severity="blocking",
        message=str(error),
        detail=f"Check out a branch in the worktree first: git -C {worktree.path} switch <branch>",
        worktree_path=worktree.path,
    )


def check_unpushed_commits(git: Git, worktree: WorktreeInfo) -> ValidationIssue | None:
    if worktree.branch is None:
        return None
    if not git.has_unpushed_commits(worktree.path):
        return None

    return ValidationIssue(
        kind="UNPUSHED_COMMITS",
        severity="warning",
        message=f"Branch '{worktree.branch}' has commits that are not pushed to its upstream",
        detail="They will still be merged locally. Push them to keep the remote in sync.",
        worktree_path=worktree.path,
    )


def validate_merge(
    git: Git,
    repo: RepoContext,
    worktree_name: str,
    *,
    cwd: Path,
    force: bool,
) -> ValidationReport:
    """Run every pre-merge check and report all findings.

    Checks never short-circuit each other, except that worktree-scoped checks
    need a located worktree. With force, the worktree's own uncommitted changes
    are not checked.

    Args:
        git: Git operations interface
        repo: Repository being merged into
        worktree_name: Name the user gave for the merge source
        cwd: Invocation directory (forwarded to the locator)
        force: Skip the uncommitted-changes check on the worktree

    Returns:
        ValidationReport; safe when it contains no blocking issue
    """
    issues: list[ValidationIssue] = []

    worktree: WorktreeInfo | None
    try:
        worktree = locate(git, repo, worktree_name, cwd=cwd)
    except WorktreeNotFound as e:
        worktree = None
        issues.append(
            ValidationIssue(
                kind="WORKTREE_NOT_FOUND",
                severity="blocking",
                message=str(e),
                detail="Run 'wt list' to see available worktrees.",
                worktree_path=repo.worktrees_dir / worktree_name,
            )
        )

    main_issue = check_main_checkout(git, repo)
    if main_issue is not None:
        issues.append(main_issue)

    if worktree is not None:
        if not force:
            worktree_issue = check_worktree_clean(git, worktree)
            if worktree_issue is not None:
                issues.append(worktree_issue)

        detached_issue = check_detached_head(worktree)
        if detached_issue is not None:
            issues.append(detached_issue)

        unpushed_issue = check_unpushed_commits(git, worktree)
        if unpushed_issue is not None:
            issues.append(unpushed_issue)

    logger.debug(
        "Validation of %r found %d issue(s): %s",
        worktree_name,
        len(issues),
        [issue.kind for issue in issues],
    )
    return ValidationReport(issues=issues, worktree=worktree)
