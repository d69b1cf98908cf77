"""Guarded merge of a worktree branch into the main branch.

The orchestrator sequences the pipeline and returns an outcome value. It never
prints, prompts or exits; the CLI turns outcomes into output and exit codes.

Pipeline:
    Resolving -> Validating -> (Predicting) -> Snapshotting -> Merging
    -> Succeeded | Conflicted | Failed -> (Cleaning up)

Decisions the user has to make are reported as NeedsConfirmation. The caller
asks, then runs again with the answer in `decisions`. Every confirmation is
requested before anything is mutated, so running again is always safe.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from wtt.core.conflict_predictor import ConflictPrediction, ConflictPredictor
from wtt.core.context import WttContext
from wtt.core.errors import EngineError, SnapshotPersistenceFailed, WttError
from wtt.core.git.abc import WorktreeInfo
from wtt.core.repo_discovery import RepoContext
from wtt.core.snapshots import MergeState, SnapshotStore
from wtt.core.validation import FORCE_OVERRIDABLE_KINDS, ValidationIssue, validate_merge

logger = logging.getLogger(__name__)

ConfirmationKind = Literal[
    "MERGE_WITH_PREDICTED_CONFLICTS",
    "PUSH_UNPUSHED_COMMITS",
    "DELETE_AFTER_MERGE",
]
FailureKind = Literal[
    "NOT_A_REPOSITORY",
    "SNAPSHOT_PERSISTENCE_FAILED",
    "ENGINE_ERROR",
    "CANCELLED",
]

MERGE_OPERATION = "merge"


@dataclass(frozen=True)
class MergeOptions:
    """Flags controlling a merge run.

    no_delete wins over auto_cleanup from config; delete requests cleanup
    regardless of config.
    """

    force: bool = False
    check: bool = False
    delete: bool = False
    no_delete: bool = False
    auto_confirm: bool = False


@dataclass(frozen=True)
class Succeeded:
    worktree_name: str
    branch: str
    main_branch: str
    cleaned_up: bool
    snapshot_id: str | None
    pushed: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Conflicted:
    """The merge stopped on conflicts and the working tree was left conflicted.

    count is None when git reported a conflict but no paths could be determined.
    """

    worktree_name: str
    branch: str
    main_branch: str
    count: int | None
    paths: list[str]
    snapshot_id: str | None
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationFailed:
    issues: list[ValidationIssue]

    @property
    def blocking_issues(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.blocking]


@dataclass(frozen=True)
class Preview:
    branch: str
    main_branch: str
    predictions: list[ConflictPrediction]
    warnings: list[ValidationIssue] = field(default_factory=list)


@dataclass(frozen=True)
class Failed:
    kind: FailureKind
    message: str


@dataclass(frozen=True)
class NeedsConfirmation:
    kind: ConfirmationKind
    message: str
    context: dict[str, str] = field(default_factory=dict)


MergeOutcome = Succeeded | Conflicted | ValidationFailed | Preview | Failed | NeedsConfirmation


def exit_code_for(outcome: MergeOutcome) -> int:
    """Map an outcome to the process exit code: 0 ok, 1 conflicts, 2 anything else."""
    if isinstance(outcome, (Succeeded, Preview)):
        return 0
    if isinstance(outcome, Conflicted):
        return 1
    return 2


@dataclass(frozen=True)
class _Plan:
    """Answers gathered at the yield points, applied after the last one."""

    push: bool
    cleanup: bool


class MergeOrchestrator:
    """Runs the guarded merge pipeline for one worktree."""

    def __init__(
        self,
        ctx: WttContext,
        *,
        predictor: ConflictPredictor | None = None,
        snapshots: SnapshotStore | None = None,
    ) -> None:
        self._ctx = ctx
        self._predictor = predictor if predictor is not None else ConflictPredictor(ctx.git)
        self._snapshots = snapshots

    def _snapshot_store(self, repo: RepoContext) -> SnapshotStore:
        if self._snapshots is None:
            self._snapshots = SnapshotStore(self._ctx.git, repo, self._ctx.time)
        return self._snapshots

    def _wants_cleanup(self, options: MergeOptions) -> bool:
        if options.delete:
            return True
        return self._ctx.config.auto_cleanup and not options.no_delete

    def _decide(
        self,
        kind: ConfirmationKind,
        options: MergeOptions,
        decisions: Mapping[ConfirmationKind, bool],
    ) -> bool | None:
        if options.auto_confirm:
            return True
        return decisions.get(kind)

    def run(
        self,
        worktree_name: str,
        options: MergeOptions,
        decisions: Mapping[ConfirmationKind, bool] | None = None,
    ) -> MergeOutcome:
        """Run the pipeline up to the first outcome.

        Args:
            worktree_name: Name of the worktree to merge (see the locator for accepted forms)
            options: Flags for this run
            decisions: Answers to earlier NeedsConfirmation outcomes

        Returns:
            The outcome; NeedsConfirmation means run again with the answer added
        """
        answers: Mapping[ConfirmationKind, bool] = decisions or {}
        ctx = self._ctx

        # Resolving
        repo = ctx.repo
        if not isinstance(repo, RepoContext):
            return Failed(kind="NOT_A_REPOSITORY", message=repo.message)
        main_branch = ctx.config.main_branch

        # Validating
        try:
            report = validate_merge(ctx.git, repo, worktree_name, cwd=ctx.cwd, force=options.force)
        except EngineError as e:
            return Failed(kind="ENGINE_ERROR", message=str(e))

        remaining = [
            issue
            for issue in report.issues
            if not (options.force and issue.kind in FORCE_OVERRIDABLE_KINDS)
        ]
        if any(issue.blocking for issue in remaining):
            logger.debug("Validation blocked merge of %r", worktree_name)
            return ValidationFailed(issues=remaining)

        worktree = report.worktree
        if worktree is None or worktree.branch is None:
            # Both cases produce blocking issues that force never overrides
            return Failed(kind="ENGINE_ERROR", message=f"Worktree '{worktree_name}' has no branch")
        branch = worktree.branch

        # Predicting
        if options.check:
            try:
                predictions = self._predictor.predict(repo.root, branch, main_branch)
            except EngineError as e:
                return Failed(kind="ENGINE_ERROR", message=str(e))
            return Preview(
                branch=branch,
                main_branch=main_branch,
                predictions=predictions,
                warnings=[issue for issue in remaining if not issue.blocking],
            )

        plan_or_outcome = self._confirm(
            repo, worktree, branch, main_branch, report.issues, options, answers
        )
        if not isinstance(plan_or_outcome, _Plan):
            return plan_or_outcome
        plan = plan_or_outcome

        # Past the last yield point: mutations start here
        warnings: list[str] = []
        pushed = False
        if plan.push:
            try:
                ctx.git.push_branch(worktree.path, branch)
                pushed = True
            except EngineError as e:
                warnings.append(f"Could not push '{branch}': {e}")

        # Snapshotting
        store = self._snapshot_store(repo)
        snapshot_id: str | None = None
        try:
            snapshot = store.create_snapshot(
                MERGE_OPERATION,
                {"worktree": worktree.path.name, "branch": branch, "main_branch": main_branch},
            )
            snapshot_id = snapshot.id
        except SnapshotPersistenceFailed as e:
            if not options.force:
                return Failed(kind="SNAPSHOT_PERSISTENCE_FAILED", message=str(e))
            logger.debug("Continuing without snapshot because of force: %s", e)
            warnings.append(f"Merged without a safety snapshot: {e}")

        # Merging
        try:
            if ctx.git.get_current_branch(repo.root) != main_branch:
                ctx.git.checkout_branch(repo.root, main_branch)
            result = ctx.git.merge_branch(repo.root, branch)
        except EngineError as e:
            return Failed(kind="ENGINE_ERROR", message=str(e))

        if result.conflicted:
            paths = list(result.conflicted_paths)
            try:
                store.save_merge_state(
                    MergeState(
                        worktree_name=worktree.path.name,
                        branch_name=branch,
                        main_branch=main_branch,
                        conflicted=True,
                        timestamp=ctx.time.now(),
                        conflicted_paths=paths,
                    )
                )
            except SnapshotPersistenceFailed as e:
                logger.debug("Merge state not recorded: %s", e)
                warnings.append(f"Could not record the merge state: {e}")
            logger.debug("Merge of %s into %s conflicted on %s", branch, main_branch, paths)
            return Conflicted(
                worktree_name=worktree.path.name,
                branch=branch,
                main_branch=main_branch,
                count=len(paths) if paths else None,
                paths=paths,
                snapshot_id=snapshot_id,
                warnings=warnings,
            )

        if not result.success:
            return Failed(
                kind="ENGINE_ERROR",
                message=f"git merge {branch} failed:\n{result.output}".rstrip(),
            )

        # Cleaning up
        cleaned_up = False
        if plan.cleanup:
            cleaned_up = self._clean_up(repo, worktree, branch, warnings)

        return Succeeded(
            worktree_name=worktree.path.name,
            branch=branch,
            main_branch=main_branch,
            cleaned_up=cleaned_up,
            snapshot_id=snapshot_id,
            pushed=pushed,
            warnings=warnings,
        )

    def _confirm(
        self,
        repo: RepoContext,
        worktree: WorktreeInfo,
        branch: str,
        main_branch: str,
        issues: list[ValidationIssue],
        options: MergeOptions,
        answers: Mapping[ConfirmationKind, bool],
    ) -> _Plan | NeedsConfirmation | Failed:
        """Walk the yield points in order. Nothing here mutates the repository."""
        if not options.force:
            try:
                predictions = self._predictor.predict(repo.root, branch, main_branch)
            except EngineError as e:
                return Failed(kind="ENGINE_ERROR", message=str(e))

            if predictions:
                answer = self._decide("MERGE_WITH_PREDICTED_CONFLICTS", options, answers)
                if answer is None:
                    return NeedsConfirmation(
                        kind="MERGE_WITH_PREDICTED_CONFLICTS",
                        message=(
                            f"{len(predictions)} file(s) changed on both branches may conflict "
                            f"when merging '{branch}' into '{main_branch}'. Merge anyway?"
                        ),
                        context={
                            "branch": branch,
                            "main_branch": main_branch,
                            "files": ", ".join(p.file for p in predictions),
                        },
                    )
                if not answer:
                    return Failed(kind="CANCELLED", message="Merge cancelled")

        push = False
        if any(issue.kind == "UNPUSHED_COMMITS" for issue in issues):
            answer = self._decide("PUSH_UNPUSHED_COMMITS", options, answers)
            if answer is None:
                return NeedsConfirmation(
                    kind="PUSH_UNPUSHED_COMMITS",
                    message=f"Branch '{branch}' has unpushed commits. Push them before merging?",
                    context={"branch": branch, "worktree_path": str(worktree.path)},
                )
            push = answer

        cleanup = self._wants_cleanup(options)
        if cleanup and options.delete and not self._ctx.config.auto_cleanup:
            answer = self._decide("DELETE_AFTER_MERGE", options, answers)
            if answer is None:
                return NeedsConfirmation(
                    kind="DELETE_AFTER_MERGE",
                    message=(
                        f"Delete worktree '{worktree.path.name}' and branch '{branch}' "
                        "after merging?"
                    ),
                    context={"branch": branch, "worktree_path": str(worktree.path)},
                )
            cleanup = answer

        return _Plan(push=push, cleanup=cleanup)

    def _clean_up(
        self, repo: RepoContext, worktree: WorktreeInfo, branch: str, warnings: list[str]
    ) -> bool:
        ctx = self._ctx
        name = worktree.path.name

        try:
            ctx.git.remove_worktree(repo.root, worktree.path, force=False)
        except EngineError as e:
            warnings.append(f"Could not remove worktree '{name}': {e}")
            return False

        try:
            ctx.git.delete_branch(repo.root, branch, force=False)
        except EngineError as e:
            warnings.append(f"Could not delete branch '{branch}'; delete it manually: {e}")

        if ctx.ports is not None:
            try:
                ctx.ports.release_ports(name)
            except (WttError, OSError) as e:
                warnings.append(f"Could not release ports for '{name}': {e}")

        logger.debug("Cleaned up worktree %s", name)
        return True
