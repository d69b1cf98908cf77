"""Pydantic models for JSON output schemas.

This module defines the validated JSON schemas for CLI commands that support
--json output. These models ensure type safety and provide runtime validation
of JSON output structures.
"""

from pydantic import BaseModel, ConfigDict, Field

from wtt.core.conflict_predictor import ConflictPrediction
from wtt.core.snapshots import Snapshot
from wtt.core.validation import ValidationIssue


class PredictionInfo(BaseModel):
    """One predicted conflict.

    Attributes:
        file: Repository-relative path
        risk: low, medium or high
        reason: Why the file is expected to conflict
    """

    model_config = ConfigDict(strict=True)

    file: str
    risk: str = Field(..., pattern="^(low|medium|high)$")
    reason: str

    @staticmethod
    def from_prediction(prediction: ConflictPrediction) -> "PredictionInfo":
        return PredictionInfo(file=prediction.file, risk=prediction.risk, reason=prediction.reason)


class IssueInfo(BaseModel):
    """One validation issue."""

    model_config = ConfigDict(strict=True)

    kind: str
    severity: str = Field(..., pattern="^(blocking|warning)$")
    message: str
    detail: str | None

    @staticmethod
    def from_issue(issue: ValidationIssue) -> "IssueInfo":
        return IssueInfo(
            kind=issue.kind, severity=issue.severity, message=issue.message, detail=issue.detail
        )


class MergeCheckResponse(BaseModel):
    """JSON response schema for `wt merge --check --json`.

    Attributes:
        status: "preview" when prediction ran, "blocked" when validation failed
        branch: Branch that would be merged (None when blocked before locating it)
        main_branch: Branch that would receive the merge
        predictions: Predicted conflicts sorted by path
        issues: Validation issues (warnings when previewing, blocking ones when blocked)
    """

    model_config = ConfigDict(strict=True)

    status: str = Field(..., pattern="^(preview|blocked)$")
    branch: str | None
    main_branch: str
    predictions: list[PredictionInfo]
    issues: list[IssueInfo]


class SnapshotInfo(BaseModel):
    """One snapshot in `wt backup list --json`."""

    model_config = ConfigDict(strict=True)

    id: str
    operation: str
    created_at: str
    branch: str | None
    commit: str | None
    has_uncommitted_changes: bool
    untracked_files: int = Field(..., ge=0)

    @staticmethod
    def from_snapshot(snapshot: Snapshot) -> "SnapshotInfo":
        return SnapshotInfo(
            id=snapshot.id,
            operation=snapshot.operation,
            created_at=snapshot.created_at.isoformat(),
            branch=snapshot.branch,
            commit=snapshot.commit,
            has_uncommitted_changes=snapshot.saved_state.has_uncommitted_changes,
            untracked_files=len(snapshot.saved_state.untracked_files),
        )


class BackupListResponse(BaseModel):
    """JSON response schema for `wt backup list --json`."""

    model_config = ConfigDict(strict=True)

    snapshots: list[SnapshotInfo]
