"""Conflict prediction without touching the working tree.

Compares what each branch changed since their merge base and grades every file
both sides touched. Nothing is checked out or merged.

Risk policy:
- deleted on one side, changed on the other: high
- binary on either side: high
- added on both sides: high
- hunks (in merge-base coordinates) that overlap or are adjacent: high
- disjoint hunks: low when each side has at most one hunk, otherwise medium
- deleted on both sides: low
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from wtt.core.git.abc import FileChange, Git, LineRange

logger = logging.getLogger(__name__)

Risk = Literal["low", "medium", "high"]

CONFLICT_START_MARKER = "<<<<<<<"


@dataclass(frozen=True)
class ConflictPrediction:
    """A file both branches changed, with how likely it is to conflict."""

    file: str
    risk: Risk
    reason: str


@dataclass(frozen=True)
class CurrentConflict:
    """A file git left unmerged in the working tree."""

    file: str
    marker_count: int


def _first_overlap(ours: list[LineRange], theirs: list[LineRange]) -> LineRange | None:
    for a in ours:
        for b in theirs:
            if a.touches(b):
                return LineRange(start=min(a.start, b.start), end=max(a.end, b.end))
    return None


def _describe_lines(overlap: LineRange) -> str:
    return f"both branches modified lines {overlap.start}-{overlap.end}"


def grade_overlap(
    main_change: FileChange,
    branch_change: FileChange,
    *,
    binary: bool,
    main_ranges: list[LineRange],
    branch_ranges: list[LineRange],
) -> ConflictPrediction:
    """Apply the risk policy to a file changed on both sides."""
    path = main_change.path
    main_status = main_change.status
    branch_status = branch_change.status

    if main_status == "D" and branch_status == "D":
        return ConflictPrediction(file=path, risk="low", reason="both branches deleted this file")

    if main_status == "D" or branch_status == "D":
        deleted_on = "main" if main_status == "D" else "the branch"
        return ConflictPrediction(
            file=path,
            risk="high",
            reason=f"deleted on {deleted_on} and modified on the other side",
        )

    if binary:
        return ConflictPrediction(
            file=path, risk="high", reason="binary file changed on both branches"
        )

    if main_status == "A" and branch_status == "A":
        return ConflictPrediction(file=path, risk="high", reason="both branches added this file")

    overlap = _first_overlap(main_ranges, branch_ranges)
    if overlap is not None:
        return ConflictPrediction(file=path, risk="high", reason=_describe_lines(overlap))

    if len(main_ranges) <= 1 and len(branch_ranges) <= 1:
        return ConflictPrediction(
            file=path, risk="low", reason="both branches modified different parts of the file"
        )

    return ConflictPrediction(
        file=path,
        risk="medium",
        reason=(
            f"both branches made several changes to the file "
            f"({len(main_ranges)} and {len(branch_ranges)} hunks)"
        ),
    )


class ConflictPredictor:
    """Predicts file-level merge conflicts between two branches."""

    def __init__(self, git: Git) -> None:
        self._git = git

    def predict(self, repo_root: Path, branch: str, main_branch: str) -> list[ConflictPrediction]:
        """Predict conflicts for merging branch into main_branch.

        Args:
            repo_root: Repository to inspect
            branch: Branch that would be merged
            main_branch: Branch that would receive the merge

        Returns:
            Predictions sorted by path; empty when the changed file sets are disjoint
        """
        base = self._git.get_merge_base(repo_root, main_branch, branch)
        if base is None:
            logger.warning(
                "No merge base between %s and %s; skipping prediction", main_branch, branch
            )
            return []

        main_changes = {c.path: c for c in self._git.diff_name_status(repo_root, base, main_branch)}
        branch_changes = {c.path: c for c in self._git.diff_name_status(repo_root, base, branch)}
        candidates = sorted(set(main_changes) & set(branch_changes))
        logger.debug(
            "Merge base %s: %d changed on %s, %d on %s, %d on both",
            base[:12],
            len(main_changes),
            main_branch,
            len(branch_changes),
            branch,
            len(candidates),
        )
        if not candidates:
            return []

        binary_paths = self._git.diff_binary_paths(
            repo_root, base, main_branch
        ) | self._git.diff_binary_paths(repo_root, base, branch)

        predictions: list[ConflictPrediction] = []
        for path in candidates:
            main_change = main_changes[path]
            branch_change = branch_changes[path]
            needs_ranges = (
                path not in binary_paths and "D" not in (main_change.status, branch_change.status)
            )
            main_ranges: list[LineRange] = []
            branch_ranges: list[LineRange] = []
            if needs_ranges:
                main_ranges = self._git.diff_line_ranges(repo_root, base, main_branch, path)
                branch_ranges = self._git.diff_line_ranges(repo_root, base, branch, path)

            predictions.append(
                grade_overlap(
                    main_change,
                    branch_change,
                    binary=path in binary_paths,
                    main_ranges=main_ranges,
                    branch_ranges=branch_ranges,
                )
            )

        return sorted(predictions, key=lambda p: p.file)


def count_conflict_markers(content: str) -> int:
    return sum(1 for line in content.splitlines() if line.startswith(CONFLICT_START_MARKER))


def find_current_conflicts(git: Git, cwd: Path) -> list[CurrentConflict]:
    """List files left unmerged in the checkout at cwd, with their marker counts."""
    conflicts: list[CurrentConflict] = []
    for path in sorted(git.get_status(cwd).conflicted_paths):
        file_path = cwd / path
        marker_count = 0
        if file_path.is_file():
            content = file_path.read_text(encoding="utf-8", errors="replace")
            marker_count = count_conflict_markers(content)
        conflicts.append(CurrentConflict(file=path, marker_count=marker_count))
    return conflicts
