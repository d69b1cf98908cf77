"""Tests for conflict prediction and its risk policy."""

from pathlib import Path

import pytest

from tests.test_utils.paths import sentinel_path
from wtt.core.conflict_predictor import (
    ConflictPredictor,
    count_conflict_markers,
    find_current_conflicts,
    grade_overlap,
)
from wtt.core.errors import EngineError
from wtt.core.git.abc import FileChange, LineRange, StatusInfo
from wtt.core.git.fake import FakeGit

ROOT = sentinel_path()
BASE = "base-sha"


def _predictor_git(
    main: list[FileChange],
    branch: list[FileChange],
    *,
    line_ranges: dict[tuple[str, str, str], list[LineRange]] | None = None,
    binary_paths: dict[tuple[str, str], set[str]] | None = None,
) -> FakeGit:
    return FakeGit(
        merge_bases={("main", "feature"): BASE},
        name_status={(BASE, "main"): main, (BASE, "feature"): branch},
        line_ranges=line_ranges,
        binary_paths=binary_paths,
    )


def test_disjoint_file_sets_predict_nothing() -> None:
    git = _predictor_git([FileChange("a.py", "M")], [FileChange("b.py", "M")])

    assert ConflictPredictor(git).predict(ROOT, "feature", "main") == []


def test_overlapping_lines_are_high_risk() -> None:
    git = _predictor_git(
        [FileChange("app.py", "M")],
        [FileChange("app.py", "M")],
        line_ranges={
            (BASE, "main", "app.py"): [LineRange(10, 20)],
            (BASE, "feature", "app.py"): [LineRange(15, 25)],
        },
    )

    [prediction] = ConflictPredictor(git).predict(ROOT, "feature", "main")

    assert prediction.file == "app.py"
    assert prediction.risk == "high"
    assert prediction.reason == "both branches modified lines 10-25"


def test_adjacent_lines_are_high_risk() -> None:
    git = _predictor_git(
        [FileChange("app.py", "M")],
        [FileChange("app.py", "M")],
        line_ranges={
            (BASE, "main", "app.py"): [LineRange(10, 12)],
            (BASE, "feature", "app.py"): [LineRange(13, 14)],
        },
    )

    [prediction] = ConflictPredictor(git).predict(ROOT, "feature", "main")

    assert prediction.risk == "high"


def test_single_disjoint_hunks_are_low_risk() -> None:
    git = _predictor_git(
        [FileChange("app.py", "M")],
        [FileChange("app.py", "M")],
        line_ranges={
            (BASE, "main", "app.py"): [LineRange(1, 2)],
            (BASE, "feature", "app.py"): [LineRange(50, 52)],
        },
    )

    [prediction] = ConflictPredictor(git).predict(ROOT, "feature", "main")

    assert prediction.risk == "low"


def test_several_disjoint_hunks_are_medium_risk() -> None:
    git = _predictor_git(
        [FileChange("app.py", "M")],
        [FileChange("app.py", "M")],
        line_ranges={
            (BASE, "main", "app.py"): [LineRange(1, 2), LineRange(30, 31)],
            (BASE, "feature", "app.py"): [LineRange(50, 52)],
        },
    )

    [prediction] = ConflictPredictor(git).predict(ROOT, "feature", "main")

    assert prediction.risk == "medium"


def test_binary_files_are_high_risk() -> None:
    git = _predictor_git(
        [FileChange("logo.png", "M")],
        [FileChange("logo.png", "M")],
        binary_paths={(BASE, "feature"): {"logo.png"}},
    )

    [prediction] = ConflictPredictor(git).predict(ROOT, "feature", "main")

    assert prediction.risk == "high"
    assert "binary" in prediction.reason


def test_predictions_are_sorted_by_path() -> None:
    changes = [FileChange("z.py", "A"), FileChange("a.py", "A"), FileChange("m.py", "A")]
    git = _predictor_git(changes, list(reversed(changes)))

    predictions = ConflictPredictor(git).predict(ROOT, "feature", "main")

    assert [p.file for p in predictions] == ["a.py", "m.py", "z.py"]


def test_no_merge_base_predicts_nothing() -> None:
    git = FakeGit()

    assert ConflictPredictor(git).predict(ROOT, "feature", "main") == []


def test_diff_failure_propagates() -> None:
    git = FakeGit(
        merge_bases={("main", "feature"): BASE},
        diff_raises=EngineError("diff failed"),
    )

    with pytest.raises(EngineError):
        ConflictPredictor(git).predict(ROOT, "feature", "main")


@pytest.mark.parametrize(
    ("main_status", "branch_status", "expected"),
    [
        ("D", "M", "deleted on main and modified on the other side"),
        ("M", "D", "deleted on the branch and modified on the other side"),
        ("A", "A", "both branches added this file"),
    ],
)
def test_grade_overlap_structural_cases(
    main_status: str, branch_status: str, expected: str
) -> None:
    prediction = grade_overlap(
        FileChange("f", main_status),
        FileChange("f", branch_status),
        binary=False,
        main_ranges=[],
        branch_ranges=[],
    )

    assert prediction.risk == "high"
    assert prediction.reason == expected


def test_grade_overlap_same_deletion_is_low_risk() -> None:
    prediction = grade_overlap(
        FileChange("f", "D"), FileChange("f", "D"), binary=False, main_ranges=[], branch_ranges=[]
    )

    assert prediction.risk == "low"


def test_count_conflict_markers() -> None:
    content = "a\n<<<<<<< HEAD\nb\n=======\nc\n>>>>>>> feature\n<<<<<<< HEAD\nd\n"

    assert count_conflict_markers(content) == 2


def test_find_current_conflicts_reads_marker_counts(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("<<<<<<< HEAD\nx\n=======\ny\n>>>>>>> f\n", encoding="utf-8")
    git = FakeGit(statuses={tmp_path: StatusInfo(conflicted_paths=["missing.txt", "a.txt"])})

    conflicts = find_current_conflicts(git, tmp_path)

    assert [(c.file, c.marker_count) for c in conflicts] == [("a.txt", 1), ("missing.txt", 0)]
