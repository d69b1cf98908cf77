"""Tests for the `wt merge` command."""

import json
from pathlib import Path

from click.testing import CliRunner

from tests.test_utils.scenarios import FEATURE_BRANCH, merge_scenario, overlapping_edits
from wtt.cli.cli import cli
from wtt.core.context import WttContext
from wtt.core.git.abc import MergeResult, StatusInfo


def test_merge_success(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert "Merged 'feature' into 'main'" in result.stderr
    assert "Snapshot: merge-" in result.stderr
    assert scenario.git.merged_branches == [(scenario.root, FEATURE_BRANCH)]


def test_merge_conflict_exits_1_with_recovery_hints(tmp_path: Path) -> None:
    scenario = merge_scenario(
        tmp_path,
        merge_results={
            FEATURE_BRANCH: MergeResult(success=False, conflicted=True, conflicted_paths=["a.txt"])
        },
    )
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature"], obj=scenario.ctx)

    assert result.exit_code == 1
    assert "1 conflicted file(s)" in result.stderr
    assert "a.txt" in result.stderr
    assert "wt merge-abort" in result.stderr
    assert "wt backup restore merge-" in result.stderr


def test_merge_conflict_reports_unrecorded_merge_state(tmp_path: Path) -> None:
    scenario = merge_scenario(
        tmp_path,
        merge_results={
            FEATURE_BRANCH: MergeResult(success=False, conflicted=True, conflicted_paths=["a.txt"])
        },
    )
    (scenario.repo.backups_dir / "merge-state.json").mkdir(parents=True)
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature"], obj=scenario.ctx)

    assert result.exit_code == 1
    assert "Could not record the merge state" in result.stderr
    assert "a.txt" in result.stderr


def test_merge_validation_failure_exits_2(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path, statuses={tmp_path: StatusInfo(changed_paths=["src/a.js"])})
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature"], obj=scenario.ctx)

    assert result.exit_code == 2
    assert "Cannot merge" in result.stderr
    assert "Commit or stash" in result.stderr
    assert scenario.git.merged_branches == []


def test_merge_unknown_worktree_exits_2(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "nope"], obj=scenario.ctx)

    assert result.exit_code == 2
    assert "Worktree 'nope' not found" in result.stderr


def test_merge_outside_repository_exits_2() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature"], obj=WttContext.for_test())

    assert result.exit_code == 2
    assert "Not inside a git repository" in result.stderr


def test_predicted_conflicts_prompt_accepted(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path, **overlapping_edits("a.py"))
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature"], obj=scenario.ctx, input="y\n")

    assert result.exit_code == 0, result.output
    assert "Merge anyway?" in result.stderr
    assert "Changed on both branches: a.py" in result.stderr
    assert scenario.git.merged_branches == [(scenario.root, FEATURE_BRANCH)]


def test_predicted_conflicts_prompt_declined(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path, **overlapping_edits("a.py"))
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature"], obj=scenario.ctx, input="n\n")

    assert result.exit_code == 2
    assert "Merge cancelled" in result.stderr
    assert scenario.git.merged_branches == []


def test_yes_flag_skips_prompts(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path, **overlapping_edits("a.py"))
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature", "--yes"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert "Merge anyway?" not in result.stderr


def test_auto_confirm_environment_variable(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path, **overlapping_edits("a.py"))
    runner = CliRunner()

    result = runner.invoke(
        cli, ["merge", "feature"], obj=scenario.ctx, env={"WTT_AUTO_CONFIRM": "true"}
    )

    assert result.exit_code == 0, result.output
    assert scenario.git.merged_branches == [(scenario.root, FEATURE_BRANCH)]


def test_delete_flag_cleans_up_after_confirmation(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature", "--delete"], obj=scenario.ctx, input="y\n")

    assert result.exit_code == 0, result.output
    assert "Removed worktree 'feature'" in result.stderr
    assert scenario.git.removed_worktrees == [scenario.worktree_path]


def test_merge_detects_worktree_from_cwd(tmp_path: Path) -> None:
    worktree_path = tmp_path / ".worktrees" / "feature"
    scenario = merge_scenario(tmp_path, cwd=worktree_path / "src")
    runner = CliRunner()

    result = runner.invoke(cli, ["merge"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert "Merging worktree 'feature'" in result.stderr


def test_merge_without_name_outside_worktree_exits_2(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["merge"], obj=scenario.ctx)

    assert result.exit_code == 2
    assert "not inside a worktree" in result.stderr


def test_check_prints_predictions_and_does_not_merge(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path, **overlapping_edits("a.py", "b.py"))
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature", "--check"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert "2 file(s) changed on both branches" in result.stderr
    assert "both branches modified lines 10-12" in result.stderr
    assert scenario.git.merged_branches == []


def test_check_json_output(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path, **overlapping_edits("a.py", "b.py"))
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature", "--check", "--json"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["status"] == "preview"
    assert data["branch"] == "feature"
    assert data["main_branch"] == "main"
    assert [p["file"] for p in data["predictions"]] == ["a.py", "b.py"]
    assert {p["risk"] for p in data["predictions"]} == {"high"}


def test_check_json_when_blocked(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "nope", "--check", "--json"], obj=scenario.ctx)

    assert result.exit_code == 2
    data = json.loads(result.stdout)
    assert data["status"] == "blocked"
    assert data["branch"] is None
    assert data["issues"][0]["kind"] == "WORKTREE_NOT_FOUND"


def test_json_requires_check(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["merge", "feature", "--json"], obj=scenario.ctx)

    assert result.exit_code == 2
    assert "--json is only supported with --check" in result.stderr
    assert scenario.git.merged_branches == []
