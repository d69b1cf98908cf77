"""Tests for the `wt backup` command group."""

import json
from datetime import timedelta
from pathlib import Path

from click.testing import CliRunner

from tests.fakes.time import FakeTime
from tests.test_utils.scenarios import merge_scenario
from wtt.cli.cli import cli
from wtt.core.context import WttContext


def _create(runner: CliRunner, ctx: WttContext, *args: str) -> str:
    result = runner.invoke(cli, ["backup", "create", *args], obj=ctx)
    assert result.exit_code == 0, result.output
    return result.stdout.strip()


def test_create_prints_id_on_stdout(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    snapshot_id = _create(runner, scenario.ctx, "-m", "before rebase")

    assert snapshot_id == "manual-2025-01-15T12-00-00-000000Z"
    record = json.loads(
        (scenario.repo.backups_dir / snapshot_id / "snapshot.json").read_text(encoding="utf-8")
    )
    assert record["metadata"] == {"message": "before rebase"}
    assert record["branch"] == "main"
    assert record["commit"] == "main-sha"


def test_list_json(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()
    first = _create(runner, scenario.ctx)
    second = _create(runner, scenario.ctx, "--operation", "merge")

    result = runner.invoke(cli, ["backup", "list", "--json"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert {s["id"] for s in data["snapshots"]} == {first, second}
    assert {s["operation"] for s in data["snapshots"]} == {"manual", "merge"}
    assert all(s["has_uncommitted_changes"] is False for s in data["snapshots"])


def test_list_empty(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["backup", "list"], obj=scenario.ctx)

    assert result.exit_code == 0
    assert "No snapshots" in result.stderr


def test_list_table(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()
    snapshot_id = _create(runner, scenario.ctx)

    result = runner.invoke(cli, ["backup", "list"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert snapshot_id in result.stderr
    assert "main-sha" in result.stderr


def test_restore_last_with_yes(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()
    snapshot_id = _create(runner, scenario.ctx)

    result = runner.invoke(cli, ["backup", "restore", "--last", "--yes"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert f"Restored snapshot {snapshot_id}" in result.stderr
    assert scenario.git.resets == [
        (scenario.root, "HEAD", "hard"),
        (scenario.root, "main-sha", "hard"),
    ]


def test_restore_by_prefix_keeping_changes(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()
    _create(runner, scenario.ctx, "--operation", "merge")

    result = runner.invoke(cli, ["backup", "restore", "merge-", "--keep-changes"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert scenario.git.resets == [(scenario.root, "main-sha", "soft")]


def test_restore_declined(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()
    _create(runner, scenario.ctx)

    result = runner.invoke(cli, ["backup", "restore", "--last"], obj=scenario.ctx, input="n\n")

    assert result.exit_code == 0, result.output
    assert "Restore cancelled." in result.stderr
    assert scenario.git.resets == []


def test_restore_needs_id_or_last(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["backup", "restore"], obj=scenario.ctx)

    assert result.exit_code == 1
    assert "exactly one of a snapshot id or --last" in result.stderr


def test_restore_unknown_id(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["backup", "restore", "nope", "--yes"], obj=scenario.ctx)

    assert result.exit_code == 1
    assert "Snapshot 'nope' not found" in result.stderr


def test_restore_last_without_snapshots(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["backup", "restore", "--last", "--yes"], obj=scenario.ctx)

    assert result.exit_code == 1
    assert "No snapshots to restore" in result.stderr


def test_delete(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()
    snapshot_id = _create(runner, scenario.ctx)

    result = runner.invoke(cli, ["backup", "delete", snapshot_id], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert not (scenario.repo.backups_dir / snapshot_id).exists()

    again = runner.invoke(cli, ["backup", "delete", snapshot_id], obj=scenario.ctx)
    assert again.exit_code == 1


def test_clean_removes_only_old_snapshots(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    time = scenario.ctx.time
    assert isinstance(time, FakeTime)
    runner = CliRunner()
    old_id = _create(runner, scenario.ctx)
    time.advance(timedelta(days=20))
    recent_id = _create(runner, scenario.ctx)
    time.advance(timedelta(days=15))

    result = runner.invoke(cli, ["backup", "clean", "--days", "30"], obj=scenario.ctx)

    assert result.exit_code == 0, result.output
    assert "Deleted 1 old snapshot(s)" in result.stderr
    assert not (scenario.repo.backups_dir / old_id).exists()
    assert (scenario.repo.backups_dir / recent_id).exists()


def test_clean_nothing_to_do(tmp_path: Path) -> None:
    scenario = merge_scenario(tmp_path)
    runner = CliRunner()
    _create(runner, scenario.ctx)

    result = runner.invoke(cli, ["backup", "clean"], obj=scenario.ctx)

    assert result.exit_code == 0
    assert "No snapshots older than 30 day(s)" in result.stderr


def test_outside_repository_exits_2() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["backup", "list"], obj=WttContext.for_test())

    assert result.exit_code == 2
