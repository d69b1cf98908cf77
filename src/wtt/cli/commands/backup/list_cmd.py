import click
from rich.table import Table

from wtt.cli.ensure import Ensure
from wtt.cli.json_output import emit_json
from wtt.cli.json_schemas import BackupListResponse, SnapshotInfo
from wtt.cli.output import user_console, user_output
from wtt.core.context import WttContext
from wtt.core.snapshots import SnapshotStore


@click.command("list")
@click.option("--json", "output_json", is_flag=True, help="Output JSON format")
@click.pass_obj
def list_backups(ctx: WttContext, output_json: bool) -> None:
    """List snapshots, newest first."""
    repo = Ensure.in_repo(ctx)
    snapshots = SnapshotStore(ctx.git, repo, ctx.time).list_snapshots()

    if output_json:
        emit_json(
            BackupListResponse(snapshots=[SnapshotInfo.from_snapshot(s) for s in snapshots])
        )
        return

    if not snapshots:
        user_output("No snapshots")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("operation", no_wrap=True)
    table.add_column("created", no_wrap=True)
    table.add_column("branch", no_wrap=True)
    table.add_column("commit", no_wrap=True)
    table.add_column("changes", no_wrap=True)

    for snapshot in snapshots:
        table.add_row(
            snapshot.id,
            snapshot.operation,
            snapshot.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            snapshot.branch or "(detached)",
            (snapshot.commit or "")[:12],
            "yes" if snapshot.saved_state.has_uncommitted_changes else "",
        )

    user_console().print(table)
