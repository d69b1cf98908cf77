import click

from wtt.cli.ensure import Ensure, fail
from wtt.cli.output import user_output
from wtt.core.context import WttContext
from wtt.core.errors import SnapshotNotFound
from wtt.core.snapshots import SnapshotStore


@click.command("delete")
@click.argument("snapshot_id")
@click.pass_obj
def delete_backup(ctx: WttContext, snapshot_id: str) -> None:
    """Delete snapshot SNAPSHOT_ID. Commits it captured stay reachable through git."""
    repo = Ensure.in_repo(ctx)
    try:
        snapshot = SnapshotStore(ctx.git, repo, ctx.time).delete_snapshot(snapshot_id)
    except SnapshotNotFound as e:
        fail(str(e))

    user_output(click.style("✓", fg="green") + f" Deleted snapshot {snapshot.id}")
