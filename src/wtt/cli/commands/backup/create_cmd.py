import click

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import machine_output, user_output
from wtt.core.context import WttContext
from wtt.core.errors import SnapshotPersistenceFailed
from wtt.core.snapshots import SnapshotStore


@click.command("create")
@click.option("--operation", default="manual", show_default=True, help="Label for the snapshot.")
@click.option("-m", "--message", default=None, help="Note stored with the snapshot.")
@click.pass_obj
def create_backup(ctx: WttContext, operation: str, message: str | None) -> None:
    """Snapshot the main checkout now. Prints the snapshot id."""
    repo = Ensure.in_repo(ctx)
    metadata = {"message": message} if message else {}

    try:
        snapshot = SnapshotStore(ctx.git, repo, ctx.time).create_snapshot(operation, metadata)
    except SnapshotPersistenceFailed as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    user_output(click.style("✓", fg="green") + f" Created snapshot {snapshot.id}")
    machine_output(snapshot.id)
