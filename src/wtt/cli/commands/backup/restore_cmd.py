import click

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import user_output
from wtt.core.context import WttContext
from wtt.core.errors import EngineError, SnapshotNotFound
from wtt.core.snapshots import SnapshotStore


@click.command("restore")
@click.argument("snapshot_id", required=False)
@click.option("--last", is_flag=True, help="Restore the most recent snapshot.")
@click.option(
    "--keep-changes",
    is_flag=True,
    help="Only move the branch back; keep the current working tree changes.",
)
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def restore_backup(
    ctx: WttContext, snapshot_id: str | None, last: bool, keep_changes: bool, yes: bool
) -> None:
    """Restore the main checkout from SNAPSHOT_ID (an id or unique prefix)."""
    repo = Ensure.in_repo(ctx)
    store = SnapshotStore(ctx.git, repo, ctx.time)

    Ensure.invariant(
        (snapshot_id is None) == last, "Give exactly one of a snapshot id or --last"
    )
    if snapshot_id is None:
        snapshot = Ensure.not_none(store.latest_snapshot(), "No snapshots to restore")
    else:
        try:
            snapshot = store.get_snapshot(snapshot_id)
        except SnapshotNotFound as e:
            fail(str(e))

    user_output(
        f"Snapshot {snapshot.id}: {snapshot.operation} on "
        f"'{snapshot.branch or '(detached)'}' at {(snapshot.commit or '')[:12]}"
    )
    if not keep_changes and not yes:
        if not click.confirm(
            "Discard current changes in the main checkout and restore?", default=False, err=True
        ):
            user_output("Restore cancelled.")
            return

    try:
        store.restore(snapshot.id, keep_changes=keep_changes)
    except (EngineError, SnapshotNotFound) as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    user_output(click.style("✓", fg="green") + f" Restored snapshot {snapshot.id}")
