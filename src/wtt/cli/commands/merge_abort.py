"""Merge-abort command - cancel a conflicted merge in the main checkout."""

import click

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import format_hint, user_output
from wtt.core.context import WttContext
from wtt.core.errors import EngineError, SnapshotPersistenceFailed
from wtt.core.snapshots import SnapshotStore

MERGE_ABORT_OPERATION = "merge-abort"


@click.command("merge-abort")
@click.pass_obj
def merge_abort_cmd(ctx: WttContext) -> None:
    """Abort the merge in progress, snapshotting the conflicted state first."""
    repo = Ensure.in_repo(ctx)
    Ensure.invariant(
        ctx.git.is_merge_in_progress(repo.root),
        "No merge in progress in the main checkout",
    )

    store = SnapshotStore(ctx.git, repo, ctx.time)
    merge_state = store.load_merge_state()
    metadata = {"reason": "merge abort"}
    if merge_state is not None:
        metadata["branch"] = merge_state.branch_name

    try:
        snapshot = store.create_snapshot(MERGE_ABORT_OPERATION, metadata)
    except SnapshotPersistenceFailed as e:
        fail(f"Not aborting; could not save a snapshot first: {e}")

    try:
        ctx.git.abort_merge(repo.root)
    except EngineError as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)
    store.clear_merge_state()

    user_output(click.style("✓", fg="green") + " Merge aborted")
    saved = snapshot.saved_state
    if saved.captured or saved.untracked_files:
        user_output(format_hint(f"Work in progress is saved in snapshot {snapshot.id}"))
    elif saved.has_uncommitted_changes:
        user_output(
            click.style("⚠", fg="yellow")
            + f" Uncommitted changes could not be captured; snapshot {snapshot.id}"
            " only records the commit"
        )
    else:
        user_output(format_hint(f"Snapshot {snapshot.id} records the checkout before the abort"))
