import click

from wtt.cli.ensure import Ensure
from wtt.cli.output import user_output
from wtt.core.context import WttContext
from wtt.core.snapshots import DEFAULT_MAX_AGE_DAYS, SnapshotStore


@click.command("clean")
@click.option(
    "--days",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_AGE_DAYS,
    show_default=True,
    help="Delete snapshots older than this many days.",
)
@click.pass_obj
def clean_backups(ctx: WttContext, days: int) -> None:
    """Delete old snapshots."""
    repo = Ensure.in_repo(ctx)
    removed = SnapshotStore(ctx.git, repo, ctx.time).clean_old_snapshots(max_age_days=days)

    if not removed:
        user_output(f"No snapshots older than {days} day(s)")
        return
    user_output(click.style("✓", fg="green") + f" Deleted {len(removed)} old snapshot(s)")
