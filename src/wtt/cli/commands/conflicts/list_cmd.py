import click

from wtt.cli.ensure import Ensure
from wtt.cli.output import format_hint, user_output
from wtt.core.conflict_predictor import find_current_conflicts
from wtt.core.context import WttContext
from wtt.core.snapshots import SnapshotStore


@click.command("list")
@click.pass_obj
def list_conflicts(ctx: WttContext) -> None:
    """List files with unresolved conflicts in the main checkout."""
    repo = Ensure.in_repo(ctx)

    conflicts = find_current_conflicts(ctx.git, repo.root)
    if not conflicts:
        user_output(click.style("✓", fg="green") + " No conflicted files")
        return

    merge_state = SnapshotStore(ctx.git, repo, ctx.time).load_merge_state()
    if merge_state is not None:
        user_output(
            f"Merging '{merge_state.branch_name}' into '{merge_state.main_branch}' "
            f"(worktree '{merge_state.worktree_name}')"
        )

    user_output(f"{len(conflicts)} conflicted file(s):")
    for conflict in conflicts:
        markers = f"{conflict.marker_count} conflict(s)" if conflict.marker_count else "no markers"
        user_output(f"  {click.style(conflict.file, fg='red')}  ({markers})")
    user_output(format_hint("Resolve, 'git add' and 'git commit', or run 'wt merge-abort'"))
