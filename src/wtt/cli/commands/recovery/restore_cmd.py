import click

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import format_hint, machine_output, user_output
from wtt.core.context import WttContext
from wtt.core.errors import EngineError, SnapshotPersistenceFailed
from wtt.core.recovery import default_restore_branch
from wtt.core.snapshots import SnapshotStore

CHERRY_PICK_OPERATION = "cherry-pick"


@click.command("restore")
@click.argument("commit_ref")
@click.option(
    "-b",
    "--branch",
    "branch_name",
    default=None,
    help="Name of the branch to create (default: restore-<short sha>).",
)
@click.option(
    "--cherry-pick",
    is_flag=True,
    help="Apply the commit to the main checkout's branch instead of creating a branch.",
)
@click.pass_obj
def restore_commit(
    ctx: WttContext, commit_ref: str, branch_name: str | None, cherry_pick: bool
) -> None:
    """Bring back COMMIT_REF as a new branch, or cherry-pick it into the main checkout.

    The new branch is not checked out; use `wt create <branch>` to work on it
    in a worktree.
    """
    repo = Ensure.in_repo(ctx)
    Ensure.invariant(
        not (cherry_pick and branch_name), "--branch and --cherry-pick cannot be combined"
    )
    info = Ensure.not_none(
        ctx.git.get_commit_info(repo.root, commit_ref), f"Commit '{commit_ref}' not found"
    )

    user_output(f"Commit {info.commit[:7]}: {info.subject}")
    user_output(
        click.style(f"  by {info.author} on {info.authored_at:%Y-%m-%d %H:%M}", fg="bright_black")
    )

    if not cherry_pick:
        branch = branch_name or default_restore_branch(info.commit)
        Ensure.invariant(
            not ctx.git.branch_exists(repo.root, branch),
            f"Branch '{branch}' already exists; choose another name with --branch",
        )
        try:
            ctx.git.create_branch(repo.root, branch, info.commit)
        except EngineError as e:
            fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

        user_output(click.style("✓", fg="green") + f" Created branch '{branch}'")
        user_output(format_hint(f"Work on it in a worktree with: wt create {branch}"))
        machine_output(branch)
        return

    try:
        status = ctx.git.get_status(repo.root)
    except EngineError as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)
    Ensure.invariant(
        not status.changed_paths and not status.conflicted_paths,
        "The main checkout has uncommitted changes; commit or stash them before cherry-picking",
    )

    store = SnapshotStore(ctx.git, repo, ctx.time)
    try:
        snapshot = store.create_snapshot(CHERRY_PICK_OPERATION, {"commit": info.commit})
    except SnapshotPersistenceFailed as e:
        fail(f"Not cherry-picking; could not save a snapshot first: {e}")

    try:
        result = ctx.git.cherry_pick(repo.root, info.commit)
    except EngineError as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    if result.conflicted:
        user_output(
            click.style("✗", fg="red")
            + f" Cherry-picking {info.commit[:7]} stopped with conflicts:"
        )
        for path in result.conflicted_paths:
            user_output(f"    {path}")
        user_output(format_hint("Fix and 'git add' the files, then 'git cherry-pick --continue'"))
        user_output(format_hint("Or run 'git cherry-pick --abort' to cancel"))
        user_output(format_hint(f"To return to the earlier state: wt backup restore {snapshot.id}"))
        raise SystemExit(1)
    if not result.success:
        fail(
            f"git cherry-pick {info.commit[:7]} failed:\n{result.output}".rstrip(),
            exit_code=ENVIRONMENT_ERROR_EXIT_CODE,
        )

    user_output(click.style("✓", fg="green") + f" Cherry-picked {info.commit[:7]}")
    user_output(click.style(f"  Snapshot: {snapshot.id}", fg="bright_black"))
