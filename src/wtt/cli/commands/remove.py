"""Remove command - delete a managed worktree and release its ports."""

import click

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import user_output
from wtt.core.context import WttContext
from wtt.core.errors import EngineError, PortAllocationError, WorktreeNotFound
from wtt.core.locator import locate
from wtt.core.topology import is_within


@click.command("remove")
@click.argument("name")
@click.option("-f", "--force", is_flag=True, help="Remove even with uncommitted changes.")
@click.option("--delete-branch", is_flag=True, help="Also delete the worktree's branch.")
@click.pass_obj
def remove_cmd(ctx: WttContext, name: str, force: bool, delete_branch: bool) -> None:
    """Remove worktree NAME."""
    repo = Ensure.in_repo(ctx)
    ports = Ensure.ports(ctx)

    try:
        worktree = locate(ctx.git, repo, name, cwd=ctx.cwd)
    except WorktreeNotFound as e:
        fail(f"{e}. Run 'wt list' to see available worktrees.")

    Ensure.invariant(
        not is_within(ctx.cwd, worktree.path),
        f"Cannot remove worktree '{worktree.path.name}' while inside it; cd to the main checkout",
    )

    if not force:
        status = ctx.git.get_status(worktree.path)
        Ensure.invariant(
            status.clean,
            f"Worktree '{worktree.path.name}' has {len(status.all_paths)} uncommitted change(s). "
            "Commit them or pass --force.",
        )

    try:
        ctx.git.remove_worktree(repo.root, worktree.path, force=force)
    except EngineError as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)
    user_output(click.style("✓", fg="green") + f" Removed worktree '{worktree.path.name}'")

    if delete_branch and worktree.branch is not None:
        try:
            ctx.git.delete_branch(repo.root, worktree.branch, force=force)
            user_output(click.style("✓", fg="green") + f" Deleted branch '{worktree.branch}'")
        except EngineError:
            user_output(
                click.style("⚠", fg="yellow")
                + f" Could not delete branch '{worktree.branch}'; it may not be fully merged"
            )

    try:
        ports.release_ports(worktree.path.name)
    except PortAllocationError as e:
        user_output(click.style("⚠", fg="yellow") + f" Could not release ports: {e}")
