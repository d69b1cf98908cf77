"""Create command - add a managed worktree and reserve its ports."""

import click

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import machine_output, user_output
from wtt.core.context import WttContext
from wtt.core.errors import EngineError, PortAllocationError
from wtt.core.ports import format_ports
from wtt.core.repo_discovery import ensure_worktrees_dir


@click.command("create")
@click.argument("branch")
@click.option(
    "--from",
    "base_ref",
    default=None,
    help="Start the new branch from this ref instead of the main branch.",
)
@click.pass_obj
def create_cmd(ctx: WttContext, branch: str, base_ref: str | None) -> None:
    """Create a worktree for BRANCH under the worktrees directory.

    Checks out BRANCH if it exists, otherwise creates it. Prints the new
    worktree path on stdout.
    """
    repo = Ensure.in_repo(ctx)
    ports = Ensure.ports(ctx)

    name = ctx.config.worktree_name_for(branch)
    Ensure.invariant(bool(name) and name not in (".", ".."), f"Invalid worktree name '{name}'")
    worktree_path = repo.worktrees_dir / name
    Ensure.invariant(
        not ctx.git.path_exists(worktree_path),
        f"Worktree '{name}' already exists at {worktree_path}",
    )

    create_branch = not ctx.git.branch_exists(repo.root, branch)
    Ensure.invariant(
        create_branch or base_ref is None,
        f"Branch '{branch}' already exists; --from only applies to new branches",
    )

    ensure_worktrees_dir(repo)
    try:
        ctx.git.add_worktree(
            repo.root,
            worktree_path,
            branch=branch,
            ref=(base_ref or ctx.config.main_branch) if create_branch else None,
            create_branch=create_branch,
        )
    except EngineError as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    action = "Created branch" if create_branch else "Checked out branch"
    user_output(click.style("✓", fg="green") + f" {action} '{branch}' in worktree '{name}'")

    try:
        assigned = ports.assign_ports(name, ctx.config.port_ranges)
        user_output(click.style("✓", fg="green") + f" Ports: {format_ports(assigned)}")
    except PortAllocationError as e:
        user_output(click.style("⚠", fg="yellow") + f" Could not assign ports: {e}")

    machine_output(str(worktree_path))
