"""Ports command - show the ports reserved for worktrees."""

import click

from wtt.cli.ensure import Ensure, fail
from wtt.cli.output import machine_output, user_output
from wtt.core.context import WttContext
from wtt.core.errors import PortAllocationError, WorktreeNotFound
from wtt.core.locator import locate
from wtt.core.ports import format_ports


@click.command("ports")
@click.argument("name", required=False)
@click.pass_obj
def ports_cmd(ctx: WttContext, name: str | None) -> None:
    """Show reserved ports for worktree NAME, or for every worktree."""
    repo = Ensure.in_repo(ctx)
    ports = Ensure.ports(ctx)

    try:
        if name is not None:
            try:
                worktree = locate(ctx.git, repo, name, cwd=ctx.cwd)
            except WorktreeNotFound as e:
                fail(f"{e}. Run 'wt list' to see available worktrees.")
            machine_output(format_ports(ports.get_ports(worktree.path.name)))
            return

        assigned = ports.all_ports()
    except PortAllocationError as e:
        fail(str(e))

    if not assigned:
        user_output("No ports assigned")
        return
    for worktree_name in sorted(assigned):
        machine_output(f"{worktree_name}: {format_ports(assigned[worktree_name])}")
