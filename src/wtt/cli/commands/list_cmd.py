"""List command - show managed worktrees."""

import click
from rich.table import Table

from wtt.cli.ensure import Ensure
from wtt.cli.output import user_console, user_output
from wtt.core.context import WttContext
from wtt.core.locator import managed_worktrees
from wtt.core.ports import format_ports


@click.command("list")
@click.pass_obj
def list_cmd(ctx: WttContext) -> None:
    """List worktrees with their branches and ports."""
    repo = Ensure.in_repo(ctx)
    ports = Ensure.ports(ctx)

    worktrees = managed_worktrees(ctx.git, repo)
    if not worktrees:
        user_output("No worktrees. Create one with 'wt create <branch>'.")
        return

    all_ports = ports.all_ports()

    table = Table(show_header=True, header_style="bold")
    table.add_column("name", style="cyan", no_wrap=True)
    table.add_column("branch", no_wrap=True)
    table.add_column("ports", no_wrap=True)
    table.add_column("path")

    for wt in worktrees:
        name = wt.path.name
        branch = wt.branch if wt.branch is not None else "[yellow](detached)[/yellow]"
        table.add_row(name, branch, format_ports(all_ports.get(name)), str(wt.path))

    console = user_console()
    console.print(table)
