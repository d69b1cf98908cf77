import click
from rich.table import Table

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import format_hint, user_console, user_output
from wtt.core.context import WttContext
from wtt.core.errors import EngineError
from wtt.core.recovery import snapshot_id_for_stash


@click.command("stash")
@click.argument("stash_ref", required=False)
@click.pass_obj
def stash_recovery(ctx: WttContext, stash_ref: str | None) -> None:
    """List stashes, or apply STASH_REF (e.g. stash@{1}) to the main checkout.

    Stashes recorded by snapshots are labelled with the snapshot id.
    """
    repo = Ensure.in_repo(ctx)

    if stash_ref is not None:
        try:
            ctx.git.apply_stash(repo.root, stash_ref)
        except EngineError as e:
            fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)
        user_output(click.style("✓", fg="green") + f" Applied {stash_ref} to the main checkout")
        return

    try:
        stashes = ctx.git.list_stashes(repo.root)
    except EngineError as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    if not stashes:
        user_output("No stashes")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ref", style="yellow", no_wrap=True)
    table.add_column("created", no_wrap=True)
    table.add_column("snapshot", style="cyan", no_wrap=True)
    table.add_column("message")

    for stash in stashes:
        table.add_row(
            stash.ref,
            stash.created_at.strftime("%Y-%m-%d %H:%M"),
            snapshot_id_for_stash(stash) or "",
            stash.message,
        )

    user_console().print(table)
    user_output(format_hint("Apply one with: wt recovery stash <ref>"))
