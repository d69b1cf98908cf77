from datetime import timedelta

import click
from rich.table import Table

from wtt.cli.ensure import ENVIRONMENT_ERROR_EXIT_CODE, Ensure, fail
from wtt.cli.output import format_hint, user_console, user_output
from wtt.core.context import WttContext
from wtt.core.errors import EngineError
from wtt.core.recovery import DEFAULT_SEARCH_DAYS, find_lost_commits


@click.command("find-commits")
@click.option(
    "--days",
    type=click.IntRange(min=1),
    default=DEFAULT_SEARCH_DAYS,
    show_default=True,
    help="How far back to search.",
)
@click.option(
    "--all", "include_reachable", is_flag=True, help="Also list commits that are on a branch."
)
@click.pass_obj
def find_commits(ctx: WttContext, days: int, include_reachable: bool) -> None:
    """Search the reflog for recent commits that no branch contains."""
    repo = Ensure.in_repo(ctx)
    since = ctx.time.now() - timedelta(days=days)

    try:
        commits = find_lost_commits(
            ctx.git, repo.root, since=since, include_reachable=include_reachable
        )
    except EngineError as e:
        fail(str(e), exit_code=ENVIRONMENT_ERROR_EXIT_CODE)

    if not commits:
        user_output(click.style("✓", fg="green") + f" No lost commits in the last {days} day(s)")
        return

    user_output(f"Found {len(commits)} commit(s) in the reflog:")
    table = Table(show_header=True, header_style="bold")
    table.add_column("commit", style="yellow", no_wrap=True)
    table.add_column("authored", no_wrap=True)
    table.add_column("author", no_wrap=True)
    table.add_column("subject")
    table.add_column("state", no_wrap=True)

    for commit in commits:
        table.add_row(
            commit.short_commit,
            commit.authored_at.strftime("%Y-%m-%d %H:%M"),
            commit.author,
            commit.subject,
            "on a branch" if commit.reachable else "lost",
        )

    user_console().print(table)
    user_output(format_hint("Restore one with: wt recovery restore <commit>"))
