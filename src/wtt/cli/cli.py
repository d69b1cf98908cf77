import logging
import os

import click

from wtt.cli.commands.backup import backup_group
from wtt.cli.commands.conflicts import conflicts_group
from wtt.cli.commands.create import create_cmd
from wtt.cli.commands.init import init_cmd
from wtt.cli.commands.list_cmd import list_cmd
from wtt.cli.commands.merge import merge_cmd
from wtt.cli.commands.merge_abort import merge_abort_cmd
from wtt.cli.commands.ports import ports_cmd
from wtt.cli.commands.recovery import recovery_group
from wtt.cli.commands.remove import remove_cmd
from wtt.core.context import create_context

DEBUG_LOG_FORMAT = "[DEBUG %(name)s:%(lineno)d] %(message)s"

# Enable debug logging if WTT_DEBUG environment variable is set
if os.getenv("WTT_DEBUG"):
    logging.basicConfig(level=logging.DEBUG, format=DEBUG_LOG_FORMAT)

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="wtt")
@click.option("--debug", is_flag=True, help="Log git commands and merge phases to stderr.")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Manage git worktrees and merge them back safely."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format=DEBUG_LOG_FORMAT)
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context()


# Register all commands
cli.add_command(backup_group)
cli.add_command(conflicts_group)
cli.add_command(create_cmd)
cli.add_command(init_cmd)
cli.add_command(list_cmd)
cli.add_command(merge_cmd)
cli.add_command(merge_abort_cmd)
cli.add_command(ports_cmd)
cli.add_command(recovery_group)
cli.add_command(remove_cmd)


def main() -> None:
    """CLI entry point used by the `wt` console script."""
    cli()
