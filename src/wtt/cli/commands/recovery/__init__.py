"""Commands for getting back work that is no longer on any branch."""

import click

from wtt.cli.commands.recovery.find_commits_cmd import find_commits
from wtt.cli.commands.recovery.restore_cmd import restore_commit
from wtt.cli.commands.recovery.stash_cmd import stash_recovery


@click.group("recovery")
def recovery_group() -> None:
    """Find and restore lost commits and stashed work."""
    pass


# Register subcommands
recovery_group.add_command(find_commits)
recovery_group.add_command(restore_commit)
recovery_group.add_command(stash_recovery)
