"""Conflict inspection commands."""

import click

from wtt.cli.commands.conflicts.list_cmd import list_conflicts
from wtt.cli.commands.conflicts.predict_cmd import predict_conflicts


@click.group("conflicts")
def conflicts_group() -> None:
    """Predict or list merge conflicts."""
    pass


# Register subcommands
conflicts_group.add_command(list_conflicts)
conflicts_group.add_command(predict_conflicts)
