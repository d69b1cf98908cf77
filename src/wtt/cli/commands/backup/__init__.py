"""Snapshot (backup) management commands."""

import click

from wtt.cli.commands.backup.clean_cmd import clean_backups
from wtt.cli.commands.backup.create_cmd import create_backup
from wtt.cli.commands.backup.delete_cmd import delete_backup
from wtt.cli.commands.backup.list_cmd import list_backups
from wtt.cli.commands.backup.restore_cmd import restore_backup


@click.group("backup")
def backup_group() -> None:
    """Manage safety snapshots of the main checkout."""
    pass


# Register subcommands
backup_group.add_command(clean_backups)
backup_group.add_command(create_backup)
backup_group.add_command(delete_backup)
backup_group.add_command(list_backups)
backup_group.add_command(restore_backup)
