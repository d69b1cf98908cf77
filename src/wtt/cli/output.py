"""Output utilities for CLI commands with clear intent.

user_output is for humans and goes to stderr. machine_output is for data other
programs read (JSON, paths) and goes to stdout.
"""

from typing import Any

import click
from rich.console import Console


def user_output(message: Any = "", nl: bool = True) -> None:
    """Print a message meant for the user (stderr)."""
    click.echo(message, nl=nl, err=True)


def machine_output(message: Any = "", nl: bool = True) -> None:
    """Print machine-readable output (stdout)."""
    click.echo(message, nl=nl)


def user_console() -> Console:
    """Rich console bound to stderr, consistent with user_output."""
    return Console(stderr=True, width=200, highlight=False)


def format_hint(hint: str) -> str:
    return click.style("  → ", fg="yellow") + hint
