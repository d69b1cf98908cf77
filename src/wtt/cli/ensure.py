"""CLI error handling utilities with styled output.

This module provides the Ensure class for asserting invariants in CLI commands
with consistent, user-friendly error messages. All errors use red "Error:" prefix
for visual consistency.
"""

from typing import TYPE_CHECKING, NoReturn, TypeVar

import click

from wtt.cli.output import user_output
from wtt.core.ports import PortRegistry
from wtt.core.repo_discovery import RepoContext

if TYPE_CHECKING:
    from wtt.core.context import WttContext

# Environmental failures (not a repository, git errors) exit with this code
ENVIRONMENT_ERROR_EXIT_CODE = 2

T = TypeVar("T")


def fail(error_message: str, *, exit_code: int = 1) -> NoReturn:
    """Output styled error and exit.

    Raises:
        SystemExit: Always
    """
    user_output(click.style("Error: ", fg="red") + error_message)
    raise SystemExit(exit_code)


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Args:
            condition: Boolean condition to check
            error_message: Error message to display if condition is false.
                          "Error: " prefix will be added automatically in red.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            fail(error_message)

    @staticmethod
    def not_none(value: T | None, error_message: str) -> T:
        """Ensure value is not None, otherwise output styled error and exit.

        This method provides type narrowing: it takes `T | None` and returns `T`.

        Raises:
            SystemExit: If value is None (with exit code 1)
        """
        if value is None:
            fail(error_message)
        return value

    @staticmethod
    def in_repo(ctx: "WttContext") -> RepoContext:
        """Ensure the command runs inside a repository and return it.

        Raises:
            SystemExit: With exit code 2 when outside a repository
        """
        if not isinstance(ctx.repo, RepoContext):
            fail(ctx.repo.message, exit_code=ENVIRONMENT_ERROR_EXIT_CODE)
        return ctx.repo

    @staticmethod
    def ports(ctx: "WttContext") -> PortRegistry:
        """Ensure a port registry is available (it is whenever a repo is)."""
        Ensure.in_repo(ctx)
        return Ensure.not_none(ctx.ports, "Port registry is not available")
