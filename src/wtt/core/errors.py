"""Error taxonomy for worktree and merge operations.

Expected conditions (missing worktree, detached HEAD, uncommitted changes) are
folded into ValidationIssue values by the validation engine and never escape to
the CLI as exceptions. SnapshotPersistenceFailed and EngineError are fatal to
the current invocation.
"""

from pathlib import Path


class WttError(Exception):
    """Base class for all wtt errors."""


class NotARepository(WttError):
    """No git metadata was found walking up from the start directory."""

    def __init__(self, start_dir: Path, message: str | None = None) -> None:
        self.start_dir = start_dir
        super().__init__(message or f"Not inside a git repository: {start_dir}")


class WorktreeNotFound(WttError):
    """No registered (or live) worktree matches the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Worktree '{name}' not found")


class DetachedHead(WttError):
    """The worktree has no branch checked out."""

    def __init__(self, worktree_path: Path) -> None:
        self.worktree_path = worktree_path
        super().__init__(f"Worktree at {worktree_path} is in detached HEAD state")


class UncommittedChanges(WttError):
    """A checkout has changes that a merge could overwrite.

    location is "main" for the main checkout and "worktree" for the merge source.
    """

    def __init__(self, location: str, path: Path, changed_paths: list[str]) -> None:
        self.location = location
        self.path = path
        self.changed_paths = changed_paths
        super().__init__(
            f"{location} checkout at {path} has {len(changed_paths)} uncommitted change(s)"
        )


class SnapshotPersistenceFailed(WttError):
    """The safety snapshot could not be written to disk."""


class EngineError(WttError, RuntimeError):
    """The git CLI failed in a way the caller did not anticipate."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = command or []
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message)


class PortAllocationError(WttError):
    """No free port is left in a configured range, or the port map is unreadable."""


class SnapshotNotFound(WttError):
    """No snapshot matches the id or id prefix, or the prefix is ambiguous."""
