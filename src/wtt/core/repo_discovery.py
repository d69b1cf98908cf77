"""Repository discovery functionality.

Discovers repository information from a given path without requiring a full
WttContext (enables config loading before context creation).
"""

from dataclasses import dataclass
from pathlib import Path

from wtt.cli.config import load_config
from wtt.core.errors import NotARepository
from wtt.core.topology import RepositoryTopology, resolve

BACKUPS_DIR_NAME = ".backups"


@dataclass(frozen=True)
class RepoContext:
    """Represents a main checkout and its managed worktrees directory.

    Every component that touches the repository receives this explicitly.
    """

    topology: RepositoryTopology
    root: Path  # main checkout, never a linked worktree
    worktrees_dir: Path  # <root>/<base_dir>
    backups_dir: Path  # <root>/<base_dir>/.backups


@dataclass(frozen=True)
class NoRepoSentinel:
    """Sentinel value indicating execution outside a git repository.

    Used when commands run outside git repositories (e.g., in non-git
    directories). Commands that require repo context can check for this
    sentinel and fail fast.
    """

    message: str = "Not inside a git repository"


def build_repo_context(topology: RepositoryTopology, base_dir: str) -> RepoContext:
    root = topology.main_root
    worktrees_dir = root / base_dir
    return RepoContext(
        topology=topology,
        root=root,
        worktrees_dir=worktrees_dir,
        backups_dir=worktrees_dir / BACKUPS_DIR_NAME,
    )


def discover_repo_or_sentinel(
    cwd: Path, *, base_dir: str | None = None
) -> RepoContext | NoRepoSentinel:
    """Walk up from `cwd` to find the repository and its main checkout.

    Returns a RepoContext pointing at the main checkout even when `cwd` is
    inside a linked worktree, or NoRepoSentinel if not inside a git repo.

    Args:
        cwd: Current working directory to start search from
        base_dir: Worktrees directory relative to the root. Read from the
            repository's config file when None.

    Returns:
        RepoContext if inside a git repository, NoRepoSentinel otherwise
    """
    if not cwd.exists():
        return NoRepoSentinel(message=f"Start path '{cwd}' does not exist")

    try:
        topology = resolve(cwd)
    except NotARepository as e:
        return NoRepoSentinel(message=str(e))

    if base_dir is None:
        base_dir = load_config(topology.main_root).base_dir

    return build_repo_context(topology, base_dir)


def ensure_worktrees_dir(repo: RepoContext) -> Path:
    """Ensure the managed worktrees directory exists and return it."""
    repo.worktrees_dir.mkdir(parents=True, exist_ok=True)
    return repo.worktrees_dir
