"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from wtt.cli.config import LoadedConfig, load_config
from wtt.core.git.abc import Git
from wtt.core.git.real import RealGit
from wtt.core.ports import JsonPortRegistry, PortRegistry
from wtt.core.repo_discovery import NoRepoSentinel, RepoContext, discover_repo_or_sentinel
from wtt.core.time.abc import Time
from wtt.core.time.real import RealTime


@dataclass(frozen=True)
class WttContext:
    """Immutable context holding all dependencies for wt operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.

    Note: repo is either a RepoContext or NoRepoSentinel, and ports is None
    whenever repo is NoRepoSentinel.
    """

    git: Git
    cwd: Path  # Current working directory at CLI invocation
    config: LoadedConfig
    repo: RepoContext | NoRepoSentinel
    ports: PortRegistry | None
    time: Time

    @staticmethod
    def for_test(
        git: Git | None = None,
        cwd: Path | None = None,
        config: LoadedConfig | None = None,
        repo: RepoContext | NoRepoSentinel | None = None,
        ports: PortRegistry | None = None,
        time: Time | None = None,
    ) -> "WttContext":
        """Create test context with optional pre-configured integration classes.

        Args:
            git: Optional Git implementation. If None, creates empty FakeGit.
            cwd: Optional current working directory. If None, uses the repo root
                when a repo is given, otherwise Path("/test/default/cwd").
            config: Optional LoadedConfig. If None, uses defaults.
            repo: Optional RepoContext or NoRepoSentinel. If None, uses NoRepoSentinel().
            ports: Optional PortRegistry. If None and a repo is given, creates an
                empty FakePortRegistry.
            time: Optional Time. If None, creates FakeTime at a fixed instant.

        Returns:
            WttContext configured with provided values and test defaults

        Example:
            >>> git = FakeGit(worktrees={Path("/repo"): [...]})
            >>> ctx = WttContext.for_test(git=git, repo=repo)
        """
        from tests.fakes.ports import FakePortRegistry
        from tests.fakes.time import FakeTime

        from wtt.core.git.fake import FakeGit

        if git is None:
            git = FakeGit()

        if config is None:
            config = LoadedConfig()

        if repo is None:
            repo = NoRepoSentinel()

        if ports is None and isinstance(repo, RepoContext):
            ports = FakePortRegistry()

        if time is None:
            time = FakeTime()

        if cwd is None:
            cwd = repo.root if isinstance(repo, RepoContext) else Path("/test/default/cwd")

        return WttContext(git=git, cwd=cwd, config=config, repo=repo, ports=ports, time=time)


def create_context(*, cwd: Path | None = None) -> WttContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        cwd: Directory to discover the repository from. Defaults to Path.cwd().

    Returns:
        WttContext with real implementations
    """
    # 1. Capture cwd (no deps)
    if cwd is None:
        cwd = Path.cwd()

    # 2. Discover repo, then load its config
    time = RealTime()
    repo = discover_repo_or_sentinel(cwd)
    if isinstance(repo, RepoContext):
        config = load_config(repo.root)
        ports: PortRegistry | None = JsonPortRegistry(repo.worktrees_dir, time)
    else:
        config = LoadedConfig()
        ports = None

    return WttContext(
        git=RealGit(),
        cwd=cwd,
        config=config,
        repo=repo,
        ports=ports,
        time=time,
    )
